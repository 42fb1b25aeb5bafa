"""FastAPI application entrypoint. No business logic; only wiring, error mapping and middleware."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from authmini.api.v1 import router as v1_router
from authmini.core.config import Settings, get_settings
from authmini.core.database import Database
from authmini.core.errors import AuthMiniError, ErrorKind, InfrastructureError
from authmini.core.security import PasswordHasher, TokenCodec

logger = logging.getLogger(__name__)


def _error_response(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


async def handle_authmini_error(request: Request, exc: AuthMiniError) -> JSONResponse:
    headers = None
    if exc.kind in (ErrorKind.UNAUTHENTICATED, ErrorKind.INVALID_CREDENTIALS):
        headers = {"WWW-Authenticate": "Bearer"}
    return _error_response(exc.status_code, exc.message, headers)


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg', 'invalid value')}" if field else first.get("msg", "")
    else:
        message = "Invalid request."
    return _error_response(400, message or "Invalid request.")


async def handle_infrastructure_error(request: Request, exc: InfrastructureError) -> JSONResponse:
    logger.error(
        "Infrastructure failure on %s %s", request.method, request.url.path, exc_info=exc
    )
    return _error_response(500, "Internal server error")


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    """
    Build the application. The database, password hasher and token codec are
    constructed here once and shared read-only by every request.
    """
    settings = settings or get_settings()
    database = database or Database(settings.DATABASE_URL, echo=settings.DEBUG)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("AuthMini starting: env=%s, prefix=%s", settings.APP_ENV, settings.API_V1_PREFIX)
        yield
        database.dispose()

    app = FastAPI(
        title="AuthMini API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database
    app.state.hasher = PasswordHasher(rounds=settings.BCRYPT_ROUNDS)
    app.state.codec = TokenCodec(
        settings.JWT_SECRET.get_secret_value(),
        algorithm=settings.JWT_ALGORITHM,
        ttl=timedelta(minutes=settings.JWT_EXPIRE_MINUTES),
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.APP_ENV == "dev" else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AuthMiniError, handle_authmini_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(InfrastructureError, handle_infrastructure_error)

    app.include_router(v1_router, prefix=settings.API_V1_PREFIX)

    @app.get("/")
    def root() -> dict[str, str]:
        """Root route; minimal payload for discovery."""
        return {"message": "AuthMini API"}

    return app


def _configure_logging() -> None:
    logging.basicConfig(
        level=get_settings().LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )


_configure_logging()
app = create_app()
