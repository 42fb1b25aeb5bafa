"""Registration, JWT login, self-service routes and auth dependencies (get_current_claims, require_admin)."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.security import APIKeyHeader

from authmini.api.v1.deps import get_auth_service
from authmini.core.errors import unauthenticated
from authmini.core.security import Role, TokenClaims, authorize
from authmini.schemas.auth import (
    CredentialsRequest,
    LoginResponse,
    MeResponse,
    MessageResponse,
    PasswordChangeRequest,
    ProfileData,
    PublicUser,
    RegisterResponse,
    SettingsData,
    UserDetail,
)
from authmini.services.auth import AuthService

router = APIRouter()

# Raw header so the "Bearer " prefix is matched verbatim.
authorization_header = APIKeyHeader(
    name="Authorization",
    auto_error=False,
    description="Bearer <token>",
)

BEARER_PREFIX = "Bearer "


def get_bearer_token(
    authorization: Annotated[str | None, Depends(authorization_header)],
) -> str:
    """Dependency: extract the token from 'Authorization: Bearer <token>'. Raises 401 if absent."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise unauthenticated("No token provided")
    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise unauthenticated("No token provided")
    return token


def get_current_claims(
    token: Annotated[str, Depends(get_bearer_token)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> TokenClaims:
    """Dependency: require a valid Bearer JWT and return its claims. Raises 401 if invalid or expired."""
    return auth.authenticate(token)


def require_admin(
    claims: Annotated[TokenClaims, Depends(get_current_claims)],
) -> TokenClaims:
    """Dependency: require a token whose role claim is 'admin'. Raises 403 for non-admin."""
    return authorize(claims, Role.ADMIN)


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: CredentialsRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> RegisterResponse:
    """Create an account with role 'user'. Returns the new id only."""
    return RegisterResponse(id=auth.register(body.email, body.password))


@router.post("/login", response_model=LoginResponse)
def login(
    body: CredentialsRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> LoginResponse:
    """
    Authenticate with email and password; returns a JWT access token and the user.
    Include the token in the Authorization header as: Bearer <token>
    """
    result = auth.login(body.email, body.password)
    return LoginResponse(token=result.token, user=PublicUser.model_validate(result.user))


@router.post("/logout", response_model=MessageResponse)
def logout() -> MessageResponse:
    """Tokens are stateless; the client discards its token."""
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=MeResponse)
def me(
    claims: Annotated[TokenClaims, Depends(get_current_claims)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> MeResponse:
    """Return the current user, re-read from the database (profile and settings included)."""
    user = auth.current_user(claims)
    return MeResponse(user=UserDetail.model_validate(user))


@router.post("/profile", response_model=MessageResponse)
def update_profile(
    body: ProfileData,
    claims: Annotated[TokenClaims, Depends(get_current_claims)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> MessageResponse:
    auth.update_profile(claims, body.model_dump(exclude_unset=True))
    return MessageResponse(message="Profile updated")


@router.post("/settings", response_model=MessageResponse)
def update_settings(
    body: SettingsData,
    claims: Annotated[TokenClaims, Depends(get_current_claims)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> MessageResponse:
    auth.update_settings(claims, body.model_dump(exclude_unset=True))
    return MessageResponse(message="Settings updated")


@router.post("/password", response_model=MessageResponse)
def change_password(
    body: PasswordChangeRequest,
    claims: Annotated[TokenClaims, Depends(get_current_claims)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> MessageResponse:
    auth.change_password(claims, body.new_password)
    return MessageResponse(message="Password updated")
