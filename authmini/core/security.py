"""Password hashing, JWT creation/verification and the role gate."""

from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any

import bcrypt
import jwt
from pydantic import BaseModel, ValidationError

from authmini.core.errors import InvalidToken, forbidden

# Bcrypt cost (rounds); 10 keeps interactive login fast while resisting offline attacks.
DEFAULT_BCRYPT_ROUNDS = 10

# Min/max lengths for email and password validation.
EMAIL_MAX_LEN = 255
PASSWORD_MAX_LEN = 128

# bcrypt only looks at the first 72 bytes of input.
BCRYPT_MAX_BYTES = 72


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


class TokenClaims(BaseModel):
    """Identity carried by a verified access token."""

    id: int
    email: str
    role: Role
    exp: datetime


def _password_bytes(plain_password: str) -> bytes:
    return plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]


class PasswordHasher:
    """bcrypt hash/verify with a fixed cost factor."""

    def __init__(self, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> None:
        self.rounds = rounds
        self._dummy_hash: str | None = None

    def hash(self, plain_password: str) -> str:
        """Hash a plain-text password for storage. Do not store plain passwords."""
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(_password_bytes(plain_password), salt).decode("utf-8")

    def verify(self, plain_password: str, hashed: str) -> bool:
        """Verify a plain password against a stored hash; malformed hashes never match."""
        try:
            return bcrypt.checkpw(_password_bytes(plain_password), hashed.encode("utf-8"))
        except (ValueError, TypeError, AttributeError):
            return False

    def burn(self, plain_password: str) -> None:
        """Spend one verification on a throwaway hash (used when no user matched)."""
        if self._dummy_hash is None:
            self._dummy_hash = self.hash("authmini-dummy-password")
        self.verify(plain_password, self._dummy_hash)


class TokenCodec:
    """
    Issue and verify signed, time-bounded access tokens (JWT).

    The secret is held as given and never logged. verify() raises InvalidToken
    for every failure so callers cannot tell why a token was rejected.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        ttl: timedelta = timedelta(hours=1),
    ) -> None:
        if not secret:
            raise ValueError("JWT secret must be non-empty")
        self._secret = secret
        self.algorithm = algorithm
        self.ttl = ttl

    def __repr__(self) -> str:
        return f"TokenCodec(algorithm={self.algorithm!r}, ttl={self.ttl!r})"

    def issue(
        self,
        user_id: int,
        email: str,
        role: Role | str,
        ttl: timedelta | None = None,
        now: datetime | None = None,
    ) -> str:
        """Create a JWT access token with sub, id, email, role, iat and exp."""
        issued_at = now or datetime.now(UTC)
        expire = issued_at + (ttl if ttl is not None else self.ttl)
        payload: dict[str, Any] = {
            "sub": str(user_id),
            "id": user_id,
            "email": email,
            "role": Role(role).value,
            "iat": issued_at,
            "exp": expire,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """Decode and validate a token; raise InvalidToken on any failure."""
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "sub"]},
            )
            claims = TokenClaims.model_validate(payload)
        except (jwt.PyJWTError, ValidationError) as e:
            raise InvalidToken("Invalid or expired token") from e
        if payload.get("sub") != str(claims.id):
            raise InvalidToken("Invalid or expired token")
        return claims


def authorize(claims: TokenClaims, required: Role | None) -> TokenClaims:
    """
    Admit verified claims for an operation needing `required`.

    None means no role requirement. Otherwise the role must match exactly;
    a mismatch raises Forbidden (403), distinct from a missing/invalid token.
    """
    if required is None or claims.role == required:
        return claims
    if required is Role.ADMIN:
        raise forbidden("Admin access required")
    raise forbidden(f"Role '{required.value}' required")
