"""JWT authentication dependency for FastAPI.

Validates Bearer tokens from the Authorization header and resolves the
caller's current organization context from the token claims.
"""

import logging
import uuid
from dataclasses import dataclass

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from src.config import settings
from src.exceptions import UnauthorizedException
from src.models.enums import OrganizationBusinessType, UserRole

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class AuthenticatedUser:
    """The caller, acting within their current organization."""

    id: uuid.UUID
    email: str
    organization_id: uuid.UUID
    business_type: OrganizationBusinessType
    role: UserRole

    @property
    def is_platform_team(self) -> bool:
        return self.business_type == OrganizationBusinessType.PORTZAPP_TEAM

    @property
    def is_org_admin(self) -> bool:
        return self.role in (UserRole.ADMIN, UserRole.CEO)


def _decode_token(token: str) -> dict:
    """Decode and validate a JWT token. Raises UnauthorizedException on failure."""
    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as exc:
        logger.warning("JWT validation failed: %s", exc)
        raise UnauthorizedException("Invalid or expired token") from exc


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> AuthenticatedUser:
    """FastAPI dependency that extracts and validates the current user from JWT."""
    if credentials is None:
        raise UnauthorizedException("Authentication required")

    payload = _decode_token(credentials.credentials)

    try:
        user = AuthenticatedUser(
            id=uuid.UUID(payload["sub"]),
            email=payload["email"],
            organization_id=uuid.UUID(payload["org_id"]),
            business_type=OrganizationBusinessType(payload["org_type"]),
            role=UserRole(payload.get("role", UserRole.VIEWER.value)),
        )
    except (KeyError, ValueError) as exc:
        raise UnauthorizedException("Token is missing required claims") from exc

    request.state.user = user
    return user
