# pyright: reportMissingTypeStubs=false
"""
Authentication dependencies for FastAPI.

Resolves the acting user from the bearer token and confirms, through the
membership directory, that they are an active member of the organization the
token is scoped to. Capability checks happen later in the authorization guard.
"""

import logging
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from core.database import get_db
from services.jwt_service import jwt_service, TokenPayload
from services.membership_service import SqlMembershipDirectory

logger = logging.getLogger(__name__)


class UserContext:
    """Authenticated user context extracted from JWT token."""

    def __init__(
        self,
        user_id: int,
        organization_id: int,
        email: str = "",
        name: str = ""
    ):
        self.user_id = user_id
        self.organization_id = organization_id  # Organization the session is scoped to
        self.email = email
        self.name = name

    def __repr__(self) -> str:
        return f"UserContext(user_id={self.user_id}, organization_id={self.organization_id})"


# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


def get_token_payload(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[TokenPayload]:
    """Extract and validate JWT token payload."""
    if not credentials:
        return None

    return jwt_service.verify_token(credentials.credentials)


def get_current_user(
    payload: Optional[TokenPayload] = Depends(get_token_payload),
    db: Session = Depends(get_db)
) -> UserContext:
    """Get authenticated user context from JWT token."""
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication credentials not provided"
        )

    directory = SqlMembershipDirectory(db)
    if directory.role(payload.user_id, payload.organization_id) is None:
        logger.warning(
            f"User {payload.user_id} is not an active member of organization {payload.organization_id}"
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Organization access denied"
        )

    return UserContext(
        user_id=payload.user_id,
        organization_id=payload.organization_id,
        email=payload.email,
        name=payload.name
    )
