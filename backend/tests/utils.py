"""
Test utilities for care-team tests.
"""

from datetime import timedelta
from typing import Dict, Optional

from services.jwt_service import TokenPayload, jwt_service


def create_jwt_token(
    user_id: int,
    organization_id: int,
    email: str = "",
    expires_delta: Optional[timedelta] = None
) -> str:
    """Create a JWT access token for a user working in an organization."""
    payload = TokenPayload(
        sub=f"user-{user_id}",
        user_id=user_id,
        organization_id=organization_id,
        email=email or f"user{user_id}@example.com"
    )
    return jwt_service.create_access_token(payload, expires_delta=expires_delta)


def auth_headers(user_id: int, organization_id: int) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_jwt_token(user_id, organization_id)}"}
