"""
Security helpers
JWT session tokens and FastAPI dependencies for the calling user
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..config.settings import settings
from ..models.user import CurrentUser, UserRole
from .exceptions import AuthenticationError, PermissionDeniedError


class SecurityManager:
    """Issues and verifies session tokens"""

    def create_jwt_token(self, user_id: str, name: str, role: UserRole) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "name": name,
            "role": UserRole(role).value,
            "exp": now + timedelta(hours=settings.jwt_expire_hours),
            "iat": now,
        }
        return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)

    def decode_jwt_token(self, token: str) -> Dict[str, Any]:
        try:
            return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise AuthenticationError(f"Invalid token: {e}")

    def get_user_from_token(self, token: str) -> CurrentUser:
        payload = self.decode_jwt_token(token)
        user_id = payload.get("sub")
        role = payload.get("role")
        if not user_id or role not in {r.value for r in UserRole}:
            raise AuthenticationError("Token missing user id or role")
        return CurrentUser(id=str(user_id), name=payload.get("name") or "", role=role)


# Global security manager instance
security_manager = SecurityManager()

_bearer = HTTPBearer(auto_error=False)


def create_access_token(user_id: str, name: str, role: UserRole) -> str:
    return security_manager.create_jwt_token(user_id, name, role)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer)
) -> CurrentUser:
    """Resolve the caller from the Authorization header"""
    if credentials is None:
        raise AuthenticationError("Authentication required")
    return security_manager.get_user_from_token(credentials.credentials)


def require_role(role: UserRole):
    """Dependency factory restricting an endpoint to one role"""

    async def checker(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role != role:
            raise PermissionDeniedError(
                f"This action requires the {role.value} role",
                details={"required_role": role.value, "role": user.role.value},
            )
        return user

    return checker
