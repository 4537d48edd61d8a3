"""
Session token tests
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from ..config.settings import settings
from ..core.exceptions import AuthenticationError
from ..core.security import create_access_token, security_manager
from ..models.user import UserRole


class TestSessionTokens:

    def test_token_carries_identity(self):
        token = create_access_token("shelter_b", "Hope Shelter", UserRole.SHELTER)

        payload = security_manager.decode_jwt_token(token)
        assert payload["sub"] == "shelter_b"
        assert payload["name"] == "Hope Shelter"
        assert payload["role"] == "shelter"
        assert set(payload) == {"sub", "name", "role", "exp", "iat"}

        user = security_manager.get_user_from_token(token)
        assert user.id == "shelter_b"
        assert user.role == UserRole.SHELTER

    def test_expired_token(self):
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        token = jwt.encode(
            {"sub": "rest_a", "name": "A", "role": "restaurant", "iat": past, "exp": past + timedelta(hours=1)},
            settings.jwt_secret_key, algorithm=settings.jwt_algorithm,
        )

        with pytest.raises(AuthenticationError, match="expired"):
            security_manager.get_user_from_token(token)

    def test_unknown_role_rejected(self):
        token = jwt.encode(
            {"sub": "x", "name": "X", "role": "admin"},
            settings.jwt_secret_key, algorithm=settings.jwt_algorithm,
        )

        with pytest.raises(AuthenticationError):
            security_manager.get_user_from_token(token)

    def test_wrong_secret_rejected(self):
        token = jwt.encode({"sub": "x", "role": "shelter"}, "another-secret-key-of-decent-length", algorithm="HS256")

        with pytest.raises(AuthenticationError):
            security_manager.decode_jwt_token(token)
