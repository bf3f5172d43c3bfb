"""Tests for access token handling."""

from datetime import UTC, datetime, timedelta

import pytest
from jose import jwt

from driveflow.config import settings
from driveflow.core.auth import create_access_token, decode_token


pytestmark = pytest.mark.unit


class TestAccessTokens:
    """Tests for create_access_token and decode_token."""

    def test_round_trip_claims(self):
        token = create_access_token(
            user_id="user-1", role="instructor", organization_id="org-1"
        )

        data = decode_token(token)

        assert data is not None
        assert data.user_id == "user-1"
        assert data.role == "instructor"
        assert data.organization_id == "org-1"
        assert data.type == "access"
        assert data.jti
        assert data.exp > datetime.now(UTC)

    def test_organization_is_optional(self):
        data = decode_token(create_access_token(user_id="user-1", role="owner"))

        assert data is not None
        assert data.organization_id is None

    def test_role_is_not_validated_here(self):
        """Unknown roles survive decoding; evaluation rejects them."""
        data = decode_token(create_access_token(user_id="user-1", role="wizard"))

        assert data is not None
        assert data.to_principal().role == "wizard"

    def test_expired_token_rejected(self):
        token = create_access_token(
            user_id="user-1", role="owner", expires_delta=timedelta(seconds=-1)
        )

        assert decode_token(token) is None

    def test_wrong_secret_rejected(self):
        token = jwt.encode(
            {"sub": "user-1", "role": "owner", "exp": datetime.now(UTC) + timedelta(minutes=5)},
            "another-secret-that-is-long-enough-to-sign",
            algorithm=settings.jwt_algorithm,
        )

        assert decode_token(token) is None

    def test_missing_role_rejected(self):
        token = jwt.encode(
            {"sub": "user-1", "exp": datetime.now(UTC) + timedelta(minutes=5)},
            settings.secret_key,
            algorithm=settings.jwt_algorithm,
        )

        assert decode_token(token) is None

    def test_garbage_rejected(self):
        assert decode_token("not-a-jwt") is None

    def test_to_principal(self):
        data = decode_token(
            create_access_token(user_id="stu-1", role="student", organization_id="org-1")
        )

        assert data is not None
        principal = data.to_principal()
        assert principal.id == "stu-1"
        assert principal.role == "student"
        assert principal.organization_id == "org-1"
