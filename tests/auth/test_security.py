"""Tests for auth security functions and identity parsing."""

from datetime import timedelta

import pytest
from jose import JWTError, jwt

from app_reviews.auth.permissions import UserRole
from app_reviews.auth.schemas import Identity
from app_reviews.auth.security import (
    authenticate_token,
    create_access_token,
    decode_access_token,
)
from app_reviews.config import get_settings


class TestAccessToken:
    """Tests for access token creation and decoding."""

    def test_roundtrip_claims(self) -> None:
        token = create_access_token({"sub": "u-1", "role": "admin"})
        payload = decode_access_token(token)
        assert payload["sub"] == "u-1"
        assert payload["role"] == "admin"
        assert payload["type"] == "access"
        assert "exp" in payload
        assert "iat" in payload

    def test_expired_token_rejected(self) -> None:
        token = create_access_token({"sub": "u-1"}, expires_delta=timedelta(seconds=-5))
        with pytest.raises(JWTError):
            decode_access_token(token)

    def test_wrong_type_rejected(self) -> None:
        settings = get_settings()
        token = jwt.encode(
            {"sub": "u-1", "type": "refresh"},
            settings.auth_secret_key,
            algorithm=settings.auth_algorithm,
        )
        with pytest.raises(JWTError):
            decode_access_token(token)

    def test_bad_signature_rejected(self) -> None:
        token = jwt.encode(
            {"sub": "u-1", "type": "access"}, "another-secret", algorithm="HS256"
        )
        with pytest.raises(JWTError):
            decode_access_token(token)


class TestAuthenticateToken:
    """Tests for authenticate_token."""

    def test_valid_token_yields_identity(self) -> None:
        token = create_access_token(
            {"sub": "u-9", "name": "Eve", "email": "eve@example.com", "role": "admin"}
        )
        identity = authenticate_token(token)
        assert identity is not None
        assert identity.id == "u-9"
        assert identity.is_admin

    @pytest.mark.parametrize("token", [None, "", "not-a-jwt"])
    def test_invalid_tokens_yield_none(self, token: str | None) -> None:
        assert authenticate_token(token) is None

    def test_token_without_subject_yields_none(self) -> None:
        assert authenticate_token(create_access_token({"name": "nobody"})) is None


class TestIdentity:
    """Tests for Identity.from_token_payload."""

    def test_legacy_subject_claims(self) -> None:
        assert Identity.from_token_payload({"userId": "abc"}).id == "abc"
        assert Identity.from_token_payload({"id": 42}).id == "42"

    def test_defaults(self) -> None:
        identity = Identity.from_token_payload({"sub": "u-1"})
        assert identity.role == UserRole.STUDENT
        assert identity.is_active is True
        assert identity.is_admin is False

    @pytest.mark.parametrize(
        "name,email,expected",
        [
            ("Alice", "alice@example.com", "Alice"),
            ("", "bob@example.com", "bob"),
            ("", "", "User"),
        ],
    )
    def test_display_name(self, name: str, email: str, expected: str) -> None:
        assert Identity(id="x", name=name, email=email).display_name == expected
