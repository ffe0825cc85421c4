"""
Caller Identity Tests
=====================

Bearer tokens, gateway headers and admin detection.
"""

import sys
from datetime import timedelta
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from evidence_engine.auth import create_access_token, decode_token, is_admin_email, resolve_caller
from evidence_engine.config import Settings


def auth_settings(**overrides):
    values = dict(jwt_secret_key="unit-test-secret", admin_emails="Admin@RentVault.test, ops@rentvault.test")
    values.update(overrides)
    return Settings(**values)


class TestTokens:
    """Tests for create_access_token / decode_token"""

    def test_round_trip(self):
        settings = auth_settings()
        token = create_access_token({"sub": "user-1"}, settings=settings)

        payload = decode_token(token, settings)

        assert payload["sub"] == "user-1"
        assert payload["type"] == "access"

    def test_expired(self):
        settings = auth_settings()
        token = create_access_token({"sub": "user-1"}, expires_delta=timedelta(seconds=-5), settings=settings)
        assert decode_token(token, settings) is None

    def test_wrong_secret(self):
        token = create_access_token({"sub": "user-1"}, settings=auth_settings(jwt_secret_key="other"))
        assert decode_token(token, auth_settings()) is None


class TestResolveCaller:
    """Tests for resolve_caller"""

    def test_bearer(self):
        settings = auth_settings()
        token = create_access_token({"sub": "user-1", "email": "ops@rentvault.test"}, settings=settings)

        caller = resolve_caller(f"Bearer {token}", None, None, settings)

        assert caller.user_id == "user-1"
        assert caller.is_admin

    def test_invalid_bearer_does_not_fall_back_to_headers(self):
        caller = resolve_caller("Bearer garbage", "user-1", "tenant@example.com", auth_settings())
        assert caller is None

    def test_token_without_subject(self):
        settings = auth_settings()
        token = create_access_token({"email": "tenant@example.com"}, settings=settings)
        assert resolve_caller(f"Bearer {token}", None, None, settings) is None

    def test_gateway_headers(self):
        caller = resolve_caller(None, " user-7 ", "tenant@example.com", auth_settings())
        assert caller.user_id == "user-7"
        assert caller.email == "tenant@example.com"
        assert not caller.is_admin

    def test_nothing_supplied(self):
        assert resolve_caller(None, None, None, auth_settings()) is None
        assert resolve_caller(None, "   ", None, auth_settings()) is None


class TestAdminEmails:

    def test_case_insensitive(self):
        assert is_admin_email("admin@rentvault.test", auth_settings())
        assert is_admin_email("  OPS@rentvault.test ", auth_settings())

    def test_not_admin(self):
        assert not is_admin_email(None, auth_settings())
        assert not is_admin_email("tenant@example.com", auth_settings())
