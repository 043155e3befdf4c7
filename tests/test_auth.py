"""Tests for quotagate/security/auth.py — API key authentication."""

import pytest
from fastapi import HTTPException

from quotagate.security.auth import verify_api_key


class TestVerifyApiKey:

    async def test_missing_key_returns_401(self):
        with pytest.raises(HTTPException) as exc_info:
            await verify_api_key(api_key=None)
        assert exc_info.value.status_code == 401

    async def test_invalid_key_returns_403(self, override_settings):
        override_settings(GATEWAY_API_KEYS="valid-key=alice")
        with pytest.raises(HTTPException) as exc_info:
            await verify_api_key(api_key="wrong-key")
        assert exc_info.value.status_code == 403

    async def test_valid_key_returns_user_id(self, override_settings):
        override_settings(GATEWAY_API_KEYS="key-a=alice,key-b=bob")
        assert await verify_api_key(api_key="key-b") == "bob"

    async def test_non_ascii_key_rejected(self, override_settings):
        override_settings(GATEWAY_API_KEYS="key-a=alice")
        with pytest.raises(HTTPException) as exc_info:
            await verify_api_key(api_key="kéy-a")
        assert exc_info.value.status_code == 403
