"""Tests for token response normalization."""

import json

import pytest

from oidc_lite.errors import AuthFailure, ErrorKind
from oidc_lite.tokens import TokenResponse, normalize_token_response, parse_expires_in


class TestParseExpiresIn:
    """Tests for expires_in decoding."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (3600, 3600),
            ("3600", 3600),
            (" 120 ", 120),
            (3600.0, 3600),
            (None, None),
            (True, None),
            ("soon", None),
            (12.5, None),
            ({"seconds": 1}, None),
        ],
    )
    def test_values(self, value, expected):
        assert parse_expires_in(value) == expected


class TestTokenResponse:
    """Tests for the TokenResponse dataclass."""

    def test_from_token_response(self, token_body):
        tokens = TokenResponse.from_token_response(token_body)

        assert tokens.access_token == "access_123"
        assert tokens.id_token == "id.token.value"
        assert tokens.refresh_token == "refresh_456"
        assert tokens.expires_in == 3600
        assert tokens.token_type == "Bearer"
        assert tokens.scope == "openid profile"
        assert tokens.raw is token_body

    def test_token_type_defaults_to_bearer(self):
        tokens = TokenResponse.from_token_response({"access_token": "a"})
        assert tokens.token_type == "bearer"

    def test_missing_fields_are_none(self):
        tokens = TokenResponse.from_token_response({})
        assert tokens.access_token is None
        assert tokens.id_token is None
        assert tokens.refresh_token is None
        assert tokens.expires_in is None
        assert tokens.scope is None
        assert not tokens.has_refresh_token()

    def test_wrongly_typed_fields_are_dropped(self):
        tokens = TokenResponse.from_token_response({"access_token": 12, "scope": ["openid"]})
        assert tokens.access_token is None
        assert tokens.scope is None
        assert tokens.raw["access_token"] == 12

    def test_get_auth_header(self):
        assert TokenResponse(access_token="abc").get_auth_header() == "Bearer abc"
        assert TokenResponse().get_auth_header() is None

    def test_to_dict_omits_absent_fields(self):
        data = TokenResponse(access_token="abc", expires_in=60).to_dict()
        assert data == {"token_type": "bearer", "access_token": "abc", "expires_in": 60}

    def test_raw_not_in_repr(self):
        tokens = TokenResponse(access_token="abc", raw={"secret_field": "x"})
        assert "secret_field" not in repr(tokens)


class TestNormalizeTokenResponse:
    """Tests for normalize_token_response."""

    def test_string_expires_in(self):
        body = json.dumps({"access_token": "a", "expires_in": "3600"}).encode()
        tokens = normalize_token_response(body)
        assert tokens.expires_in == 3600

    def test_provider_specific_fields_kept_in_raw(self, token_body):
        tokens = normalize_token_response(json.dumps(token_body))
        assert tokens.raw["ext_expires_in"] == 7200

    def test_accepts_str_and_bytes(self, token_body):
        text = json.dumps(token_body)
        assert normalize_token_response(text) == normalize_token_response(text.encode())

    def test_invalid_json_raises_with_payload(self):
        with pytest.raises(AuthFailure) as exc_info:
            normalize_token_response(b"<html>gateway timeout</html>")

        assert exc_info.value.kind is ErrorKind.AUTH_FAILURE
        assert "Unable to decode response" in exc_info.value.message
        assert "<html>gateway timeout</html>" in exc_info.value.message

    def test_non_object_json_raises(self):
        with pytest.raises(AuthFailure, match="expected a JSON object"):
            normalize_token_response(b'["access_token"]')
