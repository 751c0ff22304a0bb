"""
Tests for the identity provider client.
"""

from unittest import mock

import pytest
import requests

from ridelog.services import identity
from ridelog.services.errors import AuthenticationError, IdentityProviderError
from ridelog.services.identity import IdentityProvider, get_identity_provider, init_identity_provider


USERINFO_URL = "https://idp.example.com/userinfo"


def _response(status_code=200, payload=None):
    response = mock.Mock()
    response.status_code = status_code
    response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status_code} error")
    return response


class TestIdentityProvider:
    """Tests for IdentityProvider.verify."""

    @pytest.fixture
    def provider(self):
        return IdentityProvider(USERINFO_URL, timeout=2.0)

    def test_verify_success(self, provider):
        payload = {"sub": "auth0|alice", "email": "alice@example.com", "name": "Alice"}
        with mock.patch.object(identity.requests, "get", return_value=_response(200, payload)) as get:
            user = provider.verify("token-123")

        get.assert_called_once_with(
            USERINFO_URL,
            headers={"Authorization": "Bearer token-123"},
            timeout=2.0,
        )
        assert user.user_id == "auth0|alice"
        assert user.email == "alice@example.com"
        assert user.claims == payload

    def test_empty_token(self, provider):
        with pytest.raises(AuthenticationError):
            provider.verify("")

    @pytest.mark.parametrize("status_code", [401, 403])
    def test_rejected_token(self, provider, status_code):
        with mock.patch.object(identity.requests, "get", return_value=_response(status_code)):
            with pytest.raises(AuthenticationError):
                provider.verify("expired")

    def test_provider_unreachable(self, provider):
        error = requests.exceptions.ConnectionError("refused")
        with mock.patch.object(identity.requests, "get", side_effect=error):
            with pytest.raises(IdentityProviderError, match="unreachable"):
                provider.verify("token")

    def test_provider_server_error(self, provider):
        with mock.patch.object(identity.requests, "get", return_value=_response(500)):
            with pytest.raises(IdentityProviderError):
                provider.verify("token")

    def test_invalid_json(self, provider):
        response = _response(200)
        response.json.side_effect = ValueError("not json")
        with mock.patch.object(identity.requests, "get", return_value=response):
            with pytest.raises(IdentityProviderError):
                provider.verify("token")

    def test_missing_subject(self, provider):
        with mock.patch.object(identity.requests, "get", return_value=_response(200, {"email": "x@y"})):
            with pytest.raises(IdentityProviderError, match="subject"):
                provider.verify("token")


class TestGlobalProvider:
    """Tests for the module-level provider."""

    def test_not_configured(self, reset_identity_provider):
        with pytest.raises(IdentityProviderError, match=identity.USERINFO_URL_ENV):
            get_identity_provider()

    def test_configured_from_environment(self, reset_identity_provider, monkeypatch):
        monkeypatch.setenv(identity.USERINFO_URL_ENV, USERINFO_URL)
        monkeypatch.setenv(identity.AUTH_TIMEOUT_ENV, "3.5")

        provider = get_identity_provider()

        assert provider.userinfo_url == USERINFO_URL
        assert provider.timeout == 3.5
        assert get_identity_provider() is provider

    def test_init_identity_provider(self, reset_identity_provider):
        provider = init_identity_provider(USERINFO_URL)

        assert get_identity_provider() is provider
        assert provider.timeout == identity.DEFAULT_TIMEOUT_S
