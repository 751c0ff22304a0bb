"""
Identity provider client.

Bearer tokens are opaque to this service: the provider's userinfo endpoint
tells us who the caller is, and its ``sub`` claim becomes the user id that
owns rides.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Optional

import requests

from ridelog.services.errors import AuthenticationError, IdentityProviderError


logger = logging.getLogger(__name__)


USERINFO_URL_ENV = "RIDELOG_USERINFO_URL"
AUTH_TIMEOUT_ENV = "RIDELOG_AUTH_TIMEOUT_S"
DEFAULT_TIMEOUT_S = 10.0


@dataclass
class UserIdentity:
    """Authenticated caller."""

    user_id: str
    email: Optional[str] = None
    name: Optional[str] = None
    claims: dict[str, Any] = field(default_factory=dict, repr=False)


class IdentityProvider:
    """Verifies bearer tokens against an OAuth/OIDC userinfo endpoint."""

    def __init__(self, userinfo_url: str, timeout: float = DEFAULT_TIMEOUT_S):
        self.userinfo_url = userinfo_url
        self.timeout = timeout

    def verify(self, token: str) -> UserIdentity:
        """
        Resolve a bearer token to a user.

        Raises:
            AuthenticationError: token empty or rejected by the provider
            IdentityProviderError: provider unreachable or returned garbage
        """
        if not token:
            raise AuthenticationError("Missing bearer token")

        headers = {"Authorization": f"Bearer {token}"}
        try:
            response = requests.get(self.userinfo_url, headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"Identity provider request failed: {e}")
            raise IdentityProviderError("Identity provider unreachable") from e

        if response.status_code in (401, 403):
            logger.warning(f"Identity provider rejected token ({response.status_code})")
            raise AuthenticationError("Invalid or expired token")

        try:
            response.raise_for_status()
            claims = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.error(f"Identity provider returned an unusable response: {e}")
            raise IdentityProviderError("Identity provider returned an invalid response") from e

        if not isinstance(claims, dict) or not claims.get("sub"):
            raise IdentityProviderError("Identity provider response has no subject")

        return UserIdentity(
            user_id=str(claims["sub"]),
            email=claims.get("email"),
            name=claims.get("name"),
            claims=claims,
        )


# Global provider instance (configured from the environment on first use)
_identity_provider: Optional[IdentityProvider] = None


def get_identity_provider() -> IdentityProvider:
    """
    Get the global identity provider.

    Raises:
        IdentityProviderError: when RIDELOG_USERINFO_URL is not set
    """
    global _identity_provider
    if _identity_provider is None:
        url = os.getenv(USERINFO_URL_ENV)
        if not url:
            raise IdentityProviderError(f"{USERINFO_URL_ENV} is not configured")
        timeout = float(os.getenv(AUTH_TIMEOUT_ENV, str(DEFAULT_TIMEOUT_S)))
        _identity_provider = IdentityProvider(url, timeout)
    return _identity_provider


def init_identity_provider(userinfo_url: str, timeout: float = DEFAULT_TIMEOUT_S) -> IdentityProvider:
    """Initialize the global identity provider explicitly."""
    global _identity_provider
    _identity_provider = IdentityProvider(userinfo_url, timeout)
    return _identity_provider
