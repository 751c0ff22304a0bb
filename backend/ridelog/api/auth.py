"""
Bearer authentication dependency for API routes.
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ridelog.services.errors import AuthenticationError, IdentityProviderError
from ridelog.services.identity import UserIdentity, get_identity_provider


logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> UserIdentity:
    """Resolve the Authorization: Bearer header to the calling user."""
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Not authenticated")

    try:
        return get_identity_provider().verify(credentials.credentials)
    except AuthenticationError as e:
        raise _unauthorized(str(e))
    except IdentityProviderError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
