from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from core.security import decode_token
from schemas.auth import AuthenticatedUser


# --------------------------------------------------------------------------- #
# Common constants / helpers
# --------------------------------------------------------------------------- #
LOGGER = logging.getLogger(__name__)
BEARER = "Bearer"


def unauthorized(detail: str = "Could not validate credentials") -> HTTPException:
    """Return the canonical 401 response."""
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": BEARER},
    )


# Tokens are issued by the main application's login endpoint.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


# --------------------------------------------------------------------------- #
# The dependency
# --------------------------------------------------------------------------- #
async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
) -> AuthenticatedUser:
    """
    Resolve the authenticated caller from a JWT.

    The token's `sub` claim is the user id; user records themselves are owned
    by the main application, so no database lookup happens here.

    Raises
    ------
    HTTPException(401)
        If the token is missing, malformed, expired, or has no subject.
    """
    token_data = decode_token(token)

    sub = (token_data.sub or "").strip()
    if not sub:
        LOGGER.debug("Token missing 'sub' claim")
        raise unauthorized()
    if len(sub) > 64:
        LOGGER.debug("Token 'sub' longer than a user id")
        raise unauthorized()

    return AuthenticatedUser(id=sub, scopes=token_data.scopes)


CurrentUser = Annotated[AuthenticatedUser, Depends(get_current_user)]
