"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Two token sources are checked in priority order:
  1. x-auth-token header -- the header the frontend sends.
  2. Authorization: Bearer <token> header -- generic API clients.

get_caller() resolves the token to a Caller and hands it to the route as a
parameter. Nothing is attached to the request object.

The check is purely cryptographic: a valid token for a since-deleted user
still resolves. Routes that need the User record look it up themselves.

Layer rule: auth/dependencies.py may import from fastapi because this module
is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import logging

from fastapi import Request

from auth.models import Caller
from auth.tokens import TokenError, decode_access_token
from core.errors import Unauthenticated

logger = logging.getLogger("devconnect.auth")

TOKEN_HEADER = "x-auth-token"


def extract_token(request: Request) -> str | None:
    """Return the raw token from the request headers, or None if absent."""
    token = request.headers.get(TOKEN_HEADER)
    if token:
        return token
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:] or None
    return None


def get_caller(request: Request) -> Caller:
    """Require authentication. Raises Unauthenticated (401) otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(caller: Caller = Depends(get_caller)): ...
    """
    token = extract_token(request)
    if token is None:
        raise Unauthenticated("No token, authorization denied")
    try:
        user_id = decode_access_token(token)
    except TokenError as e:
        logger.debug("Rejected token on %s: %s", request.url.path, e)
        raise Unauthenticated("Token is not valid") from e
    return Caller(user_id=user_id)
