"""
api/routes/users.py -- Member registration.

Routes:
  POST /api/users  -- register; returns {token} so the client is logged in at once

Duplicate emails are caught twice: a lookup before hashing (cheap, gives the
friendly error) and the UNIQUE constraint on insert (covers two concurrent
registrations of the same address).
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from sqlalchemy.exc import IntegrityError

from api.limiter import limiter
from api.models import RegisterRequest, TokenResponse
from auth.gravatar import gravatar_url
from auth.models import User
from auth.store import UserStore
from auth.tokens import create_access_token, hash_password
from core.config import get_settings
from core.errors import ValidationFailed

logger = logging.getLogger("devconnect.api")

router = APIRouter()

_DUPLICATE = "User already exists"


@limiter.limit(get_settings().auth_rate_limit)
@router.post("/users", response_model=TokenResponse)
def register(request: Request, body: RegisterRequest) -> TokenResponse:
    """Create an account with a Gravatar avatar and return an access token."""
    user_store: UserStore = request.app.state.user_store
    if user_store.get_by_email(body.email) is not None:
        raise ValidationFailed.single(_DUPLICATE)

    new_user = User(
        name=body.name,
        email=body.email,
        hashed_password=hash_password(body.password),
        avatar=gravatar_url(body.email),
    )
    try:
        user_id = user_store.create_user(new_user)
    except IntegrityError as exc:
        raise ValidationFailed.single(_DUPLICATE) from exc

    logger.info("Registered user %s", user_id)
    return TokenResponse(token=create_access_token(user_id))
