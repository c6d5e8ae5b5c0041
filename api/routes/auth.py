"""
api/routes/auth.py -- Login and current-user endpoints.

Routes:
  POST /api/auth  -- email/password login; returns {token}
  GET  /api/auth  -- the caller's own account (requires auth)

Security:
  POST /auth is rate-limited per IP (Settings.auth_rate_limit).
  authenticate_user() provides timing equalization -- use it, never inline
  get_by_email() + verify_password().
  Wrong email and wrong password produce the same "Invalid Credentials".
  Cache-Control: no-store on the token response.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from api.limiter import limiter
from api.models import LoginRequest, TokenResponse, UserResponse
from auth.dependencies import get_caller
from auth.models import Caller
from auth.store import UserStore
from auth.tokens import authenticate_user, create_access_token
from core.config import get_settings
from core.errors import NotFound, ValidationFailed

router = APIRouter()


@limiter.limit(get_settings().auth_rate_limit)  # must be ABOVE @router to preserve FastAPI introspection
@router.post("/auth", response_model=TokenResponse)
def login(request: Request, response: Response, body: LoginRequest) -> TokenResponse:
    """Authenticate with email and password and return an access token."""
    user_store: UserStore = request.app.state.user_store
    user = authenticate_user(user_store, body.email, body.password)
    response.headers["Cache-Control"] = "no-store"
    if user is None:
        raise ValidationFailed.single("Invalid Credentials")
    return TokenResponse(token=create_access_token(user.id))


@router.get("/auth", response_model=UserResponse)
def current_user(request: Request, caller: Caller = Depends(get_caller)) -> UserResponse:
    """Return the caller's account without the password hash.

    The token may outlive the account it names; a deleted user gets 404.
    """
    user_store: UserStore = request.app.state.user_store
    user = user_store.get_by_id(caller.user_id)
    if user is None:
        raise NotFound("User not found")
    return UserResponse.from_user(user)
