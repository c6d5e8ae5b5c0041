"""
api/routes/profile.py -- Developer profiles.

Routes:
  GET    /api/profile/me                   -- caller's profile (auth)
  POST   /api/profile                      -- create or merge-update caller's profile (auth)
  GET    /api/profile                      -- all profiles (public)
  GET    /api/profile/user/{user_id}       -- one member's profile (public)
  DELETE /api/profile                      -- delete caller's profile and account (auth)
  PUT    /api/profile/experience           -- add experience (auth)
  DELETE /api/profile/experience/{exp_id}  -- remove experience (auth)
  PUT    /api/profile/education            -- add education (auth)
  DELETE /api/profile/education/{edu_id}   -- remove education (auth)
  GET    /api/profile/github/{username}    -- public GitHub repos (public)

Every profile response has the owner's name and avatar joined in from the
credential store. Posts written by a deleted account are left in place.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, Path, Request

from api.models import EducationCreate, ExperienceCreate, MessageResponse, ProfileResponse, ProfileUpsert
from auth.dependencies import get_caller
from auth.models import Caller
from auth.store import UserStore
from core.github import RepositoryFetcher
from social import actions
from social.models import Profile
from social.store import SocialStore

logger = logging.getLogger("devconnect.api")

router = APIRouter()

# GitHub's own username rule: alphanumerics and single hyphens, max 39 chars.
_GITHUB_USERNAME = r"^[A-Za-z0-9](?:[A-Za-z0-9-]{0,37}[A-Za-z0-9])?$"


def _with_owner(request: Request, profile: Profile) -> ProfileResponse:
    user_store: UserStore = request.app.state.user_store
    return ProfileResponse.from_profile(profile, user_store.get_by_id(profile.user))


@router.get("/profile/me", response_model=ProfileResponse)
def my_profile(request: Request, caller: Caller = Depends(get_caller)) -> ProfileResponse:
    social: SocialStore = request.app.state.social
    profile = actions.get_profile(social, caller.user_id, "There is no profile for this user")
    return _with_owner(request, profile)


@router.post("/profile", response_model=ProfileResponse)
def save_profile(request: Request, body: ProfileUpsert, caller: Caller = Depends(get_caller)) -> ProfileResponse:
    """Create the caller's profile, or merge the supplied fields into it.

    Fields left out of the body keep their stored values. status and skills
    are required only when the profile does not exist yet.
    """
    social: SocialStore = request.app.state.social
    profile = actions.save_profile(social, caller.user_id, body.to_patch())
    return _with_owner(request, profile)


@router.get("/profile", response_model=list[ProfileResponse])
def list_profiles(request: Request) -> list[ProfileResponse]:
    social: SocialStore = request.app.state.social
    user_store: UserStore = request.app.state.user_store
    profiles = social.list_profiles()
    owners = user_store.get_many([p.user for p in profiles])
    return [ProfileResponse.from_profile(p, owners.get(p.user)) for p in profiles]


@router.get("/profile/user/{user_id}", response_model=ProfileResponse)
def profile_by_user(request: Request, user_id: str) -> ProfileResponse:
    social: SocialStore = request.app.state.social
    return _with_owner(request, actions.get_profile(social, user_id))


@router.delete("/profile", response_model=MessageResponse)
def delete_account(request: Request, caller: Caller = Depends(get_caller)) -> MessageResponse:
    """Delete the caller's profile, then the account itself."""
    social: SocialStore = request.app.state.social
    user_store: UserStore = request.app.state.user_store
    social.delete_profile_by_user(caller.user_id)
    user_store.delete_user(caller.user_id)
    logger.info("Account %s deleted", caller.user_id)
    return MessageResponse(msg="User deleted")


@router.put("/profile/experience", response_model=ProfileResponse)
def add_experience(
    request: Request,
    body: ExperienceCreate,
    caller: Caller = Depends(get_caller),
) -> ProfileResponse:
    social: SocialStore = request.app.state.social
    return _with_owner(request, actions.add_experience(social, caller.user_id, body.to_domain()))


@router.delete("/profile/experience/{exp_id}", response_model=ProfileResponse)
def remove_experience(request: Request, exp_id: str, caller: Caller = Depends(get_caller)) -> ProfileResponse:
    social: SocialStore = request.app.state.social
    return _with_owner(request, actions.remove_experience(social, caller.user_id, exp_id))


@router.put("/profile/education", response_model=ProfileResponse)
def add_education(
    request: Request,
    body: EducationCreate,
    caller: Caller = Depends(get_caller),
) -> ProfileResponse:
    social: SocialStore = request.app.state.social
    return _with_owner(request, actions.add_education(social, caller.user_id, body.to_domain()))


@router.delete("/profile/education/{edu_id}", response_model=ProfileResponse)
def remove_education(request: Request, edu_id: str, caller: Caller = Depends(get_caller)) -> ProfileResponse:
    social: SocialStore = request.app.state.social
    return _with_owner(request, actions.remove_education(social, caller.user_id, edu_id))


@router.get("/profile/github/{username}")
def github_repos(
    request: Request,
    username: str = Path(pattern=_GITHUB_USERNAME),
) -> list[dict[str, Any]]:
    """Proxy the member's public GitHub repositories. 404 if GitHub says no."""
    github: RepositoryFetcher = request.app.state.github
    return github.fetch_repositories(username)
