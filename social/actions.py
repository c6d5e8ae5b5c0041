"""
social/actions.py -- Post and profile operations invoked by the API routes.

Every nested-collection mutation (like, unlike, add/remove comment,
add/remove experience, add/remove education) is one of the four
CollectionEditor instances below applied inside SocialStore.update_post() or
SocialStore.update_profile(). Check order is fixed everywhere:

  1. aggregate exists            -> NotFound
  2. element exists / not a dupe -> NotFound, InvalidState, DuplicateOperation
  3. caller owns the element     -> Unauthorized

Profile entries (experience, education) are always looked up in the
caller's own profile, so another member's entry id simply does not match.

Functions take the caller's user id as a plain string; the API layer unwraps
it from auth.models.Caller.
"""

import dataclasses
import logging
from collections.abc import Callable
from typing import Any

from sqlalchemy.exc import IntegrityError

from core.editor import CollectionEditor
from core.errors import InvalidState, NotFound, Unauthorized, ValidationFailed
from core.ids import new_id, now_iso
from social.models import Comment, Education, Experience, Like, Post, Profile, ProfilePatch
from social.store import SocialStore, apply_profile_patch

logger = logging.getLogger("devconnect.social")


def _build_comment(caller_id: str, draft: Comment) -> Comment:
    return dataclasses.replace(draft, user=caller_id, id=new_id(), date=now_iso())


def _stamp_id(caller_id: str, entry: Any) -> Any:
    return dataclasses.replace(entry, id=new_id())


LIKES: CollectionEditor[Post, Like] = CollectionEditor(
    accessor=lambda post: post.likes,
    build=lambda caller_id, _payload: Like(user=caller_id),
    is_duplicate=lambda like, caller_id: like.user == caller_id,
    duplicate_message="Post already liked",
    matches=lambda like, _key, caller_id: like.user == caller_id,
    missing_error=InvalidState,
    missing_message="Post has not yet been liked",
)

COMMENTS: CollectionEditor[Post, Comment] = CollectionEditor(
    accessor=lambda post: post.comments,
    build=_build_comment,
    owner_of=lambda _post, comment: comment.user,
    missing_message="Comment does not exist",
)

EXPERIENCE: CollectionEditor[Profile, Experience] = CollectionEditor(
    accessor=lambda profile: profile.experience,
    build=_stamp_id,
    owner_of=lambda profile, _entry: profile.user,
    missing_message="Experience not found",
)

EDUCATION: CollectionEditor[Profile, Education] = CollectionEditor(
    accessor=lambda profile: profile.education,
    build=_stamp_id,
    owner_of=lambda profile, _entry: profile.user,
    missing_message="Education not found",
)

_NO_PROFILE = "There is no profile for this user"


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------


def create_post(store: SocialStore, caller_id: str, text: str, name: str, avatar: str) -> Post:
    """Create a post with a snapshot of the author's name and avatar."""
    post_id = store.create_post(Post(user=caller_id, text=text, name=name, avatar=avatar))
    return store.get_post(post_id)


def get_post(store: SocialStore, post_id: str) -> Post:
    post = store.get_post(post_id)
    if post is None:
        raise NotFound("Post not found")
    return post


def delete_post(store: SocialStore, caller_id: str, post_id: str) -> None:
    """Delete a post. Only its author may do so."""
    post = get_post(store, post_id)
    if post.user != caller_id:
        raise Unauthorized("User not authorised")
    store.delete_post(post_id)
    logger.info("Post %s removed by %s", post_id, caller_id)


def _edit_post(store: SocialStore, post_id: str, edit: Callable[[Post], Any]) -> Post:
    post = store.update_post(post_id, edit)
    if post is None:
        raise NotFound("Post not found")
    return post


def like_post(store: SocialStore, caller_id: str, post_id: str) -> list[Like]:
    """Add the caller's like. Raises DuplicateOperation on a second like."""
    return _edit_post(store, post_id, lambda post: LIKES.add(post, caller_id)).likes


def unlike_post(store: SocialStore, caller_id: str, post_id: str) -> list[Like]:
    """Remove the caller's like. Raises InvalidState if the caller never liked it."""
    return _edit_post(store, post_id, lambda post: LIKES.remove(post, caller_id)).likes


def add_comment(store: SocialStore, caller_id: str, post_id: str, text: str, name: str, avatar: str) -> list[Comment]:
    draft = Comment(user=caller_id, text=text, name=name, avatar=avatar)
    return _edit_post(store, post_id, lambda post: COMMENTS.add(post, caller_id, draft)).comments


def remove_comment(store: SocialStore, caller_id: str, post_id: str, comment_id: str) -> list[Comment]:
    """Remove the comment whose id is comment_id, if the caller wrote it."""
    return _edit_post(store, post_id, lambda post: COMMENTS.remove(post, caller_id, comment_id)).comments


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


def get_profile(store: SocialStore, user_id: str, message: str = "Profile not found") -> Profile:
    profile = store.get_profile_by_user(user_id)
    if profile is None:
        raise NotFound(message)
    return profile


def _required_for_create(patch: ProfilePatch) -> None:
    errors = []
    if not patch.status:
        errors.append({"msg": "Status is required", "param": "status", "location": "body"})
    if not patch.skills:
        errors.append({"msg": "Skills is required", "param": "skills", "location": "body"})
    if errors:
        raise ValidationFailed(errors)


def _create_or_update(
    store: SocialStore,
    caller_id: str,
    mutate: Callable[[Profile], Any],
    build_new: Callable[[], Profile],
) -> Profile:
    """Update the caller's profile if it exists, otherwise create it.

    The two branches never mix: a missing profile is built from scratch by
    build_new(); only an existing one goes through mutate. A create that
    loses the unique-owner race to a concurrent request falls back to the
    update branch, so the caller still sees one logical operation.
    """
    profile = store.update_profile(caller_id, mutate)
    if profile is not None:
        return profile
    fresh = build_new()
    try:
        store.create_profile(fresh)
    except IntegrityError:
        logger.info("Profile for %s created concurrently, merging instead", caller_id)
        profile = store.update_profile(caller_id, mutate)
        if profile is None:
            raise
        return profile
    logger.info("Profile created for %s", caller_id)
    return store.get_profile_by_user(caller_id)


def save_profile(store: SocialStore, caller_id: str, patch: ProfilePatch) -> Profile:
    """Create the caller's profile from patch, or merge patch into the existing one.

    status and skills are required only when creating.
    """

    def build_new() -> Profile:
        _required_for_create(patch)
        return apply_profile_patch(Profile(user=caller_id), patch)

    return _create_or_update(store, caller_id, lambda profile: apply_profile_patch(profile, patch), build_new)


def _add_entry(store: SocialStore, caller_id: str, editor: CollectionEditor, entry: Any) -> Profile:
    def build_new() -> Profile:
        profile = Profile(user=caller_id)
        editor.add(profile, caller_id, entry)
        return profile

    return _create_or_update(store, caller_id, lambda profile: editor.add(profile, caller_id, entry), build_new)


def _remove_entry(store: SocialStore, caller_id: str, editor: CollectionEditor, entry_id: str) -> Profile:
    profile = store.update_profile(caller_id, lambda p: editor.remove(p, caller_id, entry_id))
    if profile is None:
        raise NotFound(_NO_PROFILE)
    return profile


def add_experience(store: SocialStore, caller_id: str, experience: Experience) -> Profile:
    return _add_entry(store, caller_id, EXPERIENCE, experience)


def remove_experience(store: SocialStore, caller_id: str, exp_id: str) -> Profile:
    return _remove_entry(store, caller_id, EXPERIENCE, exp_id)


def add_education(store: SocialStore, caller_id: str, education: Education) -> Profile:
    return _add_entry(store, caller_id, EDUCATION, education)


def remove_education(store: SocialStore, caller_id: str, edu_id: str) -> Profile:
    return _remove_entry(store, caller_id, EDUCATION, edu_id)
