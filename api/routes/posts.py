"""
api/routes/posts.py -- Posts, likes and comments.

Routes (all require auth):
  GET    /api/posts                                  -- every post, newest first
  POST   /api/posts                                  -- create a post
  GET    /api/posts/{post_id}                        -- one post
  DELETE /api/posts/{post_id}                        -- delete own post
  PUT    /api/posts/like/{post_id}                   -- like; returns likes
  PUT    /api/posts/unlike/{post_id}                 -- unlike; returns likes
  POST   /api/posts/comment/{post_id}                -- comment; returns comments
  DELETE /api/posts/comment/{post_id}/{comment_id}   -- delete own comment; returns comments

Handlers are plain `def`: the stores are synchronous, so FastAPI runs them in
its threadpool and the event loop never waits on SQLite.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from api.models import CommentOut, LikeOut, MessageResponse, PostResponse, TextBody
from auth.dependencies import get_caller
from auth.models import Caller, User
from auth.store import UserStore
from core.errors import NotFound
from social import actions
from social.store import SocialStore

router = APIRouter()


def _author(request: Request, caller: Caller) -> User:
    user_store: UserStore = request.app.state.user_store
    user = user_store.get_by_id(caller.user_id)
    if user is None:
        raise NotFound("User not found")
    return user


@router.get("/posts", response_model=list[PostResponse])
def list_posts(request: Request, caller: Caller = Depends(get_caller)) -> list[PostResponse]:
    social: SocialStore = request.app.state.social
    return [PostResponse.from_post(p) for p in social.list_posts()]


@router.post("/posts", response_model=PostResponse)
def create_post(request: Request, body: TextBody, caller: Caller = Depends(get_caller)) -> PostResponse:
    """Create a post. The author's current name and avatar are copied onto it."""
    social: SocialStore = request.app.state.social
    author = _author(request, caller)
    post = actions.create_post(social, caller.user_id, body.text, author.name, author.avatar)
    return PostResponse.from_post(post)


@router.get("/posts/{post_id}", response_model=PostResponse)
def get_post(request: Request, post_id: str, caller: Caller = Depends(get_caller)) -> PostResponse:
    social: SocialStore = request.app.state.social
    return PostResponse.from_post(actions.get_post(social, post_id))


@router.delete("/posts/{post_id}", response_model=MessageResponse)
def delete_post(request: Request, post_id: str, caller: Caller = Depends(get_caller)) -> MessageResponse:
    """Delete a post. 404 if absent, 401 if the caller is not the author."""
    social: SocialStore = request.app.state.social
    actions.delete_post(social, caller.user_id, post_id)
    return MessageResponse(msg="Post removed")


@router.put("/posts/like/{post_id}", response_model=list[LikeOut])
def like_post(request: Request, post_id: str, caller: Caller = Depends(get_caller)) -> list[LikeOut]:
    social: SocialStore = request.app.state.social
    likes = actions.like_post(social, caller.user_id, post_id)
    return [LikeOut(user=like.user) for like in likes]


@router.put("/posts/unlike/{post_id}", response_model=list[LikeOut])
def unlike_post(request: Request, post_id: str, caller: Caller = Depends(get_caller)) -> list[LikeOut]:
    social: SocialStore = request.app.state.social
    likes = actions.unlike_post(social, caller.user_id, post_id)
    return [LikeOut(user=like.user) for like in likes]


@router.post("/posts/comment/{post_id}", response_model=list[CommentOut])
def add_comment(
    request: Request,
    post_id: str,
    body: TextBody,
    caller: Caller = Depends(get_caller),
) -> list[CommentOut]:
    social: SocialStore = request.app.state.social
    author = _author(request, caller)
    comments = actions.add_comment(social, caller.user_id, post_id, body.text, author.name, author.avatar)
    return [CommentOut.from_comment(c) for c in comments]


@router.delete("/posts/comment/{post_id}/{comment_id}", response_model=list[CommentOut])
def delete_comment(
    request: Request,
    post_id: str,
    comment_id: str,
    caller: Caller = Depends(get_caller),
) -> list[CommentOut]:
    """Remove one comment by id. 404 if the post or comment is absent, 401 if not the author."""
    social: SocialStore = request.app.state.social
    comments = actions.remove_comment(social, caller.user_id, post_id, comment_id)
    return [CommentOut.from_comment(c) for c in comments]
