"""
social/models.py -- Domain dataclasses for posts and profiles.

These are pure data containers with zero logic. Merging and collection edits
live in social/store.py and social/actions.py.

Nested collections are ordered most-recent-first: index 0 is the newest
element. version is the optimistic-concurrency counter maintained by the
store; it never leaves the server.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Like:
    user: str


@dataclass
class Comment:
    """A comment on a post. name/avatar are a snapshot of the author at write time."""

    user: str
    text: str
    name: str = ""
    avatar: str = ""
    id: Optional[str] = None
    date: str = ""


@dataclass
class Post:
    """A post plus its embedded likes and comments.

    user is the author's id. name/avatar are copied from the author when the
    post is created and never refreshed.
    """

    user: str
    text: str
    name: str = ""
    avatar: str = ""
    id: Optional[str] = None
    likes: list[Like] = field(default_factory=list)
    comments: list[Comment] = field(default_factory=list)
    date: str = ""
    version: int = 0


@dataclass
class Social:
    youtube: Optional[str] = None
    facebook: Optional[str] = None
    twitter: Optional[str] = None
    instagram: Optional[str] = None
    linkedin: Optional[str] = None


@dataclass
class Experience:
    title: str
    company: str
    from_date: str
    to_date: Optional[str] = None
    location: Optional[str] = None
    current: bool = False
    description: Optional[str] = None
    id: Optional[str] = None


@dataclass
class Education:
    school: str
    degree: str
    fieldofstudy: str
    from_date: str
    to_date: Optional[str] = None
    current: bool = False
    description: Optional[str] = None
    id: Optional[str] = None


@dataclass
class Profile:
    """A member's developer profile. One per user (user is unique)."""

    user: str
    status: Optional[str] = None
    company: Optional[str] = None
    website: Optional[str] = None
    location: Optional[str] = None
    bio: Optional[str] = None
    githubusername: Optional[str] = None
    skills: list[str] = field(default_factory=list)
    social: Social = field(default_factory=Social)
    experience: list[Experience] = field(default_factory=list)
    education: list[Education] = field(default_factory=list)
    id: Optional[str] = None
    date: str = ""
    version: int = 0


@dataclass
class ProfilePatch:
    """A partial profile update. None means "not supplied, keep what is stored".

    social links merge one by one: a patch carrying only twitter leaves the
    stored youtube link alone.
    """

    status: Optional[str] = None
    company: Optional[str] = None
    website: Optional[str] = None
    location: Optional[str] = None
    bio: Optional[str] = None
    githubusername: Optional[str] = None
    skills: Optional[list[str]] = None
    social: Social = field(default_factory=Social)
