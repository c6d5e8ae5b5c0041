"""
social/store.py -- SQLAlchemy-backed Aggregate Repository for posts and profiles.

Uses SQLAlchemy Core (not ORM) so the dataclasses in social/models.py remain
the authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change.

Pattern: Repository + Data Mapper. SocialStore is the repository; the
_row_to_* functions are the mappers. Nested collections (likes, comments,
skills, social, experience, education) are embedded in their aggregate row as
JSON text, so an aggregate is always read and written as a unit.

Concurrency: every read-modify-write goes through _compare_and_set(). The
row's version is read with the aggregate and the UPDATE only matches if the
version is unchanged; on a miss the whole load -> mutate -> write cycle is
retried. Two concurrent likes on one post therefore both land, and the
duplicate check always runs against the latest committed likes. If the
mutation raises, the connection closes without writing anything.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = SocialStore("sqlite:///:memory:")
    post_id = store.create_post(Post(user=uid, text="hello"))
    store.update_post(post_id, lambda post: post.likes.insert(0, Like(user=uid)))
    store.close()
"""

import json
import logging
from collections.abc import Callable
from dataclasses import asdict
from typing import Any, Optional

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Engine

from core.config import get_settings
from core.errors import Internal
from core.ids import new_id, now_iso
from social.models import Comment, Education, Experience, Like, Post, Profile, ProfilePatch, Social

logger = logging.getLogger("devconnect.store")

# Bounded so a pathological hot aggregate surfaces as a 500 instead of spinning.
_MAX_CAS_ATTEMPTS = 5

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_posts = Table(
    "posts",
    metadata,
    Column("id", String(24), primary_key=True),
    Column("user_id", String(24), nullable=False, index=True),
    Column("text", Text, nullable=False),
    Column("name", String(255)),
    Column("avatar", Text),
    Column("likes", Text, nullable=False, server_default="[]"),  # JSON array
    Column("comments", Text, nullable=False, server_default="[]"),  # JSON array
    Column("date", String(32), nullable=False),
    Column("version", Integer, nullable=False, server_default="0"),
)

_profiles = Table(
    "profiles",
    metadata,
    Column("id", String(24), primary_key=True),
    Column("user_id", String(24), nullable=False, unique=True),
    Column("status", String(255)),
    Column("company", String(255)),
    Column("website", String(255)),
    Column("location", String(255)),
    Column("bio", Text),
    Column("githubusername", String(255)),
    Column("skills", Text, nullable=False, server_default="[]"),  # JSON array
    Column("social", Text, nullable=False, server_default="{}"),  # JSON object
    Column("experience", Text, nullable=False, server_default="[]"),  # JSON array
    Column("education", Text, nullable=False, server_default="[]"),  # JSON array
    Column("date", String(32), nullable=False),
    Column("version", Integer, nullable=False, server_default="0"),
)

_PROFILE_SCALARS = ("status", "company", "website", "location", "bio", "githubusername")


# ---------------------------------------------------------------------------
# Merge
# ---------------------------------------------------------------------------


def apply_profile_patch(profile: Profile, patch: ProfilePatch) -> Profile:
    """Overwrite only the fields the patch supplies. Mutates and returns profile.

    Scalars and skills are replaced when not None. Social links merge one at
    a time. Experience and education are never touched by a patch -- they
    change only through their own collection editors.
    """
    for name in _PROFILE_SCALARS:
        value = getattr(patch, name)
        if value is not None:
            setattr(profile, name, value)
    if patch.skills is not None:
        profile.skills = list(patch.skills)
    for name, value in asdict(patch.social).items():
        if value is not None:
            setattr(profile.social, name, value)
    return profile


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class SocialStore:
    def __init__(self, db_url: Optional[str] = None) -> None:
        db_url = db_url or get_settings().database_url
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            # FastAPI runs sync handlers in a threadpool, so one connection
            # may be touched from several threads over its lifetime.
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        metadata.create_all(self.engine)

    def ping(self) -> bool:
        with self.engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1

    # ------------------------------------------------------------------
    # Posts
    # ------------------------------------------------------------------

    def create_post(self, post: Post) -> str:
        """Insert a new post and return its assigned id."""
        post_id = new_id()
        with self.engine.connect() as conn:
            conn.execute(
                _posts.insert().values(
                    id=post_id,
                    user_id=post.user,
                    text=post.text,
                    name=post.name,
                    avatar=post.avatar,
                    date=now_iso(),
                    version=0,
                    **_post_collections(post),
                )
            )
            conn.commit()
        return post_id

    def get_post(self, post_id: str) -> Optional[Post]:
        with self.engine.connect() as conn:
            row = conn.execute(_posts.select().where(_posts.c.id == post_id)).fetchone()
        return _row_to_post(row) if row is not None else None

    def list_posts(self) -> list[Post]:
        """Return every post, newest first."""
        with self.engine.connect() as conn:
            rows = conn.execute(_posts.select().order_by(_posts.c.date.desc())).fetchall()
        return [_row_to_post(r) for r in rows]

    def delete_post(self, post_id: str) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(_posts.delete().where(_posts.c.id == post_id))
            conn.commit()
        return result.rowcount > 0

    def update_post(self, post_id: str, mutate: Callable[[Post], Any]) -> Optional[Post]:
        """Apply mutate to the stored post's likes/comments and persist atomically.

        Returns the updated Post, or None if post_id does not exist. Errors
        raised by mutate propagate and nothing is written.
        """
        return self._compare_and_set(_posts, _posts.c.id, post_id, _row_to_post, _post_collections, mutate)

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def create_profile(self, profile: Profile) -> str:
        """Insert a new profile and return its assigned id.

        Raises sqlalchemy.exc.IntegrityError if the user already has one.
        """
        profile_id = new_id()
        with self.engine.connect() as conn:
            conn.execute(
                _profiles.insert().values(
                    id=profile_id,
                    user_id=profile.user,
                    date=now_iso(),
                    version=0,
                    **_profile_values(profile),
                )
            )
            conn.commit()
        return profile_id

    def get_profile_by_user(self, user_id: str) -> Optional[Profile]:
        with self.engine.connect() as conn:
            row = conn.execute(_profiles.select().where(_profiles.c.user_id == user_id)).fetchone()
        return _row_to_profile(row) if row is not None else None

    def list_profiles(self) -> list[Profile]:
        with self.engine.connect() as conn:
            rows = conn.execute(_profiles.select().order_by(_profiles.c.date)).fetchall()
        return [_row_to_profile(r) for r in rows]

    def merge_profile(self, user_id: str, patch: ProfilePatch) -> Optional[Profile]:
        """Merge-update the user's profile. Returns None if the user has no profile."""
        return self.update_profile(user_id, lambda profile: apply_profile_patch(profile, patch))

    def update_profile(self, user_id: str, mutate: Callable[[Profile], Any]) -> Optional[Profile]:
        """Apply mutate to the user's stored profile and persist atomically.

        Returns the updated Profile, or None if the user has no profile.
        """
        return self._compare_and_set(
            _profiles, _profiles.c.user_id, user_id, _row_to_profile, _profile_values, mutate
        )

    def delete_profile_by_user(self, user_id: str) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(_profiles.delete().where(_profiles.c.user_id == user_id))
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Optimistic concurrency
    # ------------------------------------------------------------------

    def _compare_and_set(self, table, key_column, key, to_entity, to_values, mutate):
        for attempt in range(1, _MAX_CAS_ATTEMPTS + 1):
            with self.engine.connect() as conn:
                # first() closes the cursor, so no read snapshot is held open
                # while mutate runs.
                row = conn.execute(table.select().where(key_column == key)).first()
                if row is None:
                    return None
                entity = to_entity(row)
                mutate(entity)
                result = conn.execute(
                    table.update()
                    .where((key_column == key) & (table.c.version == row.version))
                    .values(version=row.version + 1, **to_values(entity))
                )
                conn.commit()
            if result.rowcount == 1:
                entity.version = row.version + 1
                return entity
            logger.info("Version conflict on %s %s (attempt %d), retrying", table.name, key, attempt)
        raise Internal("Concurrent update conflict, please retry")

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _post_collections(post: Post) -> dict:
    return {
        "likes": json.dumps([asdict(like) for like in post.likes]),
        "comments": json.dumps([asdict(c) for c in post.comments]),
    }


def _profile_values(profile: Profile) -> dict:
    values = {name: getattr(profile, name) for name in _PROFILE_SCALARS}
    values["skills"] = json.dumps(profile.skills)
    values["social"] = json.dumps(asdict(profile.social))
    values["experience"] = json.dumps([asdict(e) for e in profile.experience])
    values["education"] = json.dumps([asdict(e) for e in profile.education])
    return values


def _row_to_post(row) -> Post:
    return Post(
        id=row.id,
        user=row.user_id,
        text=row.text,
        name=row.name or "",
        avatar=row.avatar or "",
        likes=[Like(**item) for item in json.loads(row.likes or "[]")],
        comments=[Comment(**item) for item in json.loads(row.comments or "[]")],
        date=row.date,
        version=row.version,
    )


def _row_to_profile(row) -> Profile:
    return Profile(
        id=row.id,
        user=row.user_id,
        status=row.status,
        company=row.company,
        website=row.website,
        location=row.location,
        bio=row.bio,
        githubusername=row.githubusername,
        skills=json.loads(row.skills or "[]"),
        social=Social(**json.loads(row.social or "{}")),
        experience=[Experience(**item) for item in json.loads(row.experience or "[]")],
        education=[Education(**item) for item in json.loads(row.education or "[]")],
        date=row.date,
        version=row.version,
    )
