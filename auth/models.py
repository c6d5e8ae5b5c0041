"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and routes do
the work.

Layer rule: no imports from api/ or social/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A registered member.

    avatar is a Gravatar URL computed from the email at registration time.
    id is None before the record is written to the database.
    """

    name: str
    email: str
    hashed_password: str
    avatar: str = ""
    id: str | None = None
    date: str | None = None  # ISO 8601, set by store on insert


@dataclass(frozen=True)
class Caller:
    """Identity of the authenticated caller for a single request.

    Built by auth.dependencies.get_caller() from a verified token and passed
    explicitly down to services. Holds only what the token proves: the user
    id. Whether that user still exists is not checked here.
    """

    user_id: str
