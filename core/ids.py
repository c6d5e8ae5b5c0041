"""
core/ids.py -- Identifier and timestamp helpers shared by the stores.

Ids are 24 hex characters (96 random bits), opaque to clients. Timestamps
are ISO 8601 strings in UTC so they sort lexicographically.
"""

import secrets
from datetime import datetime, timezone


def new_id() -> str:
    return secrets.token_hex(12)


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
