"""
auth/gravatar.py -- Gravatar URL for a registration email.

Gravatar keys avatars by the MD5 of the trimmed, lowercased email. MD5 is the
protocol's identifier, not a security primitive here.
"""

import hashlib
from urllib.parse import urlencode

_GRAVATAR_BASE = "https://www.gravatar.com/avatar/"


def gravatar_url(email: str, size: int = 200, rating: str = "pg", default: str = "mm") -> str:
    digest = hashlib.md5(email.strip().lower().encode("utf-8"), usedforsecurity=False).hexdigest()
    return f"{_GRAVATAR_BASE}{digest}?{urlencode({'s': size, 'r': rating, 'd': default})}"
