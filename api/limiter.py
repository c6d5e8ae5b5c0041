"""
api/limiter.py -- Shared slowapi rate limiter instance.

Import this in both api/main.py (to mount as middleware) and the auth/users
routers (to apply per-route limits with @limiter.limit()).

A single shared instance means every route shares the same in-memory counter
store. RATE_LIMIT_ENABLED=false turns every limit off (test suites).
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",
    enabled=get_settings().rate_limit_enabled,
)
