"""
auth/limiter.py -- Shared slowapi rate limiter instance.

Imported by api/main.py (to mount SlowAPIMiddleware) and by the login
routes in api/ and web/ (to apply @limiter.limit()). A single shared
instance means every route counts against the same in-memory store.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")
