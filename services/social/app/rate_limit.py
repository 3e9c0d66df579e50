"""
Global slowapi rate limiter.

Mounted onto app.state in main.py so slowapi middleware can find it.

Storage: RATE_LIMIT_STORAGE_URI (e.g. the Redis instance that backs the
notification queue). Defaults to in-memory, which is per-process only.
"""
import os

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=os.getenv("RATE_LIMIT_STORAGE_URI", "memory://"),
)
