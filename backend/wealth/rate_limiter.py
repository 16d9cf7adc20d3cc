"""Per-client rate limiting for the expensive endpoints (snapshot runs)."""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)
