"""
api/limiter.py -- The one slowapi Limiter shared by every rate-limited route.

api/main.py mounts it (SlowAPIMiddleware looks for app.state.limiter) and
api/routes/v1/auth.py decorates sign-up / sign-in with @limiter.limit().
Counters are per client IP and live in process memory, so they reset on
restart and are not shared between workers.

RATE_LIMIT_ENABLED=false turns every limit into a no-op (load tests, CI).
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",
    enabled=get_settings().rate_limit_enabled,
)
