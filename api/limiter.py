"""
api/limiter.py -- Shared slowapi rate limiter instance.

Import this in both api/main.py (to attach to app.state) and the route
modules (to apply per-route limits with @limiter.limit()).

Using a single shared instance ensures all routes share the same in-memory
counter store. If this were instantiated in each module separately, each
module would get its own isolated counter and rate limits would never trigger.

The limit strings are read from Settings on every request (slowapi accepts a
callable), so the policy lives in configuration:
  register -- REGISTER_RATE_LIMIT (default 3/hour)
  login    -- LOGIN_RATE_LIMIT    (default 10/minute), also the GitHub flow
  api      -- API_RATE_LIMIT      (default 60/minute)
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")


def register_limit() -> str:
    return get_settings().register_rate_limit


def login_limit() -> str:
    return get_settings().login_rate_limit


def api_limit() -> str:
    return get_settings().api_rate_limit
