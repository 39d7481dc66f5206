"""Rate limiter instance for SlowAPI.

Shared so main (app.state.limiter) and route modules can use the same
instance without circular imports. Only sign-in is limited: it is the one
route that forwards unverified passwords to the upstream.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from workdesk.core.config import get_settings

limiter = Limiter(key_func=get_remote_address)


def login_limit() -> str:
    """Limit string for sign-in attempts per client address (settings.login_rate_limit)."""
    return get_settings().login_rate_limit


limit_login = limiter.limit(login_limit)
