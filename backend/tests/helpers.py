"""Time helpers for tests."""

from newsengine.core.context import RequestContext
from newsengine.models import User

T0 = 1_700_000_000
HOUR = 3600


def at(now: int = T0, user: User | None = None) -> RequestContext:
    """A request context frozen at ``now``."""
    return RequestContext(user=user, now=now)
