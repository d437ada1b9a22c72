from __future__ import annotations

import redis

from newsengine.core import keys
from newsengine.core.context import RequestContext
from newsengine.core.logging import log
from newsengine.core.redis import store_call
from newsengine.core.settings import Settings


class KarmaAccount:
    def __init__(self, r: redis.Redis, settings: Settings) -> None:
        self.r = r
        self.settings = settings

    @store_call
    def get(self, user_id: int) -> int:
        return int(self.r.hget(keys.user(user_id), "karma") or 0)

    @store_call
    def adjust(self, user_id: int, delta: int) -> int:
        # No floor here: callers check the balance before debiting.
        return int(self.r.hincrby(keys.user(user_id), "karma", delta))

    @store_call
    def credit_passive(self, ctx: RequestContext, user_id: int) -> int | None:
        """Grow karma by a fixed amount once per interval, lazily.

        Called on authenticated requests instead of from a background clock.
        Returns the new balance when a credit happened, None otherwise.
        """
        key = keys.user(user_id)
        last = self.r.hget(key, "karma_incr_time")
        if last is None:
            return None
        if ctx.now - int(last) < self.settings.karma_increment_interval:
            return None
        pipe = self.r.pipeline(transaction=False)
        pipe.hincrby(key, "karma", self.settings.karma_increment_amount)
        pipe.hset(key, "karma_incr_time", ctx.now)
        karma, _ = pipe.execute()
        log.debug("karma_credited", user_id=user_id, karma=karma)
        return int(karma)
