from __future__ import annotations

import math

import redis

from newsengine.core import keys
from newsengine.core.errors import StoreUnavailable
from newsengine.core.logging import log
from newsengine.core.redis import store_call
from newsengine.core.settings import Settings
from newsengine.models import Item


class RankEngine:
    """Score and time-decayed rank for news items.

    There is no cron job re-sorting ``news.top``: ranks are recomputed when an
    item is read for a ranked listing and written back only when they drifted
    by more than ``rank_epsilon``. The work is paid by page views, and only
    for the items people actually look at.
    """

    def __init__(self, r: redis.Redis, settings: Settings) -> None:
        self.r = r
        self.settings = settings

    def compute_score(self, item: Item) -> float:
        score = float(item.up - item.down)
        # 5 up / 5 down is less interesting than 50 up / 50 down
        votes = item.up + item.down
        if votes > self.settings.news_score_log_start:
            score += math.log(votes - self.settings.news_score_log_start) * self.settings.news_score_log_booster
        return score

    def compute_rank(self, item: Item, now: int) -> float:
        # RANK = SCORE / (AGE ^ AGING_FACTOR)
        age = now - item.ctime
        if age > self.settings.top_news_age_limit:
            return float(-age)
        return (item.score * self.settings.rank_scale) / (
            (age + self.settings.news_age_padding) ** self.settings.rank_aging_factor
        )

    @store_call
    def store_rank(self, item: Item) -> None:
        pipe = self.r.pipeline(transaction=False)
        pipe.hset(keys.news(item.id), mapping={"score": item.score, "rank": item.rank})
        if not item.deleted:
            pipe.zadd(keys.NEWS_TOP, {str(item.id): item.rank})
        pipe.execute()

    def refresh_if_stale(self, item: Item, now: int) -> bool:
        """Recompute the item's rank and persist it when it drifted.

        Returns True when a new rank was computed. A failed write is not an
        error for the reader: the listing keeps the recomputed value and the
        next view retries the write.
        """
        item.score = self.compute_score(item)
        rank = self.compute_rank(item, now)
        if abs(rank - item.rank) <= self.settings.rank_epsilon:
            return False
        item.rank = rank
        try:
            self.store_rank(item)
        except StoreUnavailable as exc:
            log.warning("rank_refresh_failed", news_id=item.id, error=str(exc))
        else:
            log.debug("rank_refreshed", news_id=item.id, rank=rank)
        return True

    def rescore(self, item: Item, now: int) -> float:
        """Recompute score and rank from the item's counters and persist both."""
        item.score = self.compute_score(item)
        item.rank = self.compute_rank(item, now)
        self.store_rank(item)
        return item.rank
