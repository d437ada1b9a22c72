from __future__ import annotations

from typing import Literal

import redis

from newsengine.core import keys
from newsengine.core.context import RequestContext
from newsengine.core.errors import DuplicateVote, InsufficientKarma, InvalidVote, NotFound
from newsengine.core.logging import log
from newsengine.core.redis import store_call
from newsengine.core.settings import Settings
from newsengine.models import Comment, Item, User
from newsengine.services.karma import KarmaAccount
from newsengine.services.ranking import RankEngine

Direction = Literal["up", "down"]
DIRECTIONS = ("up", "down")


class VoteLedger:
    """One vote per user per item, paid for with karma.

    The duplicate check and the insertion into the voter set are two round
    trips with no transaction around them. A user racing two votes from two
    clients can slip both past the check; the sorted set then keeps a single
    member (the second ZADD only refreshes its timestamp) and the counter is
    bumped only by the ZADD that really added the member, so the item never
    gains two votes from one user. What the race can double is the karma
    debit, which is bounded by a single vote's cost.
    """

    def __init__(
        self,
        r: redis.Redis,
        ranking: RankEngine,
        karma: KarmaAccount,
        settings: Settings,
        comment_namespace: str = "comment",
    ) -> None:
        self.r = r
        self.ranking = ranking
        self.karma = karma
        self.settings = settings
        self.comment_namespace = comment_namespace

    @store_call
    def cast_vote(self, ctx: RequestContext, news_id: int, user_id: int, direction: str) -> float:
        """Vote a news item up or down and return its new rank."""
        direction = _check_direction(direction)
        pipe = self.r.pipeline(transaction=False)
        pipe.hgetall(keys.news(news_id))
        pipe.hgetall(keys.user(user_id))
        item_raw, user_raw = pipe.execute()
        if not item_raw or not user_raw:
            raise NotFound("No such news or user.")
        item = Item.from_hash(item_raw)
        user = User.from_hash(user_raw)
        if item.deleted:
            raise NotFound("No such news or user.")

        self._reject_duplicate(keys.news_voters(news_id, "up"), keys.news_voters(news_id, "down"), user_id)

        is_author = user.id == item.user_id
        if not is_author:
            needed = (
                self.settings.news_upvote_min_karma
                if direction == "up"
                else self.settings.news_downvote_min_karma
            )
            if user.karma < needed:
                log.info("vote_rejected", news_id=news_id, user_id=user_id, reason="karma", karma=user.karma)
                raise InsufficientKarma(f"You don't have enough karma to vote {direction}")

        if self.r.zadd(keys.news_voters(news_id, direction), {str(user_id): ctx.now}):
            self.r.hincrby(keys.news(news_id), direction, 1)
        up, down = self.r.hmget(keys.news(news_id), "up", "down")
        item.up, item.down = int(up or 0), int(down or 0)

        if direction == "up":
            self.r.zadd(keys.user_saved(user_id), {str(news_id): ctx.now})

        rank = self.ranking.rescore(item, ctx.now)

        if not is_author:
            if direction == "up":
                self.karma.adjust(user_id, -self.settings.news_upvote_karma_cost)
                self.karma.adjust(item.user_id, self.settings.news_upvote_karma_transfered)
            else:
                self.karma.adjust(user_id, -self.settings.news_downvote_karma_cost)

        log.info("vote_cast", news_id=news_id, user_id=user_id, direction=direction, score=item.score, rank=rank)
        return rank

    @store_call
    def cast_comment_vote(
        self, ctx: RequestContext, thread_id: int, comment_id: int, user_id: int, direction: str
    ) -> int:
        """Vote a comment and return its new score.

        Same one-vote rule as news, no karma gate or cost.
        """
        direction = _check_direction(direction)
        raw = self.r.hget(keys.thread(self.comment_namespace, thread_id), str(comment_id))
        if raw is None or comment_id <= 0:
            raise NotFound("No such comment.")
        if Comment.from_json(thread_id, comment_id, raw).deleted:
            raise NotFound("No such comment.")

        up_key = keys.comment_voters(self.comment_namespace, thread_id, comment_id, "up")
        down_key = keys.comment_voters(self.comment_namespace, thread_id, comment_id, "down")
        self._reject_duplicate(up_key, down_key, user_id)

        self.r.zadd(up_key if direction == "up" else down_key, {str(user_id): ctx.now})
        pipe = self.r.pipeline(transaction=False)
        pipe.zcard(up_key)
        pipe.zcard(down_key)
        up, down = pipe.execute()
        log.info("comment_vote_cast", thread_id=thread_id, comment_id=comment_id, user_id=user_id, direction=direction)
        return int(up) - int(down)

    def _reject_duplicate(self, up_key: str, down_key: str, user_id: int) -> None:
        pipe = self.r.pipeline(transaction=False)
        pipe.zscore(up_key, str(user_id))
        pipe.zscore(down_key, str(user_id))
        if any(score is not None for score in pipe.execute()):
            raise DuplicateVote("Duplicated vote.")


def _check_direction(direction: str) -> Direction:
    if direction not in DIRECTIONS:
        raise InvalidVote(f"Invalid vote type: {direction!r}")
    return direction  # type: ignore[return-value]
