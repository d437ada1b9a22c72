from __future__ import annotations

import redis

from newsengine.core import keys
from newsengine.core.context import RequestContext
from newsengine.core.errors import DuplicateUrl, EditWindowExpired, NotAllowed, NotFound, SubmittedTooRecently
from newsengine.core.logging import log
from newsengine.core.redis import store_call
from newsengine.core.settings import Settings
from newsengine.models import Item
from newsengine.models.item import text_url
from newsengine.services.ranking import RankEngine
from newsengine.services.votes import VoteLedger


class NewsStore:
    def __init__(self, r: redis.Redis, ranking: RankEngine, votes: VoteLedger, settings: Settings) -> None:
        self.r = r
        self.ranking = ranking
        self.votes = votes
        self.settings = settings

    @store_call
    def allowed_to_post_in(self, user_id: int) -> int:
        """Seconds left before the user may submit again."""
        return max(int(self.r.ttl(keys.submitted_recently(user_id))), 0)

    @store_call
    def insert(self, ctx: RequestContext, title: str, url: str, text: str, user_id: int) -> int:
        """Submit a link (``url``) or a text post (empty ``url``).

        A link already submitted within ``prevent_repost_time`` is not
        inserted again: the id of the earlier item is returned instead.
        """
        seconds = self.allowed_to_post_in(user_id)
        if seconds > 0:
            raise SubmittedTooRecently(seconds)

        is_text = not url
        if is_text:
            url = text_url(text, self.settings.comment_max_length)
        else:
            existing = self.r.get(keys.repost_lock(url))
            if existing:
                return int(existing)

        news_id = int(self.r.incr(keys.NEWS_COUNT))
        item = Item(id=news_id, title=title, url=url, user_id=user_id, ctime=ctx.now)
        self.r.hset(keys.news(news_id), mapping=item.to_hash())

        # the submitter implicitly upvotes; this also places it in news.top
        self.votes.cast_vote(ctx, news_id, user_id, "up")

        pipe = self.r.pipeline(transaction=False)
        pipe.zadd(keys.user_posted(user_id), {str(news_id): ctx.now})
        pipe.zadd(keys.NEWS_CRON, {str(news_id): ctx.now})
        if not is_text:
            pipe.setex(keys.repost_lock(url), self.settings.prevent_repost_time, news_id)
        pipe.setex(keys.submitted_recently(user_id), self.settings.news_submission_break, "1")
        pipe.execute()
        log.info("news_submitted", news_id=news_id, user_id=user_id, text=is_text)
        return news_id

    @store_call
    def edit(self, ctx: RequestContext, news_id: int, title: str, url: str, text: str, user_id: int) -> int:
        item = self._editable(ctx, news_id, user_id)
        is_text = not url
        if is_text:
            url = text_url(text, self.settings.comment_max_length)
        elif url != item.url:
            # moving to a new url releases the old lock and takes the new one
            if self.r.get(keys.repost_lock(url)):
                raise DuplicateUrl("This url was posted recently.")
            self.r.delete(keys.repost_lock(item.url))
            self.r.setex(keys.repost_lock(url), self.settings.prevent_repost_time, news_id)
        self.r.hset(keys.news(news_id), mapping={"title": title, "url": url})
        log.info("news_edited", news_id=news_id, user_id=user_id)
        return news_id

    @store_call
    def delete(self, ctx: RequestContext, news_id: int, user_id: int) -> None:
        self._editable(ctx, news_id, user_id)
        pipe = self.r.pipeline(transaction=False)
        pipe.hset(keys.news(news_id), "deleted", 1)
        pipe.zrem(keys.NEWS_TOP, str(news_id))
        pipe.zrem(keys.NEWS_CRON, str(news_id))
        pipe.execute()
        log.info("news_deleted", news_id=news_id, user_id=user_id)

    def _editable(self, ctx: RequestContext, news_id: int, user_id: int) -> Item:
        item = self.get_by_id(ctx, news_id)
        if item is None or item.deleted:
            raise NotFound("No such news.")
        is_admin = ctx.user is not None and ctx.user.is_admin
        if item.user_id != user_id and not is_admin:
            raise NotAllowed("News belongs to another user.")
        if item.ctime <= ctx.now - self.settings.news_edit_time and not is_admin:
            raise EditWindowExpired("News too old to be modified.")
        return item

    @store_call
    def get_by_ids(self, ctx: RequestContext, news_ids: list[int], update_rank: bool = False) -> list[Item]:
        """Load several items in one round trip, plus author names and the
        context user's votes in one more each.

        With ``update_rank`` every live item's rank is refreshed if it
        drifted from its real-time value.
        """
        if not news_ids:
            return []
        pipe = self.r.pipeline(transaction=False)
        for news_id in news_ids:
            pipe.hgetall(keys.news(news_id))
        items = [Item.from_hash(data) for data in pipe.execute() if data]
        if not items:
            return []

        if update_rank:
            for item in items:
                if not item.deleted:
                    self.ranking.refresh_if_stale(item, ctx.now)

        pipe = self.r.pipeline(transaction=False)
        for item in items:
            pipe.hget(keys.user(item.user_id), "username")
        for item, username in zip(items, pipe.execute()):
            item.username = username

        if ctx.user is not None:
            member = str(ctx.user.id)
            pipe = self.r.pipeline(transaction=False)
            for item in items:
                pipe.zscore(keys.news_voters(item.id, "up"), member)
                pipe.zscore(keys.news_voters(item.id, "down"), member)
            votes = pipe.execute()
            for i, item in enumerate(items):
                if votes[i * 2] is not None:
                    item.voted = "up"
                elif votes[i * 2 + 1] is not None:
                    item.voted = "down"
        return items

    def get_by_id(self, ctx: RequestContext, news_id: int, update_rank: bool = False) -> Item | None:
        items = self.get_by_ids(ctx, [news_id], update_rank=update_rank)
        return items[0] if items else None

    @store_call
    def _page(self, ctx: RequestContext, key: str, start: int, count: int, update_rank: bool = False) -> tuple[list[Item], int]:
        pipe = self.r.pipeline(transaction=False)
        pipe.zcard(key)
        pipe.zrevrange(key, start, start + count - 1)
        total, ids = pipe.execute()
        return self.get_by_ids(ctx, [int(i) for i in ids], update_rank=update_rank), int(total)

    def top(self, ctx: RequestContext, start: int = 0, count: int | None = None) -> tuple[list[Item], int]:
        """A page of news.top, refreshing drifted ranks while reading it."""
        items, total = self._page(ctx, keys.NEWS_TOP, start, count or self.settings.top_news_per_page, update_rank=True)
        # ranks may have moved during the refresh
        items.sort(key=lambda n: n.rank, reverse=True)
        return items, total

    def latest(self, ctx: RequestContext, start: int = 0, count: int | None = None) -> tuple[list[Item], int]:
        return self._page(ctx, keys.NEWS_CRON, start, count or self.settings.latest_news_per_page)

    def saved(self, ctx: RequestContext, user_id: int, start: int = 0, count: int | None = None) -> tuple[list[Item], int]:
        return self._page(ctx, keys.user_saved(user_id), start, count or self.settings.saved_news_per_page)

    def posted(self, ctx: RequestContext, user_id: int, start: int = 0, count: int | None = None) -> tuple[list[Item], int]:
        return self._page(ctx, keys.user_posted(user_id), start, count or self.settings.saved_news_per_page)
