from __future__ import annotations

from typing import Callable, Iterator, Protocol

import redis

from newsengine.core import keys
from newsengine.core.context import RequestContext
from newsengine.core.errors import EditWindowExpired, InvalidComment, InvalidParent, NotAllowed, NotFound
from newsengine.core.logging import log
from newsengine.core.redis import store_call
from newsengine.core.settings import Settings
from newsengine.models import DELETED_USER, TOP_LEVEL, Comment, User
from newsengine.services.accounts import Accounts
from newsengine.services.votes import VoteLedger

NEXT_ID_FIELD = "nextid"


class CommentOrdering(Protocol):
    def sort(self, comments: list[Comment], level: int) -> list[Comment]: ...


class ScoreThenNewest:
    """Higher score first; equal scores put the newer comment first."""

    def sort(self, comments: list[Comment], level: int) -> list[Comment]:
        # id closes the order so equal (score, ctime) never swap between requests
        return sorted(comments, key=lambda c: (c.score, c.ctime, c.id), reverse=True)


class CommentTree:
    """Comment forests stored one Redis hash per thread.

    Field ``nextid`` is the thread's id counter, every other field is a
    comment id mapped to the comment's JSON. Ids are therefore scoped to the
    thread and dense. Voters live in per-comment sorted sets so that votes
    never rewrite the comment JSON.
    """

    def __init__(self, r: redis.Redis, namespace: str = "comment", ordering: CommentOrdering | None = None) -> None:
        self.r = r
        self.namespace = namespace
        self.ordering = ordering or ScoreThenNewest()

    def thread_key(self, thread_id: int) -> str:
        return keys.thread(self.namespace, thread_id)

    @store_call
    def fetch_one(self, thread_id: int, comment_id: int) -> Comment | None:
        return self.fetch_many([(thread_id, comment_id)])[0]

    @store_call
    def fetch_many(self, refs: list[tuple[int, int]]) -> list[Comment | None]:
        pipe = self.r.pipeline(transaction=False)
        for thread_id, comment_id in refs:
            pipe.hget(self.thread_key(thread_id), str(comment_id))
        found: list[Comment | None] = []
        for (thread_id, comment_id), raw in zip(refs, pipe.execute()):
            if raw is None or comment_id <= 0:
                found.append(None)
            else:
                found.append(Comment.from_json(thread_id, comment_id, raw))
        self._load_voters([c for c in found if c is not None])
        return found

    @store_call
    def insert(self, thread_id: int, comment: Comment) -> int:
        key = self.thread_key(thread_id)
        if comment.parent_id != TOP_LEVEL and not self.r.hexists(key, str(comment.parent_id)):
            raise InvalidParent(f"No comment {comment.parent_id} in thread {thread_id}")
        comment_id = int(self.r.hincrby(key, NEXT_ID_FIELD, 1))
        comment.id = comment_id
        comment.thread_id = thread_id
        self.r.hset(key, str(comment_id), comment.to_json())
        return comment_id

    @store_call
    def edit(self, thread_id: int, comment_id: int, **updates) -> bool:
        key = self.thread_key(thread_id)
        raw = self.r.hget(key, str(comment_id))
        if raw is None:
            return False
        comment = Comment.from_json(thread_id, comment_id, raw).model_copy(update=updates)
        self.r.hset(key, str(comment_id), comment.to_json())
        return True

    def delete(self, thread_id: int, comment_id: int) -> bool:
        return self.edit(thread_id, comment_id, deleted=True)

    @store_call
    def count(self, thread_id: int) -> int:
        # every field but the id counter
        return max(int(self.r.hlen(self.thread_key(thread_id))) - 1, 0)

    @store_call
    def remove_thread(self, thread_id: int) -> bool:
        return bool(self.r.delete(self.thread_key(thread_id)))

    @store_call
    def fetch_thread(self, thread_id: int) -> dict[int, list[Comment]]:
        """Load a whole thread and index it by parent id."""
        by_parent: dict[int, list[Comment]] = {}
        comments = [
            Comment.from_json(thread_id, int(field), raw)
            for field, raw in self.r.hgetall(self.thread_key(thread_id)).items()
            if field != NEXT_ID_FIELD
        ]
        self._load_voters(comments)
        for c in comments:
            by_parent.setdefault(c.parent_id, []).append(c)
        return by_parent

    def walk(self, thread_id: int, root: int = TOP_LEVEL) -> Iterator[tuple[Comment, int]]:
        """Depth-first ``(comment, level)`` pairs below ``root``.

        A deleted comment is only yielded when it has replies, as a
        placeholder keeping its subtree attached.
        """
        by_parent = self.fetch_thread(thread_id)
        yield from self._walk(by_parent, root, 0)

    def _walk(self, by_parent: dict[int, list[Comment]], parent_id: int, level: int) -> Iterator[tuple[Comment, int]]:
        siblings = by_parent.get(parent_id)
        if not siblings:
            return
        for c in self.ordering.sort(siblings, level):
            has_replies = c.id in by_parent
            if not c.deleted or has_replies:
                yield c, level
            if has_replies:
                yield from self._walk(by_parent, c.id, level + 1)

    def render_comments(self, thread_id: int, root: int, visit: Callable[[Comment, int], None]) -> None:
        for comment, level in self.walk(thread_id, root):
            visit(comment, level)

    def _load_voters(self, comments: list[Comment]) -> None:
        if not comments:
            return
        pipe = self.r.pipeline(transaction=False)
        for c in comments:
            pipe.zrange(keys.comment_voters(self.namespace, c.thread_id, c.id, "up"), 0, -1)
            pipe.zrange(keys.comment_voters(self.namespace, c.thread_id, c.id, "down"), 0, -1)
        res = pipe.execute()
        for i, c in enumerate(comments):
            c.up = [int(u) for u in res[i * 2]]
            c.down = [int(u) for u in res[i * 2 + 1]]


class CommentService:
    def __init__(
        self,
        r: redis.Redis,
        tree: CommentTree,
        votes: VoteLedger,
        accounts: Accounts,
        settings: Settings,
    ) -> None:
        self.r = r
        self.tree = tree
        self.votes = votes
        self.accounts = accounts
        self.settings = settings

    @store_call
    def post(self, ctx: RequestContext, news_id: int, user_id: int, parent_id: int, body: str) -> Comment:
        body = body.strip()
        if not body:
            raise InvalidComment("Empty comment.")
        if len(body) > self.settings.comment_max_length:
            raise InvalidComment(f"Comment longer than {self.settings.comment_max_length} characters.")
        news_id_field, deleted = self.r.hmget(keys.news(news_id), "id", "deleted")
        if news_id_field is None or deleted == "1":
            raise NotFound("No such news.")

        parent = None
        if parent_id != TOP_LEVEL:
            parent = self.tree.fetch_one(news_id, parent_id)
            if parent is None:
                raise InvalidParent(f"No comment {parent_id} in thread {news_id}")

        comment = Comment(parent_id=parent_id, user_id=user_id, body=body, ctime=ctx.now)
        comment_id = self.tree.insert(news_id, comment)
        # posting counts as the author's upvote
        self.votes.cast_comment_vote(ctx, news_id, comment_id, user_id, "up")
        comment.up = [user_id]

        pipe = self.r.pipeline(transaction=False)
        pipe.hincrby(keys.news(news_id), "comments", 1)
        pipe.zadd(keys.user_comments(user_id), {f"{news_id}-{comment_id}": ctx.now})
        pipe.execute()
        if parent is not None and self.r.exists(keys.user(parent.user_id)):
            self.r.hincrby(keys.user(parent.user_id), "replies", 1)

        log.info("comment_posted", news_id=news_id, comment_id=comment_id, parent_id=parent_id, user_id=user_id)
        return comment

    @store_call
    def update(self, ctx: RequestContext, news_id: int, comment_id: int, user_id: int, body: str) -> str:
        """Edit a comment's body, or delete it when the new body is empty.

        Returns the operation performed: ``"update"`` or ``"delete"``.
        """
        comment = self.tree.fetch_one(news_id, comment_id)
        if comment is None:
            raise NotFound("No such comment.")
        if comment.user_id != user_id:
            raise NotAllowed("Only the author can edit this comment.")
        if comment.ctime <= ctx.now - self.settings.comment_edit_time:
            raise EditWindowExpired("Comment edit time expired.")

        body = body.strip()
        if not body:
            self.tree.delete(news_id, comment_id)
            if not comment.deleted:
                self.r.hincrby(keys.news(news_id), "comments", -1)
            log.info("comment_deleted", news_id=news_id, comment_id=comment_id)
            return "delete"

        if len(body) > self.settings.comment_max_length:
            raise InvalidComment(f"Comment longer than {self.settings.comment_max_length} characters.")
        self.tree.edit(news_id, comment_id, body=body, deleted=False)
        if comment.deleted:
            self.r.hincrby(keys.news(news_id), "comments", 1)
        log.info("comment_edited", news_id=news_id, comment_id=comment_id)
        return "update"

    def vote(self, ctx: RequestContext, news_id: int, comment_id: int, user_id: int, direction: str) -> int:
        return self.votes.cast_comment_vote(ctx, news_id, comment_id, user_id, direction)

    def thread(self, news_id: int, root: int = TOP_LEVEL) -> list[tuple[Comment, int, User]]:
        """The rendered order of a thread, with each comment's author."""
        nodes = list(self.tree.walk(news_id, root))
        authors = self.accounts.get_many([c.user_id for c, _ in nodes])
        return [(c, level, author or DELETED_USER) for (c, level), author in zip(nodes, authors)]

    @store_call
    def by_user(self, user_id: int, start: int = 0, count: int | None = None) -> tuple[list[Comment], int]:
        count = count or self.settings.user_comments_per_page
        key = keys.user_comments(user_id)
        total = int(self.r.zcard(key))
        refs = []
        for member in self.r.zrevrange(key, start, start + count - 1):
            thread_id, comment_id = member.split("-")
            refs.append((int(thread_id), int(comment_id)))
        return [c for c in self.tree.fetch_many(refs) if c is not None], total
