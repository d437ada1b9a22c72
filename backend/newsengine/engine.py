from __future__ import annotations

from dataclasses import dataclass

import redis

from newsengine.core.settings import Settings
from newsengine.services.accounts import Accounts
from newsengine.services.comments import CommentOrdering, CommentService, CommentTree
from newsengine.services.karma import KarmaAccount
from newsengine.services.news import NewsStore
from newsengine.services.ranking import RankEngine
from newsengine.services.votes import VoteLedger


@dataclass
class Engine:
    ranking: RankEngine
    karma: KarmaAccount
    votes: VoteLedger
    accounts: Accounts
    news: NewsStore
    tree: CommentTree
    comments: CommentService


def build_engine(r: redis.Redis, settings: Settings, ordering: CommentOrdering | None = None) -> Engine:
    """Wire every component against one Redis client."""
    ranking = RankEngine(r, settings)
    karma = KarmaAccount(r, settings)
    votes = VoteLedger(r, ranking, karma, settings)
    accounts = Accounts(r, settings)
    tree = CommentTree(r, votes.comment_namespace, ordering)
    return Engine(
        ranking=ranking,
        karma=karma,
        votes=votes,
        accounts=accounts,
        news=NewsStore(r, ranking, votes, settings),
        tree=tree,
        comments=CommentService(r, tree, votes, accounts, settings),
    )
