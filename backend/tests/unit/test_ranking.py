"""Tests for score and rank computation and the read-driven refresh."""

import math

import pytest

from newsengine.core import keys
from newsengine.core.errors import StoreUnavailable
from newsengine.models import Item
from newsengine.services.ranking import RankEngine

from helpers import HOUR, T0


def make_item(up: int = 1, down: int = 0, ctime: int = T0, **kw) -> Item:
    return Item(id=kw.pop("id", 1), title="t", url="https://example.com/", user_id=1, ctime=ctime, up=up, down=down, **kw)


@pytest.fixture
def ranking(r, settings) -> RankEngine:
    return RankEngine(r, settings)


class TestComputeScore:
    def test_plain_difference_below_log_start(self, ranking: RankEngine) -> None:
        assert ranking.compute_score(make_item(up=5, down=2)) == 3.0

    def test_no_boost_at_log_start(self, ranking: RankEngine) -> None:
        assert ranking.compute_score(make_item(up=6, down=4)) == 2.0

    def test_log_boost_above_log_start(self, ranking: RankEngine) -> None:
        score = ranking.compute_score(make_item(up=15, down=5))
        assert score == pytest.approx(10 + math.log(10) * 2)

    def test_busy_balanced_item_beats_quiet_one(self, ranking: RankEngine) -> None:
        assert ranking.compute_score(make_item(up=50, down=50)) > ranking.compute_score(make_item(up=5, down=5))

    def test_is_pure(self, ranking: RankEngine) -> None:
        item = make_item(up=30, down=7)
        assert ranking.compute_score(item) == ranking.compute_score(item)
        assert item.score == 0.0


class TestComputeRank:
    def test_fresh_item(self, ranking: RankEngine) -> None:
        item = make_item(score=1.0)
        assert ranking.compute_rank(item, T0) == 1_000_000.0 / (8 * HOUR) ** 1.1

    def test_is_pure(self, ranking: RankEngine) -> None:
        item = make_item(score=4.0)
        assert ranking.compute_rank(item, T0 + 500) == ranking.compute_rank(item, T0 + 500)

    def test_monotonic_decay(self, ranking: RankEngine) -> None:
        item = make_item(score=3.0)
        ranks = [ranking.compute_rank(item, T0 + h * HOUR) for h in range(0, 24 * 40, 7)]
        assert all(later <= earlier for earlier, later in zip(ranks, ranks[1:]))

    def test_higher_score_ranks_higher_at_same_age(self, ranking: RankEngine) -> None:
        now = T0 + 5 * HOUR
        assert ranking.compute_rank(make_item(score=5.0), now) > ranking.compute_rank(make_item(score=2.0), now)

    def test_age_limit_sinks_item(self, settings, ranking: RankEngine) -> None:
        age = settings.top_news_age_limit + 1
        item = make_item(score=1000.0)
        assert ranking.compute_rank(item, T0 + age) == -age

    def test_old_items_order_by_age_not_score(self, settings, ranking: RankEngine) -> None:
        now = T0 + settings.top_news_age_limit + 100
        older = make_item(score=500.0, ctime=T0)
        newer = make_item(score=1.0, ctime=T0 + 50)
        assert ranking.compute_rank(newer, now) > ranking.compute_rank(older, now)


class TestRefreshIfStale:
    def _store(self, r, item: Item) -> None:
        r.hset(keys.news(item.id), mapping=item.to_hash())
        r.zadd(keys.NEWS_TOP, {str(item.id): item.rank})

    def test_drifted_rank_is_persisted(self, r, ranking: RankEngine) -> None:
        item = make_item(up=3, score=3.0, rank=0.0)
        self._store(r, item)

        assert ranking.refresh_if_stale(item, T0 + HOUR)

        expected = ranking.compute_rank(item, T0 + HOUR)
        assert item.rank == expected
        assert float(r.hget(keys.news(1), "rank")) == pytest.approx(expected)
        assert r.zscore(keys.NEWS_TOP, "1") == pytest.approx(expected)

    def test_fresh_rank_is_left_alone(self, r, ranking: RankEngine) -> None:
        item = make_item(up=3, score=3.0)
        item.rank = ranking.compute_rank(item, T0)
        self._store(r, item)

        assert not ranking.refresh_if_stale(item, T0)
        assert ranking.refresh_if_stale(item, T0 + HOUR)
        assert not ranking.refresh_if_stale(item, T0 + HOUR)

    def test_write_failure_is_swallowed(self, ranking: RankEngine, monkeypatch) -> None:
        def unavailable(item):
            raise StoreUnavailable("connection refused")

        monkeypatch.setattr(ranking, "store_rank", unavailable)
        item = make_item(up=2, score=2.0, rank=0.0)

        assert ranking.refresh_if_stale(item, T0)
        assert item.rank == ranking.compute_rank(item, T0)

    def test_deleted_item_stays_out_of_index(self, r, ranking: RankEngine) -> None:
        item = make_item(up=2, score=2.0, rank=0.0, deleted=True)
        r.hset(keys.news(item.id), mapping=item.to_hash())

        ranking.store_rank(item)

        assert r.zscore(keys.NEWS_TOP, "1") is None
