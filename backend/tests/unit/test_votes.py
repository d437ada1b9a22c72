"""Tests for the vote ledger: one vote per user and the karma economy."""

import pytest

from newsengine.core import keys
from newsengine.core.errors import DuplicateVote, InsufficientKarma, InvalidVote, NotFound

from helpers import HOUR, T0, at


@pytest.fixture
def author(make_user):
    return make_user("author")


@pytest.fixture
def news_id(submit, author):
    return submit(author, "Launch", url="https://example.com/launch")


def counts(r, news_id):
    up, down = r.hmget(keys.news(news_id), "up", "down")
    return int(up), int(down)


class TestSubmission:
    def test_submitter_upvotes_implicitly(self, r, engine, news_id, author) -> None:
        assert counts(r, news_id) == (1, 0)
        assert r.zscore(keys.news_voters(news_id, "up"), str(author.id)) == T0

    def test_fresh_rank_matches_computed_rank(self, engine, news_id) -> None:
        item = engine.news.get_by_id(at(), news_id)
        assert item.score == 1.0
        assert item.rank == engine.ranking.compute_rank(item, T0)

    def test_author_keeps_karma(self, engine, news_id, author) -> None:
        assert engine.karma.get(author.id) == 1


class TestCastVote:
    def test_upvote_returns_new_rank(self, r, engine, make_user, news_id) -> None:
        voter = make_user("voter", karma=10)

        rank = engine.votes.cast_vote(at(T0 + 60), news_id, voter.id, "up")

        item = engine.news.get_by_id(at(T0 + 60), news_id)
        assert counts(r, news_id) == (2, 0)
        assert item.score == 2.0
        assert rank == item.rank
        assert r.zscore(keys.NEWS_TOP, str(news_id)) == pytest.approx(rank)

    def test_upvote_saves_news_for_voter(self, r, engine, make_user, news_id) -> None:
        voter = make_user("voter", karma=10)
        engine.votes.cast_vote(at(), news_id, voter.id, "up")
        assert r.zscore(keys.user_saved(voter.id), str(news_id)) is not None

    def test_duplicate_vote_is_rejected(self, engine, news_id, author) -> None:
        with pytest.raises(DuplicateVote):
            engine.votes.cast_vote(at(), news_id, author.id, "up")

    def test_cannot_switch_sides(self, r, engine, make_user, news_id) -> None:
        voter = make_user("voter", karma=100)
        engine.votes.cast_vote(at(), news_id, voter.id, "up")

        with pytest.raises(DuplicateVote):
            engine.votes.cast_vote(at(), news_id, voter.id, "down")
        with pytest.raises(DuplicateVote):
            engine.votes.cast_vote(at(), news_id, voter.id, "up")
        assert counts(r, news_id) == (2, 0)

    def test_racing_votes_count_once(self, r, engine, make_user, news_id, monkeypatch) -> None:
        # both requests pass the duplicate check before either records its vote
        voter = make_user("voter", karma=10)
        monkeypatch.setattr(engine.votes, "_reject_duplicate", lambda *args: None)

        engine.votes.cast_vote(at(T0 + 1), news_id, voter.id, "up")
        engine.votes.cast_vote(at(T0 + 2), news_id, voter.id, "up")

        assert counts(r, news_id) == (2, 0)
        assert r.zcard(keys.news_voters(news_id, "up")) == 2

    def test_missing_news(self, engine, make_user) -> None:
        voter = make_user("voter", karma=10)
        with pytest.raises(NotFound):
            engine.votes.cast_vote(at(), 999, voter.id, "up")

    def test_missing_user(self, engine, news_id) -> None:
        with pytest.raises(NotFound):
            engine.votes.cast_vote(at(), news_id, 999, "up")

    def test_deleted_news(self, engine, news_id, author, make_user) -> None:
        engine.news.delete(at(T0 + 1, author), news_id, author.id)
        voter = make_user("voter", karma=10)
        with pytest.raises(NotFound):
            engine.votes.cast_vote(at(), news_id, voter.id, "up")

    def test_invalid_direction(self, engine, news_id, make_user) -> None:
        voter = make_user("voter", karma=10)
        with pytest.raises(InvalidVote):
            engine.votes.cast_vote(at(), news_id, voter.id, "sideways")


class TestKarmaEconomy:
    def test_upvote_below_min_karma(self, r, engine, make_user, news_id) -> None:
        voter = make_user("broke", karma=0)

        with pytest.raises(InsufficientKarma):
            engine.votes.cast_vote(at(), news_id, voter.id, "up")
        assert counts(r, news_id) == (1, 0)
        assert r.zscore(keys.news_voters(news_id, "up"), str(voter.id)) is None

    def test_downvote_below_min_karma(self, engine, settings, make_user, news_id) -> None:
        voter = make_user("newbie", karma=settings.news_downvote_min_karma - 1)
        with pytest.raises(InsufficientKarma):
            engine.votes.cast_vote(at(), news_id, voter.id, "down")

    def test_upvote_transfers_karma(self, engine, make_user, news_id, author) -> None:
        voter = make_user("voter", karma=10)

        engine.votes.cast_vote(at(), news_id, voter.id, "up")

        assert engine.karma.get(voter.id) == 9
        assert engine.karma.get(author.id) == 2

    def test_downvote_costs_more_and_transfers_nothing(self, engine, make_user, news_id, author) -> None:
        voter = make_user("critic", karma=40)

        engine.votes.cast_vote(at(), news_id, voter.id, "down")

        assert engine.karma.get(voter.id) == 34
        assert engine.karma.get(author.id) == 1

    def test_author_needs_no_karma_for_own_news(self, r, engine, make_user, submit) -> None:
        poor = make_user("poor", karma=0)
        news_id = submit(poor, "Mine", url="https://example.com/mine")
        assert counts(r, news_id) == (1, 0)
        assert engine.karma.get(poor.id) == 0


class TestOrderIndependence:
    def test_up_then_down_equals_down_then_up(self, engine, make_user, submit) -> None:
        author = make_user("author")
        fan = make_user("fan", karma=50)
        critic = make_user("critic", karma=50)
        first = submit(author, "First", url="https://example.com/1")
        second = submit(author, "Second", url="https://example.com/2")

        engine.votes.cast_vote(at(T0 + HOUR), first, fan.id, "up")
        engine.votes.cast_vote(at(T0 + HOUR), first, critic.id, "down")
        engine.votes.cast_vote(at(T0 + HOUR), second, critic.id, "down")
        engine.votes.cast_vote(at(T0 + HOUR), second, fan.id, "up")

        a = engine.news.get_by_id(at(), first)
        b = engine.news.get_by_id(at(), second)
        assert (a.up, a.down) == (b.up, b.down) == (2, 1)
        assert a.score == b.score == 1.0
        assert a.rank == b.rank
