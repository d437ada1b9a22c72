"""Shared fixtures: an in-memory Redis and a fully wired engine."""

from collections.abc import Callable, Generator

import fakeredis
import pytest

from newsengine.core import keys
from newsengine.core.settings import Settings
from newsengine.engine import Engine, build_engine
from newsengine.models import User

from helpers import T0, at


@pytest.fixture
def r() -> Generator[fakeredis.FakeRedis, None, None]:
    client = fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)
    yield client
    client.flushall()


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def engine(r: fakeredis.FakeRedis, settings: Settings) -> Engine:
    return build_engine(r, settings)


@pytest.fixture
def make_user(engine: Engine, r: fakeredis.FakeRedis) -> Callable[..., User]:
    """Create a user, optionally forcing its karma balance."""

    def _make(username: str, karma: int | None = None, now: int = T0) -> User:
        user = engine.accounts.create(at(now), username, "correct horse battery")
        if karma is not None:
            r.hset(keys.user(user.id), "karma", karma)
            user.karma = karma
        return user

    return _make


@pytest.fixture
def submit(engine: Engine, r: fakeredis.FakeRedis) -> Callable[..., int]:
    """Submit a news item, ignoring the per-user submission break."""

    def _submit(user: User, title: str = "A story", url: str = "", text: str = "", now: int = T0) -> int:
        r.delete(keys.submitted_recently(user.id))
        if not url and not text:
            text = f"{title} body"
        return engine.news.insert(at(now, user), title, url, text, user.id)

    return _submit
