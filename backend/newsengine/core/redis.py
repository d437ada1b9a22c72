from __future__ import annotations

import functools
from typing import Callable, TypeVar

import redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from newsengine.core.errors import StoreUnavailable
from newsengine.core.settings import settings

F = TypeVar("F", bound=Callable)

_pool: redis.ConnectionPool | None = None


def get_redis() -> redis.Redis:
    # decode_responses so every record field comes back as str
    global _pool
    if _pool is None:
        _pool = redis.ConnectionPool.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_timeout=settings.redis_socket_timeout,
        )
    return redis.Redis(connection_pool=_pool)


def store_call(fn: F) -> F:
    """Translate connection-level Redis failures into StoreUnavailable."""

    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except (RedisConnectionError, RedisTimeoutError) as exc:
            raise StoreUnavailable(str(exc)) from exc

    return wrapper  # type: ignore[return-value]
