from __future__ import annotations

import re
import secrets

import redis

from newsengine.core import keys
from newsengine.core.context import RequestContext
from newsengine.core.errors import InvalidUsername, NotFound, UsernameTaken, WeakPassword
from newsengine.core.logging import log
from newsengine.core.redis import store_call
from newsengine.core.settings import Settings
from newsengine.models import User
from newsengine.services.auth import hash_password, verify_password


class Accounts:
    def __init__(self, r: redis.Redis, settings: Settings) -> None:
        self.r = r
        self.settings = settings

    @store_call
    def create(self, ctx: RequestContext, username: str, password: str) -> User:
        if not re.match(self.settings.username_regexp, username):
            raise InvalidUsername("Username must match /[a-zA-Z][a-zA-Z0-9_-]+/")
        if len(password) < self.settings.password_min_length:
            raise WeakPassword(f"Password is too short. Min length: {self.settings.password_min_length}")
        if self.r.exists(keys.username_index(username)):
            raise UsernameTaken("Username is already taken, please try a different one.")

        user_id = int(self.r.incr(keys.USERS_COUNT))
        # SET NX is the real uniqueness check; the EXISTS above only saves an id
        if not self.r.set(keys.username_index(username), user_id, nx=True):
            raise UsernameTaken("Username is already taken, please try a different one.")

        salt = secrets.token_hex(16)
        user = User(
            id=user_id,
            username=username,
            password=hash_password(password, salt),
            salt=salt,
            ctime=ctx.now,
            karma=self.settings.user_initial_karma,
            karma_incr_time=ctx.now,
        )
        self.r.hset(keys.user(user_id), mapping=user.to_hash())
        log.info("user_created", user_id=user_id, username=username)
        return user

    @store_call
    def get(self, user_id: int) -> User | None:
        data = self.r.hgetall(keys.user(user_id))
        return User.from_hash(data) if data else None

    @store_call
    def get_many(self, user_ids: list[int]) -> list[User | None]:
        pipe = self.r.pipeline(transaction=False)
        for user_id in user_ids:
            pipe.hgetall(keys.user(user_id))
        return [User.from_hash(data) if data else None for data in pipe.execute()]

    @store_call
    def get_by_username(self, username: str) -> User | None:
        user_id = self.r.get(keys.username_index(username))
        if user_id is None:
            return None
        return self.get(int(user_id))

    @store_call
    def add_flags(self, user_id: int, flags: str) -> User:
        user = self.get(user_id)
        if user is None:
            raise NotFound("No such user.")
        user.flags += "".join(f for f in flags if f not in user.flags)
        self.r.hset(keys.user(user_id), "flags", user.flags)
        return user

    def authenticate(self, username: str, password: str) -> User | None:
        user = self.get_by_username(username)
        if user is None or not verify_password(password, user.password):
            return None
        return user
