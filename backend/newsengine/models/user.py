from __future__ import annotations

from pydantic import BaseModel

STORED_FIELDS = ("id", "username", "password", "salt", "ctime", "karma", "karma_incr_time", "flags", "replies")

ADMIN_FLAG = "a"


class User(BaseModel):
    id: int
    username: str
    password: str = ""
    salt: str = ""
    ctime: int
    karma: int = 0
    karma_incr_time: int = 0
    flags: str = ""
    replies: int = 0

    @classmethod
    def from_hash(cls, data: dict[str, str]) -> "User":
        return cls.model_validate({k: v for k, v in data.items() if k in STORED_FIELDS})

    def to_hash(self) -> dict[str, str | int]:
        return {name: getattr(self, name) for name in STORED_FIELDS}

    def has_flags(self, flags: str) -> bool:
        return all(f in self.flags for f in flags)

    @property
    def is_admin(self) -> bool:
        return self.has_flags(ADMIN_FLAG)


# Placeholder author for comments and news whose user record is gone.
DELETED_USER = User(id=-1, username="deleted_user", ctime=0)
