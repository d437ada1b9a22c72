from __future__ import annotations

from pydantic import BaseModel, Field

# id and thread_id live in the hash key/field, voters in their own sets.
STORED_FIELDS = {"parent_id", "user_id", "body", "ctime", "deleted"}

TOP_LEVEL = -1


class Comment(BaseModel):
    id: int = 0
    thread_id: int = 0
    parent_id: int = TOP_LEVEL
    user_id: int
    body: str
    ctime: int
    deleted: bool = False
    up: list[int] = Field(default_factory=list)
    down: list[int] = Field(default_factory=list)

    @classmethod
    def from_json(cls, thread_id: int, comment_id: int, raw: str) -> "Comment":
        comment = cls.model_validate_json(raw)
        comment.id = comment_id
        comment.thread_id = thread_id
        return comment

    def to_json(self) -> str:
        return self.model_dump_json(include=STORED_FIELDS)

    @property
    def score(self) -> int:
        return len(self.up) - len(self.down)

    @property
    def is_top_level(self) -> bool:
        return self.parent_id == TOP_LEVEL
