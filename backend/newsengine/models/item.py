from __future__ import annotations

from typing import Literal, Optional
from urllib.parse import urlsplit

from pydantic import BaseModel

TEXT_SCHEME = "text://"

# Fields persisted in the news:<id> hash. username and voted are per-request.
STORED_FIELDS = ("id", "title", "url", "user_id", "ctime", "up", "down", "score", "rank", "comments", "deleted")


class Item(BaseModel):
    id: int
    title: str
    url: str
    user_id: int
    ctime: int
    up: int = 0
    down: int = 0
    score: float = 0.0
    rank: float = 0.0
    comments: int = 0
    deleted: bool = False

    username: Optional[str] = None
    voted: Optional[Literal["up", "down"]] = None

    @classmethod
    def from_hash(cls, data: dict[str, str]) -> "Item":
        return cls.model_validate({k: v for k, v in data.items() if k in STORED_FIELDS})

    def to_hash(self) -> dict[str, str | int | float]:
        out: dict[str, str | int | float] = {}
        for name in STORED_FIELDS:
            value = getattr(self, name)
            out[name] = int(value) if isinstance(value, bool) else value
        return out

    @property
    def is_text(self) -> bool:
        return self.url.startswith(TEXT_SCHEME)

    @property
    def domain(self) -> str | None:
        # None for text posts
        if self.is_text:
            return None
        return urlsplit(self.url).netloc or None

    @property
    def text(self) -> str | None:
        if not self.is_text:
            return None
        return self.url[len(TEXT_SCHEME):]


def text_url(text: str, max_length: int) -> str:
    return TEXT_SCHEME + text[:max_length]
