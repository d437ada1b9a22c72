from __future__ import annotations
from pydantic import BaseModel, Field, model_validator
from typing import Optional, Literal

from newsengine.models import Comment, Item, User

class RegisterIn(BaseModel):
    username: str = Field(min_length=2, max_length=32)
    password: str = Field(max_length=128)

class LoginIn(BaseModel):
    username: str
    password: str

class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"

class SubmitIn(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    url: str = ""
    text: str = ""

    @model_validator(mode="after")
    def url_or_text(self) -> "SubmitIn":
        # an empty url or an empty text, but not both
        if not self.url and not self.text:
            raise ValueError("Please specify a news title and address or text.")
        if self.url and not self.url.startswith(("http://", "https://")):
            raise ValueError("We only accept http:// and https:// news.")
        return self

class VoteIn(BaseModel):
    direction: Literal["up", "down"]

class CommentIn(BaseModel):
    body: str = Field(min_length=1)
    parent_id: int = -1

class CommentEditIn(BaseModel):
    # empty body deletes the comment
    body: str = ""

class ItemOut(BaseModel):
    id: int
    title: str
    url: str
    domain: Optional[str]
    text: Optional[str]
    user_id: int
    username: Optional[str]
    ctime: int
    up: int
    down: int
    score: float
    rank: float
    comments: int
    deleted: bool
    voted: Optional[str] = None

    @classmethod
    def of(cls, item: Item) -> "ItemOut":
        return cls(domain=item.domain, text=item.text, **item.model_dump())

class ItemPage(BaseModel):
    items: list[ItemOut]
    total: int

class UserOut(BaseModel):
    id: int
    username: str
    ctime: int
    karma: int
    replies: int

    @classmethod
    def of(cls, user: User) -> "UserOut":
        return cls(id=user.id, username=user.username, ctime=user.ctime, karma=user.karma, replies=user.replies)

class CommentOut(BaseModel):
    id: int
    thread_id: int
    parent_id: int
    user_id: int
    username: Optional[str] = None
    body: Optional[str]
    ctime: int
    score: int
    level: int = 0
    deleted: bool

    @classmethod
    def of(cls, c: Comment, level: int = 0, author: User | None = None) -> "CommentOut":
        return cls(
            id=c.id,
            thread_id=c.thread_id,
            parent_id=c.parent_id,
            user_id=c.user_id,
            username=author.username if author else None,
            body=None if c.deleted else c.body,
            ctime=c.ctime,
            score=c.score,
            level=level,
            deleted=c.deleted,
        )
