from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException, Query

from newsengine.api.deps import get_context, get_engine
from newsengine.api.schemas import CommentOut, ItemOut, ItemPage, UserOut
from newsengine.core.context import RequestContext
from newsengine.engine import Engine
from newsengine.models import User

router = APIRouter(prefix="/users", tags=["users"])

def _user_or_404(engine: Engine, username: str) -> User:
    user = engine.accounts.get_by_username(username)
    if not user:
        raise HTTPException(status_code=404, detail="Non existing user")
    return user

@router.get("/{username}", response_model=UserOut)
def get_user(username: str, engine: Engine = Depends(get_engine)):
    return UserOut.of(_user_or_404(engine, username))

@router.get("/{username}/news", response_model=ItemPage)
def user_news(username: str, start: int = Query(0, ge=0), ctx: RequestContext = Depends(get_context), engine: Engine = Depends(get_engine)):
    user = _user_or_404(engine, username)
    items, total = engine.news.posted(ctx, user.id, start)
    return ItemPage(items=[ItemOut.of(n) for n in items], total=total)

@router.get("/{username}/comments", response_model=list[CommentOut])
def user_comments(username: str, start: int = Query(0, ge=0), engine: Engine = Depends(get_engine)):
    user = _user_or_404(engine, username)
    comments, _ = engine.comments.by_user(user.id, start)
    return [CommentOut.of(c, author=user) for c in comments]
