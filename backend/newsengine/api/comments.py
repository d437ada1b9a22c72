from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException, Query

from newsengine.api.deps import get_engine, require_user
from newsengine.api.schemas import CommentEditIn, CommentIn, CommentOut, VoteIn
from newsengine.core.context import RequestContext
from newsengine.engine import Engine

router = APIRouter(tags=["comments"])

@router.get("/news/{news_id}/comments", response_model=list[CommentOut])
def get_thread(news_id: int, root: int = Query(-1), engine: Engine = Depends(get_engine)):
    return [CommentOut.of(c, level, author) for c, level, author in engine.comments.thread(news_id, root)]

@router.get("/news/{news_id}/comments/{comment_id}", response_model=CommentOut)
def get_comment(news_id: int, comment_id: int, engine: Engine = Depends(get_engine)):
    c = engine.tree.fetch_one(news_id, comment_id)
    if not c:
        raise HTTPException(status_code=404, detail="This comment does not exist.")
    return CommentOut.of(c)

@router.post("/news/{news_id}/comments", response_model=CommentOut)
def post_comment(news_id: int, data: CommentIn, ctx: RequestContext = Depends(require_user), engine: Engine = Depends(get_engine)):
    c = engine.comments.post(ctx, news_id, ctx.user.id, data.parent_id, data.body)
    return CommentOut.of(c, author=ctx.user)

@router.patch("/news/{news_id}/comments/{comment_id}")
def edit_comment(news_id: int, comment_id: int, data: CommentEditIn, ctx: RequestContext = Depends(require_user), engine: Engine = Depends(get_engine)):
    op = engine.comments.update(ctx, news_id, comment_id, ctx.user.id, data.body)
    return {"ok": True, "op": op, "comment_id": comment_id}

@router.post("/news/{news_id}/comments/{comment_id}/vote")
def vote_comment(news_id: int, comment_id: int, data: VoteIn, ctx: RequestContext = Depends(require_user), engine: Engine = Depends(get_engine)):
    score = engine.comments.vote(ctx, news_id, comment_id, ctx.user.id, data.direction)
    return {"ok": True, "score": score}
