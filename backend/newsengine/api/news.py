from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException, Query

from newsengine.api.deps import get_context, get_engine, require_user
from newsengine.api.schemas import ItemOut, ItemPage, SubmitIn, VoteIn
from newsengine.core.context import RequestContext
from newsengine.engine import Engine

router = APIRouter(tags=["news"])

@router.get("/news/top", response_model=ItemPage)
def top_news(start: int = Query(0, ge=0), count: int | None = Query(None, ge=1, le=100), ctx: RequestContext = Depends(get_context), engine: Engine = Depends(get_engine)):
    items, total = engine.news.top(ctx, start, count)
    return ItemPage(items=[ItemOut.of(n) for n in items], total=total)

@router.get("/news/latest", response_model=ItemPage)
def latest_news(start: int = Query(0, ge=0), count: int | None = Query(None, ge=1, le=100), ctx: RequestContext = Depends(get_context), engine: Engine = Depends(get_engine)):
    items, total = engine.news.latest(ctx, start, count)
    return ItemPage(items=[ItemOut.of(n) for n in items], total=total)

@router.get("/news/{news_id}", response_model=ItemOut)
def get_news(news_id: int, ctx: RequestContext = Depends(get_context), engine: Engine = Depends(get_engine)):
    item = engine.news.get_by_id(ctx, news_id)
    if not item:
        raise HTTPException(status_code=404, detail="This news does not exist.")
    return ItemOut.of(item)

@router.post("/news")
def submit_news(data: SubmitIn, ctx: RequestContext = Depends(require_user), engine: Engine = Depends(get_engine)):
    news_id = engine.news.insert(ctx, data.title, data.url, data.text, ctx.user.id)
    return {"news_id": news_id}

@router.patch("/news/{news_id}")
def edit_news(news_id: int, data: SubmitIn, ctx: RequestContext = Depends(require_user), engine: Engine = Depends(get_engine)):
    engine.news.edit(ctx, news_id, data.title, data.url, data.text, ctx.user.id)
    return {"news_id": news_id}

@router.delete("/news/{news_id}")
def delete_news(news_id: int, ctx: RequestContext = Depends(require_user), engine: Engine = Depends(get_engine)):
    engine.news.delete(ctx, news_id, ctx.user.id)
    return {"ok": True}

@router.post("/news/{news_id}/vote")
def vote_news(news_id: int, data: VoteIn, ctx: RequestContext = Depends(require_user), engine: Engine = Depends(get_engine)):
    rank = engine.votes.cast_vote(ctx, news_id, ctx.user.id, data.direction)
    return {"ok": True, "rank": rank}

@router.get("/saved", response_model=ItemPage)
def saved_news(start: int = Query(0, ge=0), ctx: RequestContext = Depends(require_user), engine: Engine = Depends(get_engine)):
    items, total = engine.news.saved(ctx, ctx.user.id, start)
    return ItemPage(items=[ItemOut.of(n) for n in items], total=total)
