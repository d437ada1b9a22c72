from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException

from newsengine.api.deps import get_context, get_engine
from newsengine.api.schemas import RegisterIn, LoginIn, TokenOut, UserOut
from newsengine.core.context import RequestContext
from newsengine.engine import Engine
from newsengine.services.auth import create_access_token

router = APIRouter(prefix="/auth", tags=["auth"])

@router.post("/register", response_model=TokenOut)
def register(data: RegisterIn, ctx: RequestContext = Depends(get_context), engine: Engine = Depends(get_engine)):
    user = engine.accounts.create(ctx, data.username, data.password)
    return TokenOut(access_token=create_access_token(str(user.id)))

@router.post("/login", response_model=TokenOut)
def login(data: LoginIn, engine: Engine = Depends(get_engine)):
    user = engine.accounts.authenticate(data.username, data.password)
    if not user:
        raise HTTPException(status_code=401, detail="No match for the specified username / password pair.")
    return TokenOut(access_token=create_access_token(str(user.id)))

@router.get("/me", response_model=UserOut)
def me(ctx: RequestContext = Depends(get_context)):
    if ctx.user is None:
        raise HTTPException(status_code=401, detail="Not authenticated.")
    return UserOut.of(ctx.user)
