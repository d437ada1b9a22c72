from __future__ import annotations
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from newsengine.core.context import RequestContext
from newsengine.core.logging import bind_request_context
from newsengine.core.redis import get_redis
from newsengine.core.settings import settings
from newsengine.engine import Engine, build_engine
from newsengine.services.auth import decode_token

bearer = HTTPBearer(auto_error=False)

def get_engine() -> Engine:
    return build_engine(get_redis(), settings)

def get_context(
    cred: HTTPAuthorizationCredentials | None = Depends(bearer),
    engine: Engine = Depends(get_engine),
) -> RequestContext:
    ctx = RequestContext()
    if cred is None:
        return ctx
    try:
        payload = decode_token(cred.credentials)
        uid = int(payload["sub"])
    except (JWTError, KeyError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token")
    user = engine.accounts.get(uid)
    if not user:
        raise HTTPException(status_code=401, detail="Unauthorized")
    # passive karma growth is paid on authenticated requests
    karma = engine.karma.credit_passive(ctx, user.id)
    if karma is not None:
        user.karma = karma
        user.karma_incr_time = ctx.now
    ctx.user = user
    bind_request_context(user_id=user.id)
    return ctx

def require_user(ctx: RequestContext = Depends(get_context)) -> RequestContext:
    if ctx.user is None:
        raise HTTPException(status_code=401, detail="Not authenticated.")
    return ctx
