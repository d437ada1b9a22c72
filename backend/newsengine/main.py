from __future__ import annotations
from fastapi import FastAPI
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from starlette.responses import JSONResponse
from starlette.requests import Request

from newsengine import __version__
from newsengine.core.errors import EngineError
from newsengine.core.logging import configure_logging, log
from newsengine.core.middleware import SecurityHeadersMiddleware, RequestLogMiddleware
from newsengine.api import auth, news, comments, users

configure_logging()

limiter = Limiter(key_func=get_remote_address)

app = FastAPI(title="newsengine API", version=__version__)
app.state.limiter = limiter

@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse({"detail": "rate limit exceeded"}, status_code=429)

@app.exception_handler(EngineError)
async def engine_error_handler(request: Request, exc: EngineError):
    if exc.status >= 500:
        log.error("engine_error", kind=exc.kind, error=exc.message)
    else:
        log.info("request_rejected", kind=exc.kind, error=exc.message)
    return JSONResponse({"detail": exc.message, "kind": exc.kind}, status_code=exc.status)

app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLogMiddleware)

app.include_router(auth.router)
app.include_router(news.router)
app.include_router(comments.router)
app.include_router(users.router)

@app.get("/health")
@limiter.limit("30/minute")
async def health(request: Request):
    return {"ok": True}
