import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from comment_svc.cache import build_cache
from comment_svc.config import settings
from comment_svc.database import async_session, engine
from comment_svc.errors import (
    BackendUnavailableError,
    CommentConflictError,
    CommentNotFoundError,
    CommentStoreError,
    CommentValidationError,
    SerializationError,
)
from comment_svc.middleware import RequestMetricsMiddleware
from comment_svc.repository import SqlCommentRepository
from comment_svc.routers import comments, metrics
from comment_svc.services.comment_service import CommentStore

logger = logging.getLogger("comment_svc")

_STATUS_BY_ERROR: dict[type[CommentStoreError], int] = {
    CommentNotFoundError: 404,
    CommentConflictError: 409,
    CommentValidationError: 422,
    SerializationError: 500,
    BackendUnavailableError: 503,
}


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format=f"%(asctime)s %(levelname)s [{settings.SERVICE_NAME}] %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    configure_logging()
    cache = build_cache()
    await cache.connect()
    app.state.cache = cache
    app.state.store = CommentStore(
        SqlCommentRepository(async_session),
        cache,
        logger=logger,
        cache_ttl=settings.CACHE_TTL,
        invalidate_list_on_write=settings.CACHE_INVALIDATE_LIST_ON_WRITE,
    )
    logger.info("Comment store ready (env=%s, cache=%s)", settings.APP_ENV, settings.CACHE_BACKEND)
    yield
    # Shutdown
    await cache.disconnect()
    await engine.dispose()

app = FastAPI(
    title="Comments API",
    description="Cache-aside data access for video comments",
    version="1.0.0",
    lifespan=lifespan,
)

# Middleware
app.add_middleware(RequestMetricsMiddleware)

# Routers
app.include_router(comments.router)
app.include_router(metrics.router)

@app.exception_handler(CommentStoreError)
async def comment_store_error_handler(request: Request, exc: CommentStoreError):
    status_code = next(
        (code for cls, code in _STATUS_BY_ERROR.items() if isinstance(exc, cls)),
        500,
    )
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "code": exc.code},
    )

@app.get("/health")
async def health():
    return {"status": "healthy", "version": "1.0.0"}
