"""
Application factory.

Run with ``uvicorn --factory campusfeed.main:create_app`` or the
``campusfeed`` console script.
"""

import asyncio
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from campusfeed.api.chat import router as chat_router
from campusfeed.api.fast_api import router as api_router
from campusfeed.database.config.config import Settings, settings
from campusfeed.database.config.connection import build_engine, build_session_factory, init_db
from campusfeed.database.core import sessions
from campusfeed.errors import CampusFeedError, StorageError
from campusfeed.logging import configure_logging, logger
from campusfeed.services.chat import ChatBroadcaster
from campusfeed.services.storage import LocalBlobStore


async def _purge_sessions_periodically(app: FastAPI) -> None:
    interval = app.state.settings.SESSION_PURGE_INTERVAL_SECONDS
    while True:
        await asyncio.sleep(interval)
        await asyncio.to_thread(_purge_once, app)


def _purge_once(app: FastAPI) -> None:
    db = app.state.session_factory()
    try:
        sessions.purge_expired(db)
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    _purge_once(app)
    purger = asyncio.create_task(_purge_sessions_periodically(app))
    logger.info("campusfeed started")
    try:
        yield
    finally:
        purger.cancel()
        await asyncio.gather(purger, return_exceptions=True)
        app.state.engine.dispose()
        logger.info("campusfeed stopped")


async def domain_error_handler(request: Request, exc: CampusFeedError):
    if isinstance(exc, StorageError) or exc.status_code >= 500:
        logger.error("{} {} failed: {}", request.method, request.url.path, exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.public_detail})
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.opt(exception=exc).error("Unhandled error on {} {}", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        app_settings: Overrides the process-wide ``settings`` for the
            database URL, media location, cookies, CORS and chat sizes.
    """
    app_settings = app_settings or settings
    configure_logging(app_settings.LOG_LEVEL, app_settings.LOG_JSON)

    engine = build_engine(app_settings.DATABASE_URL)
    init_db(engine)
    os.makedirs(app_settings.MEDIA_ROOT, exist_ok=True)

    app = FastAPI(title="campusfeed API", lifespan=lifespan)
    app.state.settings = app_settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.blob_store = LocalBlobStore(app_settings.MEDIA_ROOT, app_settings.MEDIA_URL)
    app.state.broadcaster = ChatBroadcaster(
        capacity=app_settings.CHAT_HISTORY_SIZE,
        client_queue_size=app_settings.CHAT_CLIENT_QUEUE_SIZE,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[app_settings.FRONTEND_URL],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(CampusFeedError, domain_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(api_router)
    app.include_router(chat_router)
    app.mount(app_settings.MEDIA_URL, StaticFiles(directory=app_settings.MEDIA_ROOT), name="media")
    return app


def run() -> None:
    import uvicorn

    port = int(os.getenv("PORT", 8000))
    uvicorn.run("campusfeed.main:create_app", factory=True, host="0.0.0.0", port=port)


if __name__ == "__main__":
    run()
