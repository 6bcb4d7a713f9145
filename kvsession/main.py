#!/usr/bin/env python3
"""
kvsession - Main Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Connects the shared session store
3. Runs the API server

All session logic is in the modules, following black box principles.
"""

import logging
import logging.config as log_config
import time
from contextlib import asynccontextmanager
from typing import Callable, Optional

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from kvsession import __version__
from kvsession.logging_config import get_logging_config
from kvsession.modules.api import (
    SessionInfoResponse,
    SetValueRequest,
    SetValueResponse,
    UnavailableReason,
    UnavailableResponse,
    ValueResponse,
)
from kvsession.modules.config import ConfigModule, get_config
from kvsession.modules.middleware import SessionMiddleware
from kvsession.modules.session import (
    InvalidKeyError,
    NoSessionError,
    NotFoundError,
    SessionModule,
    StoreError,
    TimedOutError,
)
from kvsession.modules.storage import SessionStore, StorageModule

logger = logging.getLogger(__name__)


def get_session(request: Request) -> SessionModule:
    """Session bound to the current request by SessionMiddleware."""
    session = getattr(request.state, "session", None)
    if session is None:
        raise HTTPException(503, "Session not initialized")
    return session


def _unavailable(name: Optional[str], error: LookupError) -> JSONResponse:
    if isinstance(error, NoSessionError):
        reason = UnavailableReason.NO_SESSION
    elif isinstance(error, TimedOutError):
        reason = UnavailableReason.TIMED_OUT
    else:
        reason = UnavailableReason.NOT_FOUND

    body = UnavailableResponse(name=name, reason=reason, detail=str(error))
    return JSONResponse(status_code=404, content=body.model_dump(mode="json"))


def create_app(
    config: Optional[ConfigModule] = None,
    store: Optional[SessionStore] = None,
    clock: Callable[[], float] = time.time,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Configuration, defaults to the environment singleton
        store: Shared session store; when omitted a Redis store is
            connected during startup
        clock: Epoch clock used for session timeouts
    """
    config = config or get_config()
    storage = StorageModule(
        host=config.get("redis_host"),
        port=config.get("redis_port"),
        db=config.get("redis_db"),
        password=config.get("redis_password"),
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Manage application lifecycle - initialize and cleanup resources.
        """
        logger.info("Starting kvsession API...")

        if getattr(app.state, "session_store", None) is None:
            app.state.session_store = await storage.create_store()
            logger.info("Redis session store connected")

        yield

        logger.info("Shutting down kvsession API...")
        await storage.disconnect()

    app = FastAPI(
        title="kvsession API",
        description="Server-side session state keyed by a signed cookie",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.session_store = store

    app.middleware("http")(
        SessionMiddleware(
            secret_key=config.get("session_secret"),
            timeout=config.get("session_timeout"),
            expiration=config.get("session_expiration"),
            cookie_name=config.get("cookie_name"),
            cookie_secure=config.get("cookie_secure", False),
            clock=clock,
        )
    )

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        logger.error(f"Session store failure on {request.url.path}: {exc}")
        return JSONResponse(status_code=503, content={"error": "Session store unavailable"})

    @app.exception_handler(InvalidKeyError)
    async def invalid_key_handler(request: Request, exc: InvalidKeyError):
        return JSONResponse(status_code=422, content={"error": str(exc)})

    @app.get("/health")
    async def health():
        return {"status": "ok", "version": __version__}

    @app.get("/session", response_model=SessionInfoResponse)
    async def session_info(session: SessionModule = Depends(get_session)):
        info = await session.info()
        if info is None:
            raise HTTPException(404, "No active session")
        return SessionInfoResponse(
            session_id=info.session_id,
            created_at=info.created_at,
            last_activity=info.last_activity,
            keys=info.keys,
        )

    @app.get("/session/values/{name}", response_model=ValueResponse)
    async def get_value(name: str, session: SessionModule = Depends(get_session)):
        try:
            value = await session.get(name)
        except (NoSessionError, TimedOutError, NotFoundError) as e:
            return _unavailable(name, e)
        return ValueResponse(name=name, value=value)

    @app.put("/session/values/{name}", response_model=SetValueResponse)
    async def set_value(
        name: str,
        body: SetValueRequest,
        session: SessionModule = Depends(get_session),
    ):
        stored = await session.set(name, body.value)
        if not stored:
            raise HTTPException(500, "Failed to create session")
        return SetValueResponse(stored=stored)

    @app.delete("/session/values/{name}", status_code=204)
    async def delete_value(name: str, session: SessionModule = Depends(get_session)):
        await session.delete(name)

    @app.delete("/session", status_code=204)
    async def clear_session(session: SessionModule = Depends(get_session)):
        await session.clear()

    @app.post("/session/logout", status_code=204)
    async def logout(session: SessionModule = Depends(get_session)):
        await session.destroy()

    return app


def run() -> None:
    """Run the API server with uvicorn."""
    config = get_config()
    logging_config = get_logging_config(config.get("log_level"))
    log_config.dictConfig(logging_config)

    uvicorn.run(
        create_app(config),
        host=config.get("host"),
        port=config.get("port"),
        log_config=logging_config,
    )


if __name__ == "__main__":
    run()
