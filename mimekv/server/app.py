"""
Starlette ASGI application for the mimekv HTTP surface.

Routes:
    GET  /{key}   read a value, negotiated against Accept
    POST /{key}   store the raw request body as its Content-Type

Usage:
    from mimekv.server.app import create_app

    app = create_app(MimeKVConfig.load())
    uvicorn.run(app, host="127.0.0.1", port=8080)
"""

from __future__ import annotations

import contextlib
import logging
from typing import AsyncIterator

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Route

from mimekv.core.config import MimeKVConfig
from mimekv.engine import KeyValueEngine
from mimekv.engine import Response as EngineResponse
from mimekv.media.classifier import MediaPolicy
from mimekv.store.factory import create_store

logger = logging.getLogger(__name__)


def _to_http(result: EngineResponse) -> Response:
    return Response(
        content=result.body,
        status_code=result.status,
        headers={"Content-Type": result.content_type},
    )


def build_engine(config: MimeKVConfig) -> KeyValueEngine:
    """Create an engine with the configured store and media policy."""
    return KeyValueEngine(
        create_store(config.store),
        policy=MediaPolicy.from_config(config.media),
    )


def create_app(
    config: MimeKVConfig | None = None,
    engine: KeyValueEngine | None = None,
) -> Starlette:
    """
    Create the ASGI app.

    The engine's store is initialized on startup and closed on shutdown.
    Pass `engine` to share one with the caller (tests do this).
    """
    config = config or MimeKVConfig()
    engine = engine or build_engine(config)

    async def get_value(request: Request) -> Response:
        key = request.path_params["key"]
        result = await engine.get(key, request.headers.get("accept"))
        logger.debug(f"GET /{key} → {result.status}")
        return _to_http(result)

    async def set_value(request: Request) -> Response:
        key = request.path_params["key"]
        body = await request.body()
        result = await engine.set(key, request.headers.get("content-type"), body)
        logger.debug(f"POST /{key} ({len(body)} bytes) → {result.status}")
        return _to_http(result)

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        await engine.store.initialize()
        logger.info(f"mimekv ready ({config.store.backend} backend)")
        try:
            yield
        finally:
            await engine.store.close()

    routes = [
        Route("/{key:path}", get_value, methods=["GET"]),
        Route("/{key:path}", set_value, methods=["POST"]),
    ]
    app = Starlette(debug=False, routes=routes, lifespan=lifespan)
    app.state.engine = engine
    return app
