from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .endpoints import control_router, health_router, views_router
from .runtime import LiveRuntime, build_runtime
from .transport import TransportError, Unauthorized

logger = logging.getLogger(__name__)


def create_app(runtime: Optional[LiveRuntime] = None, start_loops: bool = True) -> FastAPI:
    """App FastAPI con el runtime en `app.state.runtime`.

    Con `start_loops=False` no se arrancan los loops de polling (tests).
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        rt = runtime or build_runtime()
        app.state.runtime = rt
        if start_loops:
            await rt.start()
        try:
            yield
        finally:
            if start_loops:
                await rt.stop()

    app = FastAPI(title="Encoder Live Service", version="0.1.0", lifespan=lifespan)
    if runtime is not None:
        app.state.runtime = runtime

    @app.exception_handler(Unauthorized)
    async def _unauthorized(request: Request, exc: Unauthorized):
        return JSONResponse(
            status_code=401,
            content={"error": exc.message, "redirect": exc.redirect},
        )

    @app.exception_handler(TransportError)
    async def _upstream_failed(request: Request, exc: TransportError):
        logger.warning(
            "[CONTROL] upstream failure path=%s kind=%s error=%s",
            request.url.path, exc.kind, exc.message,
        )
        return JSONResponse(
            status_code=502,
            content={"error": exc.message, "kind": exc.kind, "upstream_status": exc.status_code},
        )

    app.include_router(health_router)
    app.include_router(views_router)
    app.include_router(control_router)
    return app


app = create_app()
