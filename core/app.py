"""GLOBEBOARD FILE PURPOSE
Purpose: create FastAPI app, install domain error mapping and mount enabled features.
Hot path: no (startup only).
Feature flags: GB_FEATURE_*.
Failure mode: start with core routes even if no features enabled.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from core.config import AppContext
from core.errors import DashboardError
from core.feature_loader import load_features
from core.logging import logger


def create_app() -> FastAPI:
    app = FastAPI(title="GlobeBoard")
    app.state.context = AppContext.start()

    @app.exception_handler(DashboardError)
    async def _domain_error(request: Request, exc: DashboardError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.warning("REQUEST_FAILED path=%s err=%s: %s", request.url.path, type(exc).__name__, exc)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail()})

    @app.get("/")
    async def root() -> dict[str, bool]:
        return {"ok": True}

    load_features(app)
    return app
