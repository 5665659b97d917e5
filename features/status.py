"""GLOBEBOARD FILE PURPOSE
Purpose: service status (upstream reachability, database health, webhooks, version, uptime).
Hot path: no (diagnostics only).
Feature flags: GB_FEATURE_STATUS.
Failure mode: upstream/database problems are reported in the body, never raised.
"""

from __future__ import annotations

import asyncio
from typing import Any

from fastapi import APIRouter, Depends, Request

from core import db, providers
from core.auth import require_owner
from core.config import API_VERSION, AppContext, countries_api, currency_api, meteo_api
from core.registry import enabled_features

router = APIRouter(prefix=f"/dashboard/{API_VERSION}/status", tags=["status"])


def _probe_urls() -> dict[str, str]:
    return {
        "countries_api": f"{countries_api()}alpha?codes=NO&fields=cca2",
        "meteo_api": f"{meteo_api()}?latitude=0&longitude=0&current=temperature_2m",
        "currency_api": f"{currency_api()}NOK",
    }


@router.get("")
async def status_get(request: Request, owner_id: str = Depends(require_owner)) -> dict[str, Any]:
    urls = _probe_urls()
    statuses = await asyncio.gather(*[asyncio.to_thread(providers.probe, url) for url in urls.values()])
    ctx: AppContext = request.app.state.context

    out: dict[str, Any] = dict(zip(urls.keys(), statuses))
    out["database"] = db.check_connection()
    out["webhooks"] = db.count_webhooks(owner_id)
    out["features"] = sorted(enabled_features().keys())
    out["version"] = ctx.version
    out["uptime"] = round(ctx.uptime_seconds(), 3)
    return out


FEATURE = {
    "key": "status",
    "router": router,
    "enabled_env": "GB_FEATURE_STATUS",
}
