"""GLOBEBOARD FILE PURPOSE
Purpose: populated dashboard read (aggregates upstream facets for a registration).
Hot path: yes (fans out to countries/weather/currency upstreams per read).
Feature flags: GB_FEATURE_DASHBOARDS.
Failure mode:
  - missing token => 401, unknown token => 406, unknown id => 404
  - any upstream failure => 502 with a generic message (no partial dashboards)
  - INVOKE webhooks dispatched after the response
"""

from __future__ import annotations

import asyncio
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends

from core.auth import require_owner
from core.config import API_VERSION
from core.lifecycle import read_dashboard
from core.notify import NotificationEvent, dispatch

router = APIRouter(prefix=f"/dashboard/{API_VERSION}/dashboards", tags=["dashboards"])


@router.get("/{reg_id}")
async def dashboards_get(
    reg_id: str,
    background_tasks: BackgroundTasks,
    owner_id: str = Depends(require_owner),
) -> dict[str, Any]:
    def _emit(event: NotificationEvent) -> None:
        background_tasks.add_task(dispatch, event)

    snapshot = await asyncio.to_thread(read_dashboard, owner_id, reg_id, _emit)
    return snapshot.external()


FEATURE = {
    "key": "dashboards",
    "router": router,
    "enabled_env": "GB_FEATURE_DASHBOARDS",
}
