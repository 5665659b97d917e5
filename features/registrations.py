"""GLOBEBOARD FILE PURPOSE
Purpose: owner-scoped registration CRUD with merge-patch and webhook notifications.
Hot path: yes (dashboard control plane).
Feature flags: GB_FEATURE_REGISTRATIONS.
Failure mode:
  - missing token => 401, unknown token => 406
  - validation => 400, unknown id => 404, upstream country lookup => 502
  - webhook delivery never affects the response
"""

from __future__ import annotations

import asyncio
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Body, Depends, Response

from core.auth import require_owner
from core.config import API_VERSION
from core.lifecycle import (
    Emit,
    create_registration,
    delete_registration,
    list_registrations,
    patch_registration,
    read_registration,
)
from core.notify import NotificationEvent, dispatch

router = APIRouter(prefix=f"/dashboard/{API_VERSION}/registrations", tags=["registrations"])


def _emitter(background_tasks: BackgroundTasks) -> Emit:
    def _emit(event: NotificationEvent) -> None:
        background_tasks.add_task(dispatch, event)

    return _emit


@router.post("", status_code=201)
async def registrations_create(
    background_tasks: BackgroundTasks,
    document: Any = Body(default=None),
    owner_id: str = Depends(require_owner),
) -> dict[str, Any]:
    reg = await asyncio.to_thread(create_registration, owner_id, document, _emitter(background_tasks))
    out = reg.external()
    return {"id": out["id"], "lastChange": out["lastChange"]}


@router.get("")
async def registrations_list(owner_id: str = Depends(require_owner)) -> list[dict[str, Any]]:
    regs = await asyncio.to_thread(list_registrations, owner_id)
    return [reg.external() for reg in regs]


@router.get("/{reg_id}")
async def registrations_get(
    reg_id: str,
    background_tasks: BackgroundTasks,
    owner_id: str = Depends(require_owner),
) -> dict[str, Any]:
    reg = await asyncio.to_thread(read_registration, owner_id, reg_id, _emitter(background_tasks))
    return reg.external()


@router.patch("/{reg_id}", status_code=202)
async def registrations_patch(
    reg_id: str,
    background_tasks: BackgroundTasks,
    document: Any = Body(default=None),
    owner_id: str = Depends(require_owner),
) -> dict[str, Any]:
    reg = await asyncio.to_thread(patch_registration, owner_id, reg_id, document, _emitter(background_tasks))
    return {"lastChange": reg.external()["lastChange"]}


@router.delete("/{reg_id}", status_code=204)
async def registrations_delete(
    reg_id: str,
    background_tasks: BackgroundTasks,
    owner_id: str = Depends(require_owner),
) -> Response:
    await asyncio.to_thread(delete_registration, owner_id, reg_id, _emitter(background_tasks))
    return Response(status_code=204)


FEATURE = {
    "key": "registrations",
    "router": router,
    "enabled_env": "GB_FEATURE_REGISTRATIONS",
}
