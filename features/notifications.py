"""GLOBEBOARD FILE PURPOSE
Purpose: owner-scoped webhook subscription management (register / list / get / delete).
Hot path: no (control-plane writes/reads only).
Feature flags: GB_FEATURE_NOTIFICATIONS.
Failure mode:
  - missing token => 401, unknown token => 406
  - invalid body => 422, unknown id => 404
"""

from __future__ import annotations

import re
from typing import Any

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, ConfigDict, Field, field_validator

from core import db
from core.auth import require_owner
from core.config import API_VERSION
from core.ids import generate_uid
from core.logging import dbg
from core.models import EventKind, Webhook

router = APIRouter(prefix=f"/dashboard/{API_VERSION}/notifications", tags=["notifications"])

_ISO_RE = re.compile(r"^[A-Za-z]{2}$")


class WebhookRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    url: str = Field(min_length=1, max_length=2000)
    country: str | None = None
    events: list[EventKind] = Field(default_factory=lambda: list(EventKind), alias="event", min_length=1)

    @field_validator("url")
    @classmethod
    def _http_url(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError("url must be an http(s) URL")
        return value

    @field_validator("country")
    @classmethod
    def _iso_country(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        if not _ISO_RE.fullmatch(value.strip()):
            raise ValueError("country must be an ISO 3166-1 alpha-2 code")
        return value.strip().upper()

    @field_validator("events")
    @classmethod
    def _dedupe(cls, value: list[EventKind]) -> list[EventKind]:
        return list(dict.fromkeys(value))


@router.post("", status_code=201)
async def notifications_create(
    body: WebhookRequest,
    owner_id: str = Depends(require_owner),
) -> dict[str, Any]:
    webhook = Webhook(
        id=generate_uid(),
        owner_id=owner_id,
        url=body.url,
        country=body.country,
        events=body.events,
    )
    db.add_webhook(webhook)
    dbg(f"WEBHOOK_REGISTERED id={webhook.id} events={[e.value for e in webhook.events]}")
    return {"id": webhook.id}


@router.get("")
async def notifications_list(owner_id: str = Depends(require_owner)) -> list[dict[str, Any]]:
    return [w.external() for w in db.list_webhooks(owner_id)]


@router.get("/{webhook_id}")
async def notifications_get(webhook_id: str, owner_id: str = Depends(require_owner)) -> dict[str, Any]:
    return db.get_webhook(webhook_id, owner_id).external()


@router.delete("/{webhook_id}", status_code=204)
async def notifications_delete(webhook_id: str, owner_id: str = Depends(require_owner)) -> Response:
    db.delete_webhook(webhook_id, owner_id)
    return Response(status_code=204)


FEATURE = {
    "key": "notifications",
    "router": router,
    "enabled_env": "GB_FEATURE_NOTIFICATIONS",
}
