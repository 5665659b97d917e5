"""GLOBEBOARD FILE PURPOSE
Purpose: best-effort webhook fan-out for registration lifecycle events.
Hot path: no (scheduled as a background task after the response is sent).
Feature flags: none (GB_WEBHOOK_TIMEOUT_S).
Failure mode:
  - at-most-once, unordered, never retried
  - delivery or webhook lookup failures are logged and contained; callers never see them
"""

from __future__ import annotations

import asyncio
import json
import os
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Any

from core import db
from core.errors import PersistenceError
from core.logging import dbg, logger
from core.models import EventKind, NotificationPayload, Webhook
from core.payload import build_event_payload, is_discord_url, render_discord


@dataclass(frozen=True)
class NotificationEvent:
    owner_id: str
    event: EventKind
    endpoint: str
    country: str
    body: Any


def _timeout_s() -> float:
    raw = (os.getenv("GB_WEBHOOK_TIMEOUT_S") or "10").strip()
    try:
        return max(0.5, min(float(raw), 60.0))
    except ValueError:
        return 10.0


def webhook_matches(webhook: Webhook, event: NotificationEvent) -> bool:
    if webhook.owner_id != event.owner_id:
        return False
    if webhook.country and webhook.country.upper() != event.country.upper():
        return False
    return event.event in webhook.events


def _post_json(url: str, body: dict[str, Any]) -> int:
    req = urllib.request.Request(
        url=url,
        data=json.dumps(body).encode("utf-8"),
        headers={"Content-Type": "application/json"},
        method="POST",
    )
    with urllib.request.urlopen(req, timeout=_timeout_s()) as resp:
        return int(getattr(resp, "status", 200))


def _deliver(webhook: Webhook, payload: NotificationPayload) -> bool:
    if is_discord_url(webhook.url):
        body = render_discord(payload, webhook.owner_id)
    else:
        body = payload.model_dump(mode="json")
    try:
        status = _post_json(webhook.url, body)
    except urllib.error.HTTPError as e:
        logger.warning("WEBHOOK_DELIVERY_FAILED id=%s status=%s", webhook.id, e.code)
        return False
    except Exception as e:
        logger.warning("WEBHOOK_DELIVERY_FAILED id=%s err=%r", webhook.id, e)
        return False
    dbg(f"WEBHOOK_DELIVERED id={webhook.id} status={status}")
    return True


async def dispatch(event: NotificationEvent) -> int:
    try:
        webhooks = db.list_webhooks(event.owner_id)
    except PersistenceError as e:
        logger.warning("WEBHOOK_LOOKUP_FAILED owner=%s err=%s", event.owner_id, e)
        return 0

    targets = [w for w in webhooks if webhook_matches(w, event)]
    if not targets:
        dbg(f"WEBHOOK_NONE owner={event.owner_id} event={event.event.value}")
        return 0

    payload = build_event_payload(event.event, event.endpoint, event.country, event.body)
    results = await asyncio.gather(
        *[asyncio.to_thread(_deliver, w, payload) for w in targets],
        return_exceptions=True,
    )
    delivered = sum(1 for r in results if r is True)
    dbg(
        f"WEBHOOK_DISPATCH owner={event.owner_id} event={event.event.value} "
        f"targets={len(targets)} delivered={delivered}"
    )
    return delivered
