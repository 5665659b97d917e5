"""GLOBEBOARD FILE PURPOSE
Purpose: build notification payloads (generic JSON and Discord embed rendering).
Hot path: no (runs in background dispatch after the response).
Feature flags: none.
Failure mode: unserializable body => empty Payload field; building never raises.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

from core.logging import logger
from core.models import EventKind, NotificationField, NotificationPayload

USERNAME = "GlobeBoard"
AVATAR_URL = "https://i.imgur.com/vjsvcxU.png"

COLOR_SUCCESS = 2664261
COLOR_UPDATE = 16761095
COLOR_WARNING = 14431557
COLOR_INFO = 1548984

EVENT_STYLES: dict[EventKind, tuple[str, int]] = {
    EventKind.REGISTER: ("Registered New Country Data to GlobeBoard", COLOR_SUCCESS),
    EventKind.CHANGE: ("Changed Country Data on GlobeBoard", COLOR_UPDATE),
    EventKind.DELETE: ("Deleted Country Data from GlobeBoard", COLOR_WARNING),
    EventKind.INVOKE: ("Invoked Country Data from GlobeBoard", COLOR_INFO),
}


def _body_text(body: Any) -> str:
    try:
        text = json.dumps(body, indent=2, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        logger.warning("NOTIFY_BODY_UNSERIALIZABLE err=%r", e)
        return ""
    return f"```json\n{text}\n```"


def build_payload(
    title: str,
    color: int,
    event: EventKind,
    endpoint: str,
    country: str,
    body: Any,
) -> NotificationPayload:
    return NotificationPayload(
        title=title,
        color=color,
        timestamp=datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
        fields=[
            NotificationField(name="Event", value=event.value, inline=True),
            NotificationField(name="Endpoint", value=endpoint, inline=True),
            NotificationField(name="Country", value=country, inline=True),
            NotificationField(name="Payload", value=_body_text(body), inline=False),
        ],
        endpoint=endpoint,
        event=event,
    )


def build_event_payload(event: EventKind, endpoint: str, country: str, body: Any) -> NotificationPayload:
    title, color = EVENT_STYLES[event]
    return build_payload(title, color, event, endpoint, country, body)


def is_discord_url(url: str) -> bool:
    return "discord.com/api/webhooks" in url or "discordapp.com/api/webhooks" in url


def render_discord(payload: NotificationPayload, owner_id: str) -> dict[str, Any]:
    return {
        "username": USERNAME,
        "avatar_url": AVATAR_URL,
        "embeds": [
            {
                "title": payload.title,
                "author": {"name": f"User: {owner_id}"},
                "timestamp": payload.timestamp,
                "color": payload.color,
                "fields": [f.model_dump() for f in payload.fields],
                "footer": {"text": "Webhook Triggered:"},
            }
        ],
    }
