"""GLOBEBOARD FILE PURPOSE
Purpose: resolve an API token to the owning principal (authorization-by-ownership only).
Hot path: yes (every dashboard endpoint).
Feature flags: none.
Failure mode: missing token => 401; unknown token => 406.
"""

from __future__ import annotations

from fastapi import Query

from core import db
from core.errors import KeyNotAccepted, Unauthorized
from core.logging import dbg


def resolve_owner(token: str | None) -> str:
    if not isinstance(token, str) or not token.strip():
        raise Unauthorized("Please provide API Token")
    owner_id = db.get_api_key_owner(token.strip())
    if owner_id is None:
        dbg("AUTH_REJECTED reason=unknown_token")
        raise KeyNotAccepted("API key not accepted")
    return owner_id


def require_owner(token: str | None = Query(default=None)) -> str:
    return resolve_owner(token)
