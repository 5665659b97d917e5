"""GLOBEBOARD FILE PURPOSE
Purpose: admin-issued API keys (one per owner) used as `?token=` on dashboard endpoints.
Hot path: no (admin control plane only).
Feature flags: GB_FEATURE_API_KEYS.
Failure mode:
  - unauthorized => 401
  - owner already has a key => 409
  - unknown key => 404
"""

from __future__ import annotations

import os
from typing import Any

from fastapi import APIRouter, Header, HTTPException, Query, Response
from pydantic import BaseModel, ConfigDict, Field

from core import db
from core.config import API_VERSION
from core.errors import NotFoundError
from core.ids import generate_api_key
from core.logging import dbg

router = APIRouter(prefix=f"/util/{API_VERSION}/key", tags=["api-keys"])


class IssueKeyRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    owner_id: str = Field(min_length=1, max_length=128)


def _admin_api_key() -> str | None:
    key = (os.getenv("GB_ADMIN_API_KEY") or "").strip()
    return key or None


def _authorized(auth_header: str | None) -> bool:
    configured = _admin_api_key()
    if configured is None or not isinstance(auth_header, str):
        return False
    prefix = "Bearer "
    if not auth_header.startswith(prefix):
        return False
    token = auth_header[len(prefix) :].strip()
    return token == configured


def _require_admin_bearer(authorization: str | None) -> None:
    if not _authorized(authorization):
        raise HTTPException(status_code=401, detail="unauthorized")


@router.post("", status_code=201)
async def api_key_issue(
    body: IssueKeyRequest,
    authorization: str | None = Header(default=None),
) -> dict[str, Any]:
    _require_admin_bearer(authorization)
    owner_id = body.owner_id.strip()
    if not owner_id:
        raise HTTPException(status_code=422, detail="owner_id is required")
    token = generate_api_key()
    db.add_api_key(owner_id, token)
    dbg(f"API_KEY_ISSUED owner={owner_id}")
    return {"token": token}


@router.delete("", status_code=204)
async def api_key_revoke(
    token: str = Query(..., min_length=1),
    authorization: str | None = Header(default=None),
) -> Response:
    _require_admin_bearer(authorization)
    token = token.strip()
    owner_id = db.get_api_key_owner(token)
    if owner_id is None:
        raise NotFoundError("API key not found")
    db.delete_api_key(owner_id, token)
    dbg(f"API_KEY_REVOKED owner={owner_id}")
    return Response(status_code=204)


FEATURE = {
    "key": "api_keys",
    "router": router,
    "enabled_env": "GB_FEATURE_API_KEYS",
}
