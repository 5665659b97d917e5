"""GLOBEBOARD FILE PURPOSE
Purpose: registration lifecycle (create / patch / read / delete / dashboard read).
Hot path: yes (all registration and dashboard endpoints).
Feature flags: none.
Failure mode:
  - validation before any persistence; patch failures leave the stored row untouched
  - exactly one event emitted per successful transition, none on failure
  - concurrent patches are last-writer-wins
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from core import db
from core.aggregator import aggregate
from core.config import API_VERSION
from core.ids import generate_uid
from core.logging import dbg
from core.merge import patch_registration as merge_patch
from core.models import DashboardSnapshot, EventKind, Registration, utc_now
from core.notify import NotificationEvent
from core.validation import (
    normalize_currencies,
    parse_registration_request,
    resolve_country,
    validate_features,
)

REGISTRATIONS_PATH = f"/dashboard/{API_VERSION}/registrations"
REGISTRATION_ID_PATH = f"/dashboard/{API_VERSION}/registrations/{{ID}}"
DASHBOARD_ID_PATH = f"/dashboard/{API_VERSION}/dashboards/{{ID}}"

Emit = Callable[[NotificationEvent], None]


def _event(owner_id: str, kind: EventKind, endpoint: str, country: str, body: Any) -> NotificationEvent:
    return NotificationEvent(owner_id=owner_id, event=kind, endpoint=endpoint, country=country, body=body)


def create_registration(owner_id: str, document: Any, emit: Emit) -> Registration:
    req = parse_registration_request(document)
    features = validate_features(req.features)
    country, iso_code = resolve_country(req.country, req.iso_code)

    reg = Registration(
        id=generate_uid(),
        owner_id=owner_id,
        country=country,
        iso_code=iso_code,
        features=features,
        last_change=utc_now(),
    )
    db.put_registration(reg)
    dbg(f"REGISTRATION_CREATED id={reg.id} iso={reg.iso_code}")
    emit(_event(owner_id, EventKind.REGISTER, REGISTRATIONS_PATH, reg.iso_code, reg.external()))
    return reg


def list_registrations(owner_id: str) -> list[Registration]:
    return db.list_registrations(owner_id)


def read_registration(owner_id: str, reg_id: str, emit: Emit) -> Registration:
    reg = db.get_registration(reg_id, owner_id)
    emit(_event(owner_id, EventKind.INVOKE, REGISTRATION_ID_PATH, reg.iso_code, reg.external()))
    return reg


def _precheck_patch(document: Any) -> None:
    features = document.get("features") if isinstance(document, dict) else None
    if isinstance(features, dict) and isinstance(features.get("targetCurrencies"), list):
        normalize_currencies(features["targetCurrencies"])


def patch_registration(owner_id: str, reg_id: str, document: Any, emit: Emit) -> Registration:
    original = db.get_registration(reg_id, owner_id)
    _precheck_patch(document)
    merged = merge_patch(original, document)

    features = validate_features(merged.features)
    country, iso_code = resolve_country(merged.country, merged.iso_code)
    updated = merged.model_copy(
        update={"features": features, "country": country, "iso_code": iso_code, "last_change": utc_now()}
    )
    db.put_registration(updated)
    dbg(f"REGISTRATION_PATCHED id={updated.id}")
    emit(_event(owner_id, EventKind.CHANGE, REGISTRATION_ID_PATH, updated.iso_code, updated.external()))
    return updated


def delete_registration(owner_id: str, reg_id: str, emit: Emit) -> Registration:
    reg = db.get_registration(reg_id, owner_id)
    db.delete_registration(reg_id, owner_id)
    dbg(f"REGISTRATION_DELETED id={reg.id}")
    emit(_event(owner_id, EventKind.DELETE, REGISTRATION_ID_PATH, reg.iso_code, reg.external()))
    return reg


def read_dashboard(owner_id: str, reg_id: str, emit: Emit) -> DashboardSnapshot:
    reg = db.get_registration(reg_id, owner_id)
    snapshot = aggregate(reg)
    emit(_event(owner_id, EventKind.INVOKE, DASHBOARD_ID_PATH, snapshot.iso_code, snapshot.external()))
    return snapshot
