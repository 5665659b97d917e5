"""GLOBEBOARD FILE PURPOSE
Purpose: compose a dashboard snapshot from per-feature upstream lookups.
Hot path: yes (every dashboard read).
Feature flags: none.
Failure mode: fail fast; first UpstreamError aborts, partial snapshots are never returned.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Any

from core import providers
from core.errors import UpstreamError
from core.logging import dbg, logger
from core.models import DashboardSnapshot, FeatureValues, Registration, utc_now


def project_rates(table: dict[str, float], requested: list[str]) -> dict[str, float]:
    out: dict[str, float] = {}
    for code in requested:
        key = code.upper()
        if key in table and key not in out:
            out[key] = table[key]
    return out


def _resolve(registration: Registration) -> dict[str, Any]:
    features = registration.features
    iso = registration.iso_code
    values: dict[str, Any] = {}

    if features.capital:
        values["capital"] = providers.get_capital(iso)
    if features.coordinates:
        values["coordinates"] = providers.get_coordinates(iso)
    if features.population:
        values["population"] = providers.get_population(iso)
    if features.area:
        values["area"] = providers.get_area(iso)
    if features.target_currencies:
        table = providers.get_exchange_rates(iso)
        values["target_currencies"] = project_rates(table, features.target_currencies)
    # Weather lookups each resolve coordinates on their own; no shared cache.
    if features.temperature:
        values["temperature"] = providers.get_temperature(providers.get_coordinates(iso))
    if features.precipitation:
        values["precipitation"] = providers.get_precipitation(providers.get_coordinates(iso))
    return values


def aggregate(registration: Registration, clock: Callable[[], datetime] = utc_now) -> DashboardSnapshot:
    try:
        values = _resolve(registration)
    except UpstreamError as e:
        logger.warning(
            "AGGREGATE_FAILED id=%s iso=%s err=%s: %s",
            registration.id,
            registration.iso_code,
            type(e).__name__,
            e,
        )
        raise

    snapshot = DashboardSnapshot(
        id=registration.id,
        country=registration.country,
        iso_code=registration.iso_code,
        features=FeatureValues(**values),
        last_retrieval=clock(),
    )
    dbg(f"AGGREGATE_OK id={registration.id} features={sorted(values)}")
    return snapshot
