"""GLOBEBOARD FILE PURPOSE
Purpose: environment configuration helpers (safe defaults) and process context.
Hot path: yes (read-only env lookups; lightweight).
Feature flags: GLOBEBOARD_DEBUG, GB_FEATURE_*.
Failure mode: safe defaults when unset.
"""

from __future__ import annotations

import os
import time
from dataclasses import dataclass

API_VERSION = "v1"

DEFAULT_COUNTRIES_API = "https://restcountries.com/v3.1/"
DEFAULT_METEO_API = "https://api.open-meteo.com/v1/forecast"
DEFAULT_CURRENCY_API = "https://open.er-api.com/v6/latest/"


def env_flag(name: str, default: str = "0") -> bool:
    v = (os.getenv(name) or default).strip().lower()
    return v in ("1", "true", "yes", "on")


def is_debug() -> bool:
    return env_flag("GLOBEBOARD_DEBUG", "0")


def _base_url(name: str, default: str) -> str:
    return (os.getenv(name) or "").strip() or default


def countries_api() -> str:
    return _base_url("GB_COUNTRIES_API", DEFAULT_COUNTRIES_API)


def meteo_api() -> str:
    return _base_url("GB_METEO_API", DEFAULT_METEO_API)


def currency_api() -> str:
    return _base_url("GB_CURRENCY_API", DEFAULT_CURRENCY_API)


def upstream_timeout_s() -> float:
    raw = (os.getenv("GB_UPSTREAM_TIMEOUT_S") or "10").strip()
    try:
        value = float(raw)
    except ValueError:
        return 10.0
    return max(0.5, min(value, 60.0))


@dataclass(frozen=True)
class AppContext:
    started_monotonic: float
    version: str = API_VERSION

    @classmethod
    def start(cls) -> "AppContext":
        return cls(started_monotonic=time.monotonic())

    def uptime_seconds(self) -> float:
        return time.monotonic() - self.started_monotonic
