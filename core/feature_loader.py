"""GLOBEBOARD FILE PURPOSE
Purpose: find the one-file routers in `features/`, check their FEATURE contract, mount the enabled ones.
Hot path: no (startup only).
Feature flags: GB_FEATURE_* (each module names its own flag; default off).
Failure mode: a module with a broken FEATURE dict is skipped and its reason recorded;
import errors propagate (a feature that cannot import is a deploy bug).
"""

from __future__ import annotations

import importlib
import pkgutil
import re
from typing import Any

from fastapi import APIRouter, FastAPI

from core.config import env_flag
from core.logging import dbg, logger
from core.registry import FeatureRegistry, FeatureSpec, publish

_ENV_RE = re.compile(r"^GB_FEATURE_[A-Z0-9_]+$")
_KEY_RE = re.compile(r"^[a-z][a-z0-9_]*$")


def _spec_from(feature: Any) -> FeatureSpec | str:
    """Return a FeatureSpec, or a short reason why the FEATURE value is unusable."""
    if not isinstance(feature, dict):
        return "FEATURE missing or not a dict"
    missing = {"key", "router", "enabled_env"} - feature.keys()
    if missing:
        return f"FEATURE missing {sorted(missing)}"
    key = feature["key"]
    if not isinstance(key, str) or not _KEY_RE.match(key):
        return "key must be snake_case"
    env = feature["enabled_env"]
    if not isinstance(env, str) or not _ENV_RE.match(env):
        return "enabled_env must match GB_FEATURE_*"
    if not isinstance(feature["router"], APIRouter):
        return "router must be an APIRouter"
    return FeatureSpec(key=key, enabled_env=env, router=feature["router"])


def _feature_module_names() -> list[str]:
    import features  # namespace package

    return sorted(
        mod.name
        for mod in pkgutil.iter_modules(features.__path__)
        if not mod.ispkg and not mod.name.startswith("_")
    )


def load_features(app: FastAPI) -> FeatureRegistry:
    registry = FeatureRegistry()

    for name in _feature_module_names():
        module = importlib.import_module(f"features.{name}")
        spec = _spec_from(getattr(module, "FEATURE", None))
        if isinstance(spec, str):
            registry.skipped[name] = spec
            logger.warning("FEATURE_SKIPPED module=%s reason=%s", name, spec)
            continue
        if spec.key in registry.discovered:
            registry.skipped[name] = f"duplicate key {spec.key}"
            logger.warning("FEATURE_SKIPPED module=%s reason=duplicate key %s", name, spec.key)
            continue

        registry.discovered[spec.key] = spec
        if env_flag(spec.enabled_env, "0"):
            app.include_router(spec.router)
            registry.enabled[spec.key] = spec
            dbg(f"FEATURE_MOUNTED key={spec.key} prefix={spec.prefix}")

    publish(registry)
    dbg(f"FEATURES enabled={sorted(registry.enabled)} discovered={sorted(registry.discovered)}")
    return registry
