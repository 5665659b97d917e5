"""GLOBEBOARD FILE PURPOSE
Purpose: in-process record of which feature routers were found, mounted or skipped.
Hot path: low (status reads only).
Feature flags: GB_FEATURE_*.
Failure mode: empty registry => app serves only `GET /`.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from fastapi import APIRouter


@dataclass(frozen=True)
class FeatureSpec:
    key: str
    enabled_env: str
    router: APIRouter

    @property
    def prefix(self) -> str:
        return self.router.prefix


@dataclass
class FeatureRegistry:
    discovered: dict[str, FeatureSpec] = field(default_factory=dict)
    enabled: dict[str, FeatureSpec] = field(default_factory=dict)
    # module name -> reason it was not loaded
    skipped: dict[str, str] = field(default_factory=dict)


_REGISTRY = FeatureRegistry()


def publish(registry: FeatureRegistry) -> None:
    global _REGISTRY
    _REGISTRY = registry


def discovered_features() -> dict[str, FeatureSpec]:
    return dict(_REGISTRY.discovered)


def enabled_features() -> dict[str, FeatureSpec]:
    return dict(_REGISTRY.enabled)


def skipped_modules() -> dict[str, str]:
    return dict(_REGISTRY.skipped)
