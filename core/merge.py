"""GLOBEBOARD FILE PURPOSE
Purpose: typed merge-patch of a partial JSON document onto a stored registration.
Hot path: no (PATCH only).
Feature flags: none.
Failure mode: wrong types or immutable field changes => ValidationError; original never mutated.
"""

from __future__ import annotations

from typing import Any

from core.errors import ValidationError
from core.models import FEATURE_FLAGS, FeatureSet, Registration

# Wire keys that identify the country; present-but-different is rejected.
_IMMUTABLE_KEYS = {"country": "country", "isoCode": "iso_code", "isocode": "iso_code"}


def merge_features(original: FeatureSet, patch: dict[str, Any]) -> FeatureSet:
    updates: dict[str, Any] = {}
    for name in FEATURE_FLAGS:
        if name not in patch:
            continue
        value = patch[name]
        if not isinstance(value, bool):
            raise ValidationError(f"feature '{name}' must be a boolean")
        updates[name] = value

    if "targetCurrencies" in patch:
        value = patch["targetCurrencies"]
        if value is None:
            value = []
        if not isinstance(value, list) or not all(isinstance(c, str) for c in value):
            raise ValidationError("feature 'targetCurrencies' must be a list of currency codes")
        updates["target_currencies"] = list(value)

    return original.model_copy(update=updates, deep=True)


def _check_immutable(original: Registration, document: dict[str, Any]) -> None:
    for key, attr in _IMMUTABLE_KEYS.items():
        if key not in document:
            continue
        value = document[key]
        if value is None or (isinstance(value, str) and not value.strip()):
            continue
        current = str(getattr(original, attr))
        if not isinstance(value, str) or value.strip().lower() != current.lower():
            raise ValidationError(f"modification of '{key}' field is not allowed")


def patch_registration(original: Registration, document: Any) -> Registration:
    if not isinstance(document, dict):
        raise ValidationError("patch document must be a JSON object")
    _check_immutable(original, document)

    features = original.features
    if "features" in document and document["features"] is not None:
        raw = document["features"]
        if not isinstance(raw, dict):
            raise ValidationError("'features' must be a JSON object")
        features = merge_features(original.features, raw)

    return original.model_copy(update={"features": features}, deep=True)
