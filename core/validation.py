"""GLOBEBOARD FILE PURPOSE
Purpose: registration validation shared by create and patch paths.
Hot path: no (write paths only).
Feature flags: none.
Failure mode: local shape checks raise ValidationError before any upstream call;
country lookup failures surface as UpstreamError.
"""

from __future__ import annotations

import re
from typing import Any

import pydantic

from core import providers
from core.errors import ValidationError
from core.models import FeatureSet, RegistrationRequest

_ISO_RE = re.compile(r"^[A-Za-z]{2}$")
_CURRENCY_RE = re.compile(r"^[A-Za-z]{3}$")


def _first_error(exc: pydantic.ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "invalid request body"
    err = errors[0]
    loc = ".".join(str(p) for p in err.get("loc", ()))
    return f"{loc}: {err.get('msg', 'invalid value')}" if loc else str(err.get("msg", "invalid value"))


def parse_registration_request(document: Any) -> RegistrationRequest:
    if not isinstance(document, dict):
        raise ValidationError("request body must be a JSON object")
    try:
        return RegistrationRequest.model_validate(document)
    except pydantic.ValidationError as e:
        raise ValidationError(_first_error(e)) from e


def normalize_currencies(codes: list[str]) -> list[str]:
    out: list[str] = []
    for code in codes:
        if not isinstance(code, str) or not _CURRENCY_RE.fullmatch(code.strip()):
            raise ValidationError(f"invalid currency code: {code!r}")
        upper = code.strip().upper()
        if upper in out:
            raise ValidationError(f"duplicate currency code: {upper}")
        out.append(upper)
    return out


def validate_features(features: FeatureSet) -> FeatureSet:
    currencies = normalize_currencies(features.target_currencies)
    normalized = features.model_copy(update={"target_currencies": currencies})
    if normalized.is_empty():
        raise ValidationError("at least one feature must be populated")
    return normalized


def _title(name: str) -> str:
    return " ".join(part.capitalize() for part in name.strip().split())


def validate_country_shape(country: str, iso_code: str) -> tuple[str, str]:
    country = (country or "").strip()
    iso_code = (iso_code or "").strip()
    if not country and not iso_code:
        raise ValidationError("either country name or ISO code must be provided")
    if iso_code and not _ISO_RE.fullmatch(iso_code):
        raise ValidationError("invalid ISO code")
    return country, iso_code.upper()


def resolve_country(country: str, iso_code: str) -> tuple[str, str]:
    """Resolve and cross-check (country, iso_code) against the supported set.

    Either side may be empty; the missing one is filled from the countries
    upstream. When both are given they must correspond.
    """
    country, iso_code = validate_country_shape(country, iso_code)
    supported = providers.get_supported_countries()

    if iso_code:
        known = supported.get(iso_code)
        if known is None:
            raise ValidationError("invalid ISO code")
        if not country:
            return known, iso_code
        if known.lower() != country.lower():
            raise ValidationError("ISO code and country name do not match")
        return known, iso_code

    wanted = country.lower()
    for code, name in supported.items():
        if name.lower() == wanted:
            return name, code
    raise ValidationError(f"country name not valid or not supported: {_title(country)}")
