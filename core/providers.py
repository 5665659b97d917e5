"""GLOBEBOARD FILE PURPOSE
Purpose: one stateless upstream lookup per dashboard feature (countries, weather, currency).
Hot path: yes (dashboard reads and registration validation).
Feature flags: none (GB_COUNTRIES_API, GB_METEO_API, GB_CURRENCY_API, GB_UPSTREAM_TIMEOUT_S).
Failure mode:
  - transport error / non-2xx => UpstreamUnavailable (404 => UpstreamNotFound)
  - undecodable or wrongly shaped JSON => UpstreamMalformedResponse
  - never retries, never caches
"""

from __future__ import annotations

import http.client
import json
import urllib.error
import urllib.parse
import urllib.request
from typing import Any

from core.config import countries_api, currency_api, meteo_api, upstream_timeout_s
from core.errors import UpstreamMalformedResponse, UpstreamNotFound, UpstreamUnavailable
from core.logging import dbg, logger
from core.models import Coordinates


def _get_json(url: str, params: dict[str, str] | None = None) -> Any:
    if params:
        url = f"{url}?{urllib.parse.urlencode(params, safe=',')}"
    req = urllib.request.Request(url=url, headers={"Accept": "application/json"}, method="GET")
    try:
        with urllib.request.urlopen(req, timeout=upstream_timeout_s()) as resp:
            raw = resp.read()
    except urllib.error.HTTPError as e:
        logger.warning("UPSTREAM_HTTP_ERROR url=%s status=%s", url, e.code)
        if e.code == 404:
            raise UpstreamNotFound(f"{url} returned 404") from e
        raise UpstreamUnavailable(f"{url} returned {e.code}") from e
    except (urllib.error.URLError, http.client.HTTPException, OSError) as e:
        logger.warning("UPSTREAM_UNREACHABLE url=%s err=%r", url, e)
        raise UpstreamUnavailable(f"{url} unreachable: {e}") from e
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning("UPSTREAM_MALFORMED url=%s err=%r", url, e)
        raise UpstreamMalformedResponse(f"{url} returned invalid JSON") from e


def _number(value: Any, what: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise UpstreamMalformedResponse(f"{what} is not a number")
    return float(value)


def _country_field(iso_code: str, field: str) -> Any:
    data = _get_json(f"{countries_api()}alpha", {"codes": iso_code, "fields": field})
    if not isinstance(data, list):
        raise UpstreamMalformedResponse(f"countries response for {field} is not a list")
    if not data:
        raise UpstreamNotFound(f"no {field} data found for {iso_code}")
    first = data[0]
    if not isinstance(first, dict) or field not in first:
        raise UpstreamMalformedResponse(f"countries response missing {field}")
    return first[field]


def get_supported_countries() -> dict[str, str]:
    data = _get_json(f"{countries_api()}all", {"fields": "name,cca2"})
    if not isinstance(data, list):
        raise UpstreamMalformedResponse("supported countries response is not a list")
    out: dict[str, str] = {}
    for item in data:
        if not isinstance(item, dict):
            continue
        code = item.get("cca2")
        name = item.get("name")
        common = name.get("common") if isinstance(name, dict) else None
        if isinstance(code, str) and isinstance(common, str):
            out[code.upper()] = common
    if not out:
        raise UpstreamMalformedResponse("supported countries response is empty")
    return out


def get_capital(iso_code: str) -> str:
    capitals = _country_field(iso_code, "capital")
    if not isinstance(capitals, list) or not capitals:
        raise UpstreamNotFound(f"no capital found for {iso_code}")
    if not isinstance(capitals[0], str):
        raise UpstreamMalformedResponse("capital is not a string")
    return capitals[0]


def get_coordinates(iso_code: str) -> Coordinates:
    latlng = _country_field(iso_code, "latlng")
    if not isinstance(latlng, list) or len(latlng) < 2:
        raise UpstreamMalformedResponse("latlng must hold latitude and longitude")
    lat = _number(latlng[0], "latitude")
    lng = _number(latlng[1], "longitude")
    return Coordinates(latitude=f"{lat:.5f}", longitude=f"{lng:.5f}")


def get_population(iso_code: str) -> int:
    population = _country_field(iso_code, "population")
    if isinstance(population, bool) or not isinstance(population, int):
        raise UpstreamMalformedResponse("population is not an integer")
    return population


def get_area(iso_code: str) -> str:
    area = _number(_country_field(iso_code, "area"), "area")
    return f"{area:.1f}"


def _current_weather(coords: Coordinates, variable: str) -> float:
    data = _get_json(
        meteo_api(),
        {"latitude": coords.latitude, "longitude": coords.longitude, "current": variable},
    )
    current = data.get("current") if isinstance(data, dict) else None
    if not isinstance(current, dict) or variable not in current:
        raise UpstreamMalformedResponse(f"weather response missing current.{variable}")
    return _number(current[variable], variable)


def get_temperature(coords: Coordinates) -> str:
    return f"{_current_weather(coords, 'temperature_2m'):.1f}"


def get_precipitation(coords: Coordinates) -> str:
    return f"{_current_weather(coords, 'precipitation'):.2f}"


def get_base_currency(iso_code: str) -> str:
    currencies = _country_field(iso_code, "currencies")
    if not isinstance(currencies, dict):
        raise UpstreamMalformedResponse("currencies is not an object")
    if not currencies:
        raise UpstreamNotFound(f"no currency data found for {iso_code}")
    # One base currency per country: the first listed wins.
    return str(next(iter(currencies))).upper()


def get_exchange_rates(iso_code: str) -> dict[str, float]:
    base = get_base_currency(iso_code)
    data = _get_json(f"{currency_api()}{base}")
    rates = data.get("rates") if isinstance(data, dict) else None
    if not isinstance(rates, dict):
        raise UpstreamMalformedResponse("currency response missing rates")
    out: dict[str, float] = {}
    for code, rate in rates.items():
        if isinstance(code, str) and isinstance(rate, (int, float)) and not isinstance(rate, bool):
            out[code.upper()] = float(rate)
    dbg(f"EXCHANGE_RATES iso={iso_code} base={base} n={len(out)}")
    return out


def probe(url: str) -> str:
    req = urllib.request.Request(url=url, headers={"Accept": "application/json"}, method="GET")
    try:
        with urllib.request.urlopen(req, timeout=upstream_timeout_s()) as resp:
            status = int(getattr(resp, "status", 200))
            reason = str(getattr(resp, "reason", "") or "")
    except urllib.error.HTTPError as e:
        return f"{e.code} {e.reason}"
    except (urllib.error.URLError, http.client.HTTPException, OSError) as e:
        return f"503 Service Unavailable ({e})"
    return f"{status} {reason}".strip()
