from __future__ import annotations

import http.client
import urllib.error
from typing import Any

import pytest

from core import providers
from core.config import upstream_timeout_s
from core.errors import UpstreamMalformedResponse, UpstreamNotFound, UpstreamUnavailable
from core.models import Coordinates

NORWAY = {
    "capital": ["Oslo"],
    "latlng": [62.0, 10.0],
    "population": 5400000,
    "area": 323802.0,
    "currencies": {"NOK": {"name": "Norwegian krone", "symbol": "kr"}},
}
WEATHER = {"temperature_2m": -3.26, "precipitation": 0.4}


class _Resp:
    def __init__(self, raw: bytes, status: int = 200, reason: str = "OK") -> None:
        self._raw = raw
        self.status = status
        self.reason = reason

    def __enter__(self) -> "_Resp":
        return self

    def __exit__(self, *exc: Any) -> None:
        return None

    def read(self) -> bytes:
        return self._raw


def _fake_countries(calls: list[tuple[str, dict | None]]):
    def _get_json(url: str, params: dict[str, str] | None = None) -> Any:
        calls.append((url, params))
        if url.endswith("/all"):
            return [
                {"name": {"common": "Norway"}, "cca2": "NO"},
                {"name": {"common": "Sweden"}, "cca2": "se"},
                {"name": "broken"},
            ]
        if url.endswith("/alpha"):
            field = (params or {})["fields"]
            return [{field: NORWAY[field]}]
        if url.startswith("https://api.open-meteo.com"):
            variable = (params or {})["current"]
            return {"current": {variable: WEATHER[variable]}}
        if url.startswith("https://open.er-api.com"):
            return {"result": "success", "base_code": "NOK", "rates": {"NOK": 1, "usd": 0.094, "EUR": 0.087, "BAD": "x"}}
        raise AssertionError(f"unexpected url {url}")

    return _get_json


def test_country_field_providers_format_values(monkeypatch) -> None:
    calls: list[tuple[str, dict | None]] = []
    monkeypatch.setattr(providers, "_get_json", _fake_countries(calls))

    assert providers.get_capital("NO") == "Oslo"
    assert providers.get_population("NO") == 5400000
    assert providers.get_area("NO") == "323802.0"
    assert providers.get_coordinates("NO") == Coordinates(latitude="62.00000", longitude="10.00000")
    assert calls[0] == ("https://restcountries.com/v3.1/alpha", {"codes": "NO", "fields": "capital"})


def test_weather_providers_use_fixed_precision(monkeypatch) -> None:
    calls: list[tuple[str, dict | None]] = []
    monkeypatch.setattr(providers, "_get_json", _fake_countries(calls))
    coords = Coordinates(latitude="62.00000", longitude="10.00000")

    assert providers.get_temperature(coords) == "-3.3"
    assert providers.get_precipitation(coords) == "0.40"
    assert calls[0][1] == {"latitude": "62.00000", "longitude": "10.00000", "current": "temperature_2m"}


def test_exchange_rates_use_first_currency_as_base(monkeypatch) -> None:
    calls: list[tuple[str, dict | None]] = []
    monkeypatch.setattr(providers, "_get_json", _fake_countries(calls))

    rates = providers.get_exchange_rates("NO")

    assert rates == {"NOK": 1.0, "USD": 0.094, "EUR": 0.087}
    assert calls[-1] == ("https://open.er-api.com/v6/latest/NOK", None)


def test_supported_countries_maps_iso_to_common_name(monkeypatch) -> None:
    monkeypatch.setattr(providers, "_get_json", _fake_countries([]))
    assert providers.get_supported_countries() == {"NO": "Norway", "SE": "Sweden"}


def test_base_url_override_from_env(monkeypatch) -> None:
    calls: list[tuple[str, dict | None]] = []
    monkeypatch.setenv("GB_COUNTRIES_API", "http://countries.local/v3.1/")
    monkeypatch.setattr(
        providers,
        "_get_json",
        lambda url, params=None: calls.append((url, params)) or [{"capital": ["Oslo"]}],
    )

    providers.get_capital("NO")
    assert calls[0][0] == "http://countries.local/v3.1/alpha"


def test_wrongly_shaped_payloads_are_malformed(monkeypatch) -> None:
    monkeypatch.setattr(providers, "_get_json", lambda url, params=None: [{"population": True}])
    with pytest.raises(UpstreamMalformedResponse):
        providers.get_population("NO")

    monkeypatch.setattr(providers, "_get_json", lambda url, params=None: {"not": "a list"})
    with pytest.raises(UpstreamMalformedResponse):
        providers.get_capital("NO")

    monkeypatch.setattr(providers, "_get_json", lambda url, params=None: {"current": {}})
    with pytest.raises(UpstreamMalformedResponse):
        providers.get_temperature(Coordinates(latitude="0", longitude="0"))


def test_empty_country_lists_are_not_found(monkeypatch) -> None:
    monkeypatch.setattr(providers, "_get_json", lambda url, params=None: [])
    with pytest.raises(UpstreamNotFound):
        providers.get_area("XX")

    monkeypatch.setattr(providers, "_get_json", lambda url, params=None: [{"capital": []}])
    with pytest.raises(UpstreamNotFound):
        providers.get_capital("AQ")


def test_get_json_maps_transport_failures(monkeypatch) -> None:
    def _not_found(req, timeout):
        raise urllib.error.HTTPError(req.full_url, 404, "Not Found", hdrs=None, fp=None)

    monkeypatch.setattr(providers.urllib.request, "urlopen", _not_found)
    with pytest.raises(UpstreamNotFound):
        providers._get_json("http://upstream.test/x")

    def _server_error(req, timeout):
        raise urllib.error.HTTPError(req.full_url, 503, "Service Unavailable", hdrs=None, fp=None)

    monkeypatch.setattr(providers.urllib.request, "urlopen", _server_error)
    with pytest.raises(UpstreamUnavailable):
        providers._get_json("http://upstream.test/x")

    def _refused(req, timeout):
        raise urllib.error.URLError("connection refused")

    monkeypatch.setattr(providers.urllib.request, "urlopen", _refused)
    with pytest.raises(UpstreamUnavailable):
        providers._get_json("http://upstream.test/x")

    monkeypatch.setattr(providers.urllib.request, "urlopen", lambda req, timeout: _Resp(b"<html>"))
    with pytest.raises(UpstreamMalformedResponse):
        providers._get_json("http://upstream.test/x")

    monkeypatch.setattr(providers.urllib.request, "urlopen", lambda req, timeout: _Resp(b'[{"capital": ["\xff"]}]'))
    with pytest.raises(UpstreamMalformedResponse):
        providers._get_json("http://upstream.test/x")
    with pytest.raises(UpstreamMalformedResponse):
        providers.get_capital("NO")

    class _Truncated(_Resp):
        def read(self) -> bytes:
            raise http.client.IncompleteRead(b'[{"cap', 40)

    monkeypatch.setattr(providers.urllib.request, "urlopen", lambda req, timeout: _Truncated(b""))
    with pytest.raises(UpstreamUnavailable):
        providers._get_json("http://upstream.test/x")


def test_get_json_encodes_params_and_applies_timeout(monkeypatch) -> None:
    seen: dict[str, Any] = {}
    monkeypatch.setenv("GB_UPSTREAM_TIMEOUT_S", "3")

    def _urlopen(req, timeout):
        seen["url"] = req.full_url
        seen["timeout"] = timeout
        return _Resp(b'[{"cca2": "NO"}]')

    monkeypatch.setattr(providers.urllib.request, "urlopen", _urlopen)
    out = providers._get_json("http://upstream.test/alpha", {"codes": "NO", "fields": "name,cca2"})

    assert out == [{"cca2": "NO"}]
    assert seen["url"] == "http://upstream.test/alpha?codes=NO&fields=name,cca2"
    assert seen["timeout"] == 3.0


def test_upstream_timeout_is_clamped(monkeypatch) -> None:
    monkeypatch.setenv("GB_UPSTREAM_TIMEOUT_S", "0")
    assert upstream_timeout_s() == 0.5
    monkeypatch.setenv("GB_UPSTREAM_TIMEOUT_S", "600")
    assert upstream_timeout_s() == 60.0
    monkeypatch.setenv("GB_UPSTREAM_TIMEOUT_S", "soon")
    assert upstream_timeout_s() == 10.0


def test_probe_reports_status_line(monkeypatch) -> None:
    monkeypatch.setattr(providers.urllib.request, "urlopen", lambda req, timeout: _Resp(b"{}"))
    assert providers.probe("http://upstream.test/") == "200 OK"

    def _bad_gateway(req, timeout):
        raise urllib.error.HTTPError(req.full_url, 502, "Bad Gateway", hdrs=None, fp=None)

    monkeypatch.setattr(providers.urllib.request, "urlopen", _bad_gateway)
    assert providers.probe("http://upstream.test/") == "502 Bad Gateway"
