from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi.testclient import TestClient

from core import db, notify, providers
from core.app import create_app
from core.models import FeatureSet, Registration, Webhook

TOKEN = "sk-owner-a"
_ORIGINAL_GET_JSON = providers._get_json
NORWAY = {
    "capital": ["Oslo"],
    "latlng": [62.0, 10.0],
    "population": 5400000,
    "area": 323802.0,
    "currencies": {"NOK": {"name": "Norwegian krone", "symbol": "kr"}},
}


def _fake_get_json(url: str, params: dict[str, str] | None = None) -> Any:
    if url.endswith("/alpha"):
        field = (params or {})["fields"]
        return [{field: NORWAY[field]}]
    if url.startswith("https://api.open-meteo.com"):
        return {"current": {"temperature_2m": 4.04, "precipitation": 1.2}}
    if url.startswith("https://open.er-api.com"):
        return {"rates": {"NOK": 1, "EUR": 0.087, "USD": 0.094}}
    raise AssertionError(f"unexpected url {url}")


def _set_env(monkeypatch, db_path: str) -> list[tuple[str, dict[str, Any]]]:
    monkeypatch.setenv("GB_DB_PATH", db_path)
    monkeypatch.setenv("GB_FEATURE_DASHBOARDS", "1")
    db.add_api_key("owner_a", TOKEN)
    monkeypatch.setattr(providers, "_get_json", _fake_get_json)

    sent: list[tuple[str, dict[str, Any]]] = []
    monkeypatch.setattr(notify, "_post_json", lambda url, body: sent.append((url, body)) or 200)
    return sent


def _store(reg_id: str, **features) -> None:
    db.put_registration(
        Registration(
            id=reg_id,
            owner_id="owner_a",
            country="Norway",
            iso_code="NO",
            features=FeatureSet(**features),
            last_change=datetime(2024, 5, 1, tzinfo=timezone.utc),
        )
    )


def test_dashboard_requires_token(monkeypatch, tmp_path) -> None:
    _set_env(monkeypatch, str(tmp_path / "dash_auth.sqlite3"))
    client = TestClient(create_app())
    assert client.get("/dashboard/v1/dashboards/reg-1").status_code == 401


def test_dashboard_contains_only_enabled_features(monkeypatch, tmp_path) -> None:
    _set_env(monkeypatch, str(tmp_path / "dash_norway.sqlite3"))
    _store("reg-1", capital=True, population=True)
    client = TestClient(create_app())

    resp = client.get("/dashboard/v1/dashboards/reg-1", params={"token": TOKEN})

    assert resp.status_code == 200
    body = resp.json()
    assert body["id"] == "reg-1"
    assert body["country"] == "Norway"
    assert body["isoCode"] == "NO"
    assert body["features"] == {"capital": "Oslo", "population": 5400000}
    assert body["lastRetrieval"].endswith("Z")


def test_dashboard_with_every_feature(monkeypatch, tmp_path) -> None:
    _set_env(monkeypatch, str(tmp_path / "dash_all.sqlite3"))
    _store(
        "reg-2",
        temperature=True,
        precipitation=True,
        capital=True,
        coordinates=True,
        population=True,
        area=True,
        target_currencies=["EUR", "GBP"],
    )
    client = TestClient(create_app())

    features = client.get("/dashboard/v1/dashboards/reg-2", params={"token": TOKEN}).json()["features"]

    assert features == {
        "temperature": "4.0",
        "precipitation": "1.20",
        "capital": "Oslo",
        "coordinates": {"latitude": "62.00000", "longitude": "10.00000"},
        "population": 5400000,
        "area": "323802.0",
        "targetCurrencies": {"EUR": 0.087},
    }


def test_dashboard_upstream_failure_is_generic_502(monkeypatch, tmp_path) -> None:
    sent = _set_env(monkeypatch, str(tmp_path / "dash_fail.sqlite3"))
    db.add_webhook(Webhook(id="w1", owner_id="owner_a", url="http://hooks.test/a"))
    _store("reg-3", capital=True, temperature=True)

    def _weather_down(url: str, params: dict[str, str] | None = None) -> Any:
        if url.startswith("https://api.open-meteo.com"):
            return {"error": True, "reason": "rate limited"}
        return _fake_get_json(url, params)

    monkeypatch.setattr(providers, "_get_json", _weather_down)
    client = TestClient(create_app())

    resp = client.get("/dashboard/v1/dashboards/reg-3", params={"token": TOKEN})

    assert resp.status_code == 502
    assert resp.json() == {"detail": "error getting country information"}
    assert sent == []


def test_dashboard_undecodable_upstream_body_is_502(monkeypatch, tmp_path) -> None:
    _set_env(monkeypatch, str(tmp_path / "dash_bytes.sqlite3"))
    _store("reg-5", capital=True)
    monkeypatch.setattr(providers, "_get_json", _ORIGINAL_GET_JSON)

    class _Resp:
        def __enter__(self) -> "_Resp":
            return self

        def __exit__(self, *exc: Any) -> None:
            return None

        def read(self) -> bytes:
            return b'[{"capital": ["\xff"]}]'

    monkeypatch.setattr(providers.urllib.request, "urlopen", lambda req, timeout: _Resp())
    client = TestClient(create_app())

    resp = client.get("/dashboard/v1/dashboards/reg-5", params={"token": TOKEN})

    assert resp.status_code == 502
    assert resp.json() == {"detail": "error getting country information"}


def test_dashboard_unknown_id_is_404(monkeypatch, tmp_path) -> None:
    _set_env(monkeypatch, str(tmp_path / "dash_missing.sqlite3"))
    client = TestClient(create_app())
    assert client.get("/dashboard/v1/dashboards/missing", params={"token": TOKEN}).status_code == 404


def test_dashboard_read_notifies_invoke(monkeypatch, tmp_path) -> None:
    sent = _set_env(monkeypatch, str(tmp_path / "dash_invoke.sqlite3"))
    db.add_webhook(Webhook(id="w1", owner_id="owner_a", url="http://hooks.test/a"))
    _store("reg-4", area=True)
    client = TestClient(create_app())

    resp = client.get("/dashboard/v1/dashboards/reg-4", params={"token": TOKEN})

    assert resp.status_code == 200
    assert len(sent) == 1
    body = sent[0][1]
    assert body["event"] == "INVOKE"
    assert body["endpoint"] == "/dashboard/v1/dashboards/{ID}"
    assert '"area": "323802.0"' in body["fields"][3]["value"]
