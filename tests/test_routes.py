"""Route tests using FastAPI TestClient."""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from gift_tracker.catalogue import Catalogue
from gift_tracker.codec import UNKNOWN, UNLIMITED, Quantity
from gift_tracker.history import StateSnapshot, TrackedItem


def _ago(hours: float) -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0) - timedelta(hours=hours)


def _gift(url, name, created, states) -> TrackedItem:
    gift = TrackedItem(name, "Trofeje", url, created)
    for price, count, ts in states:
        gift.history.append(StateSnapshot(price, count, ts))
    return gift


@pytest.fixture()
def catalogue():
    return Catalogue([
        _gift("https://a.test/new", "Nový pohár", _ago(2), [(100, Quantity.number(5), _ago(1))]),
        _gift("https://a.test/sale", "Zlevněná medaile", _ago(100), [
            (150, Quantity.number(5), _ago(5)),
            (90, Quantity.number(5), _ago(1)),
        ]),
        _gift("https://a.test/restock", "Odznak", _ago(100), [
            (40, Quantity.number(0), _ago(5)),
            (40, UNLIMITED, _ago(1)),
        ]),
        _gift("https://a.test/old", "Starý dárek", _ago(100), [
            (70, Quantity.number(1), _ago(90)),
            (60, UNKNOWN, _ago(80)),
        ]),
    ])


@pytest.fixture()
def client(catalogue):
    from app import app
    app.state.catalogue = catalogue
    return TestClient(app)


def _urls(payload) -> list[str]:
    return [g["url"] for g in payload]


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "items": 4}


def test_gifts_json_schema(client):
    r = client.get("/gifts.json")
    assert r.status_code == 200
    data = r.json()
    assert _urls(data) == ["https://a.test/new", "https://a.test/sale", "https://a.test/restock", "https://a.test/old"]
    gift = data[2]
    assert set(gift) == {"name", "category", "url", "createdAt", "history"}
    assert [s["count"] for s in gift["history"]] == [0, "∞"]
    assert isinstance(gift["createdAt"], int)
    assert set(gift["history"][0]) == {"price", "count", "time"}
    assert data[3]["history"][1]["count"] == "?"


def test_cors_headers(client):
    r = client.get("/gifts.json")
    assert r.headers["access-control-allow-origin"] == "*"
    assert r.headers["access-control-allow-methods"] == "GET"


def test_api_added(client):
    assert _urls(client.get("/api/added").json()) == ["https://a.test/new"]
    assert len(client.get("/api/added", params={"within": "200h"}).json()) == 4


def test_api_discounted(client):
    assert _urls(client.get("/api/discounted").json()) == ["https://a.test/sale"]
    assert _urls(client.get("/api/discounted", params={"within": "100h"}).json()) == [
        "https://a.test/sale",
        "https://a.test/old",
    ]


def test_api_stock_changed(client):
    assert _urls(client.get("/api/stock-changed").json()) == ["https://a.test/restock"]


def test_api_rejects_bad_duration(client):
    r = client.get("/api/discounted", params={"within": "soon"})
    assert r.status_code == 400


def test_index_renders_sections(client):
    r = client.get("/")
    assert r.status_code == 200
    assert "text/html" in r.headers["content-type"]
    assert "Zlevněná medaile" in r.text
    assert "Discounted (1)" in r.text
    assert "Stock changed (1)" in r.text
    assert "New (1)" in r.text
    assert "All gifts (4)" in r.text
    assert "unlimited" in r.text


def test_index_bad_duration(client):
    assert client.get("/", params={"within": "x"}).status_code == 400


def test_lifespan_bootstraps_catalogue(monkeypatch):
    import app as app_mod
    import gift_tracker.scheduler as scheduler_mod

    def fake_bootstrap(catalogue):
        catalogue.insert(_gift("https://a.test/boot", "Boot", _ago(1), [(1, Quantity.number(1), _ago(1))]))
        return "snapshot"

    monkeypatch.setattr(app_mod, "bootstrap", fake_bootstrap)
    monkeypatch.setattr(scheduler_mod, "REFRESH_INTERVAL", 0)

    with TestClient(app_mod.app) as client:
        assert client.get("/health").json()["items"] == 1
        assert _urls(client.get("/gifts.json").json()) == ["https://a.test/boot"]
