import pytest
from fastapi.testclient import TestClient

from api.main import app


@pytest.fixture
def client(data_dir, monkeypatch):
    monkeypatch.setattr("core.data.DATA_DIR", data_dir)
    return TestClient(app)


def test_meta_lists(client):
    assert client.get("/meta/genders").json() == {"values": ["Women", "Men"]}
    assert client.get("/meta/styles").json()["values"][0] == "Freestyle"
    assert client.get("/meta/events").json() == {"values": ["Women's 200m Butterfly"]}
    countries = client.get("/meta/countries", params={"gender": "Women", "stroke_style": "Freestyle"})
    assert countries.json() == {"values": ["United States", "Australia"]}


def test_medals_endpoint(client):
    resp = client.post("/medals", json={"gender": "Women"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["tally"][0] == {"country": "USA", "gold": 3, "silver": 1, "bronze": 0, "total": 4}
    assert "medals" in body["charts"]


def test_rankings_endpoint_serializes_null_ranks(client):
    body = client.post("/rankings", json={"gender": "Women", "stroke_style": "Freestyle"}).json()
    ledecky = body["series"][0]
    assert ledecky["ranks"]["Women's 200m Freestyle"] is None


def test_stages_endpoint_uses_default_event(client):
    body = client.post("/stages", json={}).json()
    assert body["event"] == "Women's 200m Butterfly"
    assert body["selectable"] is True
    assert len(body["records"]) == 5


def test_map_endpoint_reports_missing_dataset(client, data_dir):
    (data_dir / "countries" / "countries2.geo.json").unlink()
    body = client.post("/map", json={}).json()
    assert body["charts"] == {}
    assert body["error"].startswith("map unavailable")


def test_debug_endpoint(client):
    body = client.post("/debug", json={}).json()
    assert body["flagged_rows"]["results"] == {"missing stage": 1}


def test_export_medals_csv(client):
    resp = client.post("/export/medals", json={"gender": "Women"})
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    lines = resp.text.strip().splitlines()
    assert lines[0] == "country,gold,silver,bronze,total"
    assert lines[1] == "USA,3,1,0,4"


def test_endpoint_errors_are_reported(client, monkeypatch):
    def boom():
        raise RuntimeError("disk on fire")

    monkeypatch.setattr("api.main.load_dashboard_data", boom)
    resp = client.post("/medals", json={})
    assert resp.status_code == 500
    assert resp.json() == {"error": "disk on fire", "type": "RuntimeError"}
