# tests/test_app.py

from types import SimpleNamespace

import pytest

from terrascan import analysis as analysis_mod
from terrascan.analysis import LinkAnalyzer
from terrascan.app import create_app
from terrascan.elevation import ElevationProvider


@pytest.fixture
def client(flat_client):
    app = create_app(LinkAnalyzer(ElevationProvider(flat_client)))
    app.config["TESTING"] = True
    return app.test_client()


def test_root_reports_endpoints(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.get_json()["ok"] is True
    assert resp.headers["Access-Control-Allow-Origin"] == "*"


def test_analyze_single_link(client):
    resp = client.post("/los/analyze", json={
        "id": "link-1",
        "pointA": {"lat": 0.0, "lng": 0.0, "name": "A"},
        "pointB": {"lat": 0.0, "lng": 0.01},
    })
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["id"] == "link-1"
    assert data["status"] == "Clear"
    assert data["nameA"] == "A"
    assert data["profile"][0]["distance"] == 0


def test_analyze_rejects_bad_coordinates(client):
    resp = client.post("/los/analyze", json={
        "pointA": {"lat": 91.0, "lng": 0.0},
        "pointB": {"lat": 0.0, "lng": 0.01},
    })
    assert resp.status_code == 400
    assert "latitude" in resp.get_json()["error"]


def test_analyze_rejects_boolean_coordinates(client):
    resp = client.post("/los/analyze", json={
        "pointA": {"lat": True, "lng": 0.0},
        "pointB": {"lat": 0.0, "lng": 0.01},
    })
    assert resp.status_code == 400
    assert "non-numeric" in resp.get_json()["error"]


def test_unnamed_links_in_the_same_millisecond_get_distinct_ids(client, monkeypatch):
    monkeypatch.setattr(analysis_mod, "time", SimpleNamespace(time=lambda: 1_700_000_000.0))
    body = {"pointA": {"lat": 0.0, "lng": 0.0}, "pointB": {"lat": 0.0, "lng": 0.01}}

    first = client.post("/los/analyze", json=body).get_json()["id"]
    second = client.post("/los/analyze", json=body).get_json()["id"]

    assert first != second
    assert len(client.get("/results").get_json()["results"]) == 2


def test_analyze_rejects_non_numeric_k_factor(client):
    resp = client.post("/los/analyze", json={
        "pointA": {"lat": 0.0, "lng": 0.0},
        "pointB": {"lat": 0.0, "lng": 0.01},
        "kFactor": "lots",
    })
    assert resp.status_code == 400


def test_analyze_requires_json_object(client):
    resp = client.post("/los/analyze", data="not json", content_type="text/plain")
    assert resp.status_code == 400


def test_batch_with_targets_and_result_retention(client):
    lngs = [0.001 * (i + 1) for i in range(4)]
    resp = client.post("/los/batch", json={
        "pointA": {"lat": 0.0, "lng": 0.0},
        "targets": [{"lat": 0.0, "lng": lng} for lng in lngs],
        "kFactor": 1.333,
        "earthRadius": 6371000,
    })
    assert resp.status_code == 200
    results = resp.get_json()["results"]
    assert [r["pointB"]["lng"] for r in results] == lngs
    assert all(r["settings"] == {"kFactor": 1.333, "earthRadius": 6371000.0} for r in results)

    kept = client.get("/results").get_json()["results"]
    # newest group first: [link 3], then [links 0, 1, 2]
    assert [r["pointB"]["lng"] for r in kept] == [lngs[3], lngs[0], lngs[1], lngs[2]]

    assert client.delete("/results").status_code == 200
    assert client.get("/results").get_json()["results"] == []


def test_batch_with_explicit_pairs(client):
    resp = client.post("/los/batch", json={"pairs": [
        {"id": "p1", "pointA": {"lat": 0.0, "lng": 0.0}, "pointB": {"lat": 0.0, "lng": 0.01}},
        {"id": "p2", "pointA": {"lat": 0.0, "lng": 0.0}, "pointB": {"lat": 0.0, "lng": 0.1}},
    ]})
    assert [r["id"] for r in resp.get_json()["results"]] == ["p1", "p2"]


def test_batch_pair_failure_is_not_an_http_error(make_client):
    failing = make_client(fail=lambda locations: True)
    app = create_app(LinkAnalyzer(ElevationProvider(failing)))
    resp = app.test_client().post("/los/batch", json={
        "pointA": {"lat": 0.0, "lng": 0.0},
        "targets": [{"lat": 0.0, "lng": 0.01}],
    })
    assert resp.status_code == 200
    (result,) = resp.get_json()["results"]
    assert result["status"] == "Error"
    assert result["errorMessage"]
    assert result["profile"] == []


def test_batch_requires_pairs_or_targets(client):
    resp = client.post("/los/batch", json={"pointA": {"lat": 0.0, "lng": 0.0}})
    assert resp.status_code == 400
