import pytest
from fastapi.testclient import TestClient

from api.main import PAGES, create_app
from playstore.data import DataLoadError


@pytest.fixture
def client(bundle):
    with TestClient(create_app(loader=lambda: bundle)) as c:
        yield c


@pytest.fixture
def broken_client():
    def loader():
        raise DataLoadError("Failed to load apps data from missing.csv")

    with TestClient(create_app(loader=loader)) as c:
        yield c


def test_status_ready(client):
    res = client.get("/status")
    assert res.status_code == 200
    assert res.json() == {"status": "ready", "error": None, "apps": 4, "reviews": 5}


def test_meta_options(client):
    body = client.get("/meta/options").json()
    assert body["categories"] == ["GAME", "PHOTOGRAPHY", "TOOLS"]
    assert body["app_types"] == ["Free", "Paid"]
    assert "Mature 17+" in body["content_ratings"]


@pytest.mark.parametrize("page", sorted(PAGES))
def test_every_page_renders(client, page):
    res = client.post(f"/{page}", json={})
    assert res.status_code == 200
    assert "kpis" in res.json()


def test_filters_flow_through_request_body(client):
    body = client.post("/overview", json={"rating_range": [4, 5]}).json()
    assert body["kpis"]["total_apps"] == 2
    assert body["filters"]["rating_range"] == [4.0, 5.0]

    body = client.post("/overview", json={"selected_sentiments": ["Negative"]}).json()
    assert body["kpis"]["total_apps"] == 4
    assert body["kpis"]["total_reviews"] == 1


def test_requests_do_not_mutate_shared_state(client):
    client.post("/overview", json={"selected_categories": ["TOOLS"]})
    body = client.post("/overview", json={}).json()
    assert body["kpis"]["total_apps"] == 4


def test_top_apps(client):
    res = client.post("/top-apps?field=installs&n=2", json={})
    assert [a["name"] for a in res.json()["apps"]] == ["Delta Photo", "Gamma Tools"]
    assert client.post("/top-apps?field=downloads", json={}).status_code == 422


def test_search_and_compare(client):
    found = client.post("/search?q=game", json={}).json()
    assert [r["name"] for r in found["results"]] == ["Alpha Game", "Beta Game"]

    compared = client.post("/compare", json={"names": ["Alpha Game", "Beta Game"]}).json()
    assert [a["name"] for a in compared["apps"]] == ["Alpha Game", "Beta Game"]


def test_export_csv(client):
    res = client.post("/export/apps", json={"selected_categories": ["GAME"]})
    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/csv")
    lines = res.text.strip().splitlines()
    assert lines[0].startswith("name,category,rating")
    assert len(lines) == 3
    assert client.post("/export/nope", json={}).status_code == 404


def test_load_failure_is_reported(broken_client):
    status = broken_client.get("/status").json()
    assert status["status"] == "error"
    assert "missing.csv" in status["error"]

    res = broken_client.post("/overview", json={})
    assert res.status_code == 503
    assert res.json()["type"] == "NotReady"


def test_views_use_the_state_clock(bundle, now):
    with TestClient(create_app(loader=lambda: bundle, clock=lambda: now)) as c:
        body = c.post("/recency", json={"recently_updated_only": True}).json()
    assert body["evaluated_at"] == now.isoformat()
    assert body["kpis"]["apps_with_dates"] == 2


def test_report_page(client):
    body = client.post("/report", json={}).json()
    labels = [s["label"] for s in body["tables"]["market_statistics"]]
    assert labels[0] == "Free vs Paid Apps"
    assert body["kpis"]["free_apps_ratio"] == 0.75
