"""HTTP surface tests."""

import uuid

from conftest import make_event
from touchheat.events import Project


def ingest(client, project_id, events, **headers):
    return client.post("/api/ingest", json={"project_id": project_id, "events": events}, headers=headers)


class TestHealth:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"ok": True, "service": "touchheat-api", "redis": True}


class TestIngestEndpoint:
    def test_accepts_batch(self, client, store, project):
        resp = ingest(client, project.id, [make_event(), make_event(x=300)])
        assert resp.status_code == 200
        assert resp.json() == {"ok": True}
        assert len(store.events[project.id]) == 2

    def test_invalid_schema(self, client, project):
        resp = ingest(client, project.id, [make_event(x=-3)])
        assert resp.status_code == 400
        body = resp.json()
        assert body["error"] == "Invalid request body"
        assert body["details"][0]["loc"] == ["events", 0, "x"]

    def test_unparseable_body(self, client, store):
        resp = client.post("/api/ingest", content=b"{not json", headers={"Content-Type": "application/json"})
        assert resp.status_code == 400
        body = resp.json()
        assert body["error"] == "Invalid request body"
        assert body["details"][0]["type"] == "json_invalid"
        assert store.events == {}

    def test_other_routes_keep_default_validation(self, client):
        assert client.get("/api/insights").status_code == 422

    def test_unknown_project(self, client):
        resp = ingest(client, str(uuid.uuid4()), [make_event()])
        assert resp.status_code == 401
        assert resp.json() == {"error": "Invalid project_id"}

    def test_domain_rejected_via_origin_header(self, client, store):
        p = Project(id=str(uuid.uuid4()), allowed_domains=["example.com"])
        store.save_project(p)
        resp = ingest(client, p.id, [make_event()], Origin="https://notexample.com")
        assert resp.status_code == 403
        ok = ingest(client, p.id, [make_event()], Origin="https://www.example.com")
        assert ok.status_code == 200

    def test_storage_failure(self, client, store, project):
        store.fail_writes = True
        resp = ingest(client, project.id, [make_event()])
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to insert events"}


class TestInsightsEndpoint:
    def test_empty_project(self, client, project):
        resp = client.get("/api/insights", params={"project_id": project.id})
        assert resp.status_code == 200
        assert resp.json() == {"insights": []}

    def test_unknown_project(self, client):
        resp = client.get("/api/insights", params={"project_id": "nope"})
        assert resp.status_code == 404

    def test_url_filter(self, client, project):
        ingest(client, project.id, [make_event(url="https://a.test/", mis_tap=True), make_event(url="https://b.test/")])
        resp = client.get("/api/insights", params={"project_id": project.id, "url": "https://a.test/"})
        insights = {i["type"]: i for i in resp.json()["insights"]}
        assert insights["mis_tap_rate"]["data"] == {"rate": 100, "count": 1, "total": 1}
        assert "score" not in insights["thumb_zone_distribution"]


class TestHeatmapEndpoint:
    def test_heatmap(self, client, project):
        ingest(client, project.id, [make_event(x=5, y=5), make_event(x=6, y=7), make_event(x=30, y=5)])
        resp = client.get("/api/heatmap", params={"project_id": project.id})
        assert resp.status_code == 200
        body = resp.json()
        assert body["maxCount"] == 2
        assert body["heatmap"][0] == {"x": 0, "y": 0, "count": 2, "intensity": 1.0}

    def test_empty(self, client, project):
        resp = client.get("/api/heatmap", params={"project_id": project.id})
        assert resp.json() == {"heatmap": [], "maxCount": 0}

    def test_unknown_project(self, client):
        assert client.get("/api/heatmap", params={"project_id": "nope"}).status_code == 404


class TestSampleEvent:
    def test_writes_canned_event(self, client, store, project):
        resp = client.post(f"/api/projects/{project.id}/test")
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["event"]["selector"] == "#test-button"
        assert body["event"]["url"] == "https://test.touchheat.app/test-page"
        assert len(store.events[project.id]) == 1

    def test_custom_url(self, client, store, project):
        resp = client.post(f"/api/projects/{project.id}/test", json={"url": "https://shop.example.com/"})
        assert resp.json()["event"]["url"] == "https://shop.example.com/"

    def test_unknown_project(self, client):
        assert client.post(f"/api/projects/{uuid.uuid4()}/test").status_code == 404
