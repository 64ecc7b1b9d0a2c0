"""Tests for task CRUD endpoints."""

from fastapi.testclient import TestClient

OTHER = {"X-User-Id": "user-2"}


def _create(client: TestClient, **overrides) -> dict:
    payload = {
        "title": "Write migration",
        "description": "Add dependency table",
        "priority": "high",
        **overrides,
    }
    resp = client.post("/api/v1/tasks", json=payload)
    assert resp.status_code == 201, resp.json()
    return resp.json()


class TestCreateTask:
    def test_create_success(self, client: TestClient):
        data = _create(client)
        assert data["title"] == "Write migration"
        assert data["priority"] == "high"
        assert data["status"] == "todo"
        assert data["due_date"] is None

    def test_title_is_stripped(self, client: TestClient):
        assert _create(client, title="  padded  ")["title"] == "padded"

    def test_blank_title_rejected(self, client: TestClient):
        resp = client.post("/api/v1/tasks", json={"title": "   "})
        assert resp.status_code == 422

    def test_title_too_long_rejected(self, client: TestClient):
        resp = client.post("/api/v1/tasks", json={"title": "x" * 201})
        assert resp.status_code == 422

    def test_invalid_priority_rejected(self, client: TestClient):
        resp = client.post("/api/v1/tasks", json={"title": "t", "priority": "critical"})
        assert resp.status_code == 422

    def test_due_date_round_trips(self, client: TestClient):
        data = _create(client, due_date="2026-11-01T17:00:00")
        assert data["due_date"].startswith("2026-11-01T17:00:00")

    def test_requires_owner(self, client: TestClient):
        resp = client.post("/api/v1/tasks", json={"title": "t"}, headers={"X-User-Id": ""})
        assert resp.status_code == 401


class TestReadTasks:
    def test_get_by_id(self, client: TestClient):
        task = _create(client)
        resp = client.get(f"/api/v1/tasks/{task['id']}")
        assert resp.status_code == 200
        assert resp.json()["id"] == task["id"]

    def test_get_missing_returns_404(self, client: TestClient):
        assert client.get("/api/v1/tasks/999").status_code == 404

    def test_get_other_owners_task_returns_404(self, client: TestClient):
        task = _create(client)
        assert client.get(f"/api/v1/tasks/{task['id']}", headers=OTHER).status_code == 404

    def test_list_is_owner_scoped(self, client: TestClient):
        _create(client, title="mine")
        client.post("/api/v1/tasks", json={"title": "theirs"}, headers=OTHER)
        titles = [t["title"] for t in client.get("/api/v1/tasks").json()]
        assert titles == ["mine"]

    def test_list_filters(self, client: TestClient):
        _create(client, title="alpha", priority="low")
        _create(client, title="beta", priority="urgent", status="completed")
        _create(client, title="alphabet", priority="urgent")

        urgent = client.get("/api/v1/tasks", params={"priority": "urgent"}).json()
        assert [t["title"] for t in urgent] == ["beta", "alphabet"]

        done = client.get("/api/v1/tasks", params={"status": "completed"}).json()
        assert [t["title"] for t in done] == ["beta"]

        search = client.get("/api/v1/tasks", params={"q": "alpha"}).json()
        assert [t["title"] for t in search] == ["alpha", "alphabet"]

    def test_pagination(self, client: TestClient):
        for i in range(5):
            _create(client, title=f"task {i}")
        page = client.get("/api/v1/tasks", params={"skip": 2, "limit": 2}).json()
        assert [t["title"] for t in page] == ["task 2", "task 3"]

    def test_limit_is_capped(self, client: TestClient):
        assert client.get("/api/v1/tasks", params={"limit": 10_000}).status_code == 422


class TestUpdateTask:
    def test_partial_update(self, client: TestClient):
        task = _create(client)
        resp = client.patch(f"/api/v1/tasks/{task['id']}", json={"status": "in-progress"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "in-progress"
        assert body["title"] == task["title"]

    def test_clear_description(self, client: TestClient):
        task = _create(client)
        resp = client.patch(f"/api/v1/tasks/{task['id']}", json={"description": None})
        assert resp.json()["description"] is None

    def test_update_missing_returns_404(self, client: TestClient):
        resp = client.patch("/api/v1/tasks/999", json={"title": "x"})
        assert resp.status_code == 404


class TestDeleteTask:
    def test_delete(self, client: TestClient):
        task = _create(client)
        assert client.delete(f"/api/v1/tasks/{task['id']}").status_code == 204
        assert client.get(f"/api/v1/tasks/{task['id']}").status_code == 404

    def test_delete_missing_returns_404(self, client: TestClient):
        assert client.delete("/api/v1/tasks/999").status_code == 404


class TestHealth:
    def test_health(self, client: TestClient):
        body = client.get("/api/v1/health").json()
        assert body["status"] == "ok"
