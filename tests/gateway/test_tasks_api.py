"""任务路由测试 -- 新建、详情、部分更新、快捷操作、删除、错误映射"""

from datetime import date

from httpx import AsyncClient


async def _create(client: AsyncClient, **payload) -> dict:
    resp = await client.post("/api/tasks", json={"title": "Report", **payload})
    assert resp.status_code == 201
    return resp.json()


class TestCreateTask:
    async def test_without_days_lands_in_inbox(self, client: AsyncClient):
        data = await _create(client, title="  Spesa ")
        assert data["title"] == "Spesa"
        assert data["status"] == "INBOX"
        assert data["work_days"] is None
        assert data["priority"] == "P2"
        assert data["display"]["status"] == "📥 Da pianificare"

    async def test_with_days_is_open(self, client: AsyncClient):
        data = await _create(client, work_days=["2024-03-06", "2024-03-04"])
        assert data["status"] == "OPEN"
        assert data["work_days"] == ["2024-03-04", "2024-03-06"]
        assert data["display"]["work_days"] == "04 mar, 06 mar"

    async def test_blank_title_is_422(self, client: AsyncClient):
        resp = await client.post("/api/tasks", json={"title": "   "})
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "VALIDATION_FAILED"

    async def test_unknown_priority_rejected(self, client: AsyncClient):
        resp = await client.post("/api/tasks", json={"title": "x", "priority": "P9"})
        assert resp.status_code == 422


class TestTaskDetail:
    async def test_get(self, client: AsyncClient):
        created = await _create(client, due_date="2024-03-10")
        resp = await client.get(f"/api/tasks/{created['id']}")
        assert resp.status_code == 200
        assert resp.json()["display"]["due_date"] == "10 mar 2024"

    async def test_get_missing(self, client: AsyncClient):
        resp = await client.get("/api/tasks/01HZZZZZZZZZZZZZZZZZZZZZZZ")
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "TASK_NOT_FOUND"

    async def test_patch_only_sent_fields(self, client: AsyncClient):
        created = await _create(client, notes="vecchie note", due_date="2024-03-10")
        resp = await client.patch(
            f"/api/tasks/{created['id']}",
            json={"title": "Nuovo", "due_date": None},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["title"] == "Nuovo"
        assert data["due_date"] is None
        assert data["notes"] == "vecchie note"

    async def test_patch_days_opens_inbox_task(self, client: AsyncClient):
        created = await _create(client)
        resp = await client.patch(
            f"/api/tasks/{created['id']}", json={"work_days": ["2024-03-05"]}
        )
        assert resp.json()["status"] == "OPEN"

    async def test_patch_missing_is_404(self, client: AsyncClient):
        resp = await client.patch(
            "/api/tasks/01HZZZZZZZZZZZZZZZZZZZZZZZ", json={"title": "x"}
        )
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "TASK_NOT_FOUND"


class TestQuickActions:
    async def test_complete(self, client: AsyncClient):
        created = await _create(client, work_days=["2024-03-05"])
        resp = await client.post(f"/api/tasks/{created['id']}/complete")
        assert resp.status_code == 200
        assert resp.json()["status"] == "DONE"

        done = await client.get("/api/views/done")
        assert [t["id"] for t in done.json()["tasks"]] == [created["id"]]

    async def test_schedule_requires_day(self, client: AsyncClient):
        created = await _create(client)
        resp = await client.post(f"/api/tasks/{created['id']}/schedule", json={"work_days": []})
        assert resp.status_code == 422

        resp = await client.post(
            f"/api/tasks/{created['id']}/schedule", json={"work_days": ["2024-03-07"]}
        )
        assert resp.json()["status"] == "OPEN"
        assert resp.json()["work_days"] == ["2024-03-07"]

    async def test_today(self, client: AsyncClient):
        created = await _create(client)
        resp = await client.post(f"/api/tasks/{created['id']}/today")
        assert resp.json()["work_days"] == [date.today().isoformat()]

        today_view = await client.get("/api/views/today")
        assert [t["id"] for t in today_view.json()["tasks"]] == [created["id"]]

    async def test_inbox(self, client: AsyncClient):
        created = await _create(client, work_days=["2024-03-05"])
        resp = await client.post(f"/api/tasks/{created['id']}/inbox")
        assert resp.json()["status"] == "INBOX"
        assert resp.json()["work_days"] is None

    async def test_snooze(self, client: AsyncClient):
        created = await _create(client, work_days=["2024-03-08"])
        resp = await client.post(f"/api/tasks/{created['id']}/snooze")
        assert resp.json()["work_days"] == ["2024-03-09"]

    async def test_snooze_without_days_is_422(self, client: AsyncClient):
        created = await _create(client)
        resp = await client.post(f"/api/tasks/{created['id']}/snooze")
        assert resp.status_code == 422

    async def test_delete(self, client: AsyncClient):
        created = await _create(client)
        resp = await client.delete(f"/api/tasks/{created['id']}")
        assert resp.status_code == 204
        resp = await client.delete(f"/api/tasks/{created['id']}")
        assert resp.status_code == 404
