"""可观测性测试 -- X-Request-ID 响应头、实体 ID 提取"""

from daybook.gateway.middleware.trace_mw import extract_entity_ids
from httpx import AsyncClient


class TestObservability:
    async def test_request_id_in_response_header(self, client: AsyncClient):
        resp = await client.post("/api/tasks", json={"title": "Obs test"})
        assert resp.status_code == 201
        assert "x-request-id" in resp.headers
        # ULID 格式：26 字符
        assert len(resp.headers["x-request-id"]) == 26

    async def test_incoming_request_id_echoed(self, client: AsyncClient):
        resp = await client.get("/health", headers={"X-Request-ID": "req-123"})
        assert resp.headers["x-request-id"] == "req-123"

    async def test_request_ids_are_unique(self, client: AsyncClient):
        ids = set()
        for _ in range(3):
            resp = await client.get("/health")
            ids.add(resp.headers["x-request-id"])
        assert len(ids) == 3


class TestExtractEntityIds:
    def test_task_path(self):
        task_id = "01HQ3Z5X9V8K2M4N6P7R8S9T0W"
        assert extract_entity_ids(f"/api/tasks/{task_id}/complete") == {"task_id": task_id}

    def test_project_path(self):
        project_id = "01HQ3Z5X9V8K2M4N6P7R8S9T0W"
        assert extract_entity_ids(f"/api/projects/{project_id}") == {"project_id": project_id}

    def test_non_id_segments_ignored(self):
        assert extract_entity_ids("/api/views/inbox") == {}
        assert extract_entity_ids("/api/tasks") == {}
