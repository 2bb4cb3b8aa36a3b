"""远程后端集成测试 -- 经 MockTransport 模拟数据 API 与认证服务

验证 HTTP 路由 -> 服务 -> 视图 -> RestTaskStore -> RestClient 的完整链路，
以及远程错误到 HTTP 状态码的映射。
"""

import json

import httpx
import pytest_asyncio
from daybook.core.events import TaskEventHub
from daybook.gateway.backend import build_rest_backend
from daybook.remote import BackendConfig
from httpx import ASGITransport, AsyncClient
from pydantic import SecretStr

_TASK_ROW = {
    "id": "t1",
    "title": "Remoto",
    "type": "WORK",
    "status": "INBOX",
    "priority": "P1",
    "due_date": None,
    "work_days": None,
    "project_id": None,
    "notes": None,
    "project": None,
}


class FakeRemote:
    """记录请求并按路径返回固定响应"""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.fail_tasks = False

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/auth/v1/signup":
            return httpx.Response(
                200,
                json={
                    "access_token": "user-token",
                    "refresh_token": "refresh",
                    "expires_in": 3600,
                    "user": {"id": "u1", "is_anonymous": True},
                },
            )
        if path == "/rest/v1/tasks":
            if self.fail_tasks:
                return httpx.Response(503, json={"message": "database unavailable"})
            if request.method == "PATCH":
                body = json.loads(request.content)
                return httpx.Response(200, json=[{**_TASK_ROW, **body}])
            return httpx.Response(200, json=[_TASK_ROW])
        if path == "/rest/v1/projects":
            return httpx.Response(200, json=[])
        return httpx.Response(404, json={"message": "not found"})


@pytest_asyncio.fixture
async def remote():
    return FakeRemote()


@pytest_asyncio.fixture
async def rest_app(remote, monkeypatch):
    monkeypatch.setenv("LOGFIRE_SEND_TO_LOGFIRE", "false")

    from daybook.gateway.main import create_app

    app = create_app()
    config = BackendConfig(
        backend="rest",
        rest_url="https://example.test",
        anon_key=SecretStr("anon"),
    )
    backend = build_rest_backend(config, transport=httpx.MockTransport(remote))
    app.state.backend = backend
    app.state.event_hub = TaskEventHub()

    yield app

    await backend.close()


@pytest_asyncio.fixture
async def rest_client(rest_app):
    async with AsyncClient(
        transport=ASGITransport(app=rest_app),
        base_url="http://test",
    ) as ac:
        yield ac


class TestRestBackend:
    async def test_inbox_signs_in_then_queries(self, rest_client: AsyncClient, remote):
        resp = await rest_client.get("/api/views/inbox")
        assert resp.status_code == 200
        assert resp.json()["tasks"][0]["title"] == "Remoto"

        first, *rest = remote.requests
        assert first.url.path == "/auth/v1/signup"
        data_requests = [r for r in rest if r.url.path.startswith("/rest/v1/")]
        assert all(r.headers["authorization"] == "Bearer user-token" for r in data_requests)
        task_request = next(r for r in data_requests if r.url.path == "/rest/v1/tasks")
        assert task_request.url.params["status"] == "eq.INBOX"

    async def test_schedule_patches_remote(self, rest_client: AsyncClient, remote):
        resp = await rest_client.post(
            "/api/tasks/t1/schedule", json={"work_days": ["2024-03-05"]}
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "OPEN"

        patch = next(r for r in remote.requests if r.method == "PATCH")
        assert json.loads(patch.content) == {"work_days": ["2024-03-05"], "status": "OPEN"}

    async def test_remote_failure_maps_to_502(self, rest_client: AsyncClient, remote):
        remote.fail_tasks = True
        resp = await rest_client.get("/api/views/inbox")
        assert resp.status_code == 502
        assert resp.json()["error"]["code"] == "STORE_ERROR"

    async def test_ready_reports_rest_backend(self, rest_client: AsyncClient):
        resp = await rest_client.get("/ready")
        data = resp.json()
        assert data["checks"]["backend_name"] == "rest"
        assert data["checks"]["wal_mode"] == "skipped"
