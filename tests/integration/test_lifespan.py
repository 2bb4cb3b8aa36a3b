"""FastAPI lifespan 测试 -- 按环境变量组装后端，关闭时释放连接"""

from pathlib import Path

from daybook.core.events import TaskEventHub
from httpx import ASGITransport, AsyncClient


class TestLifespan:
    async def test_sqlite_backend_from_env(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("DAYBOOK_DB_PATH", str(tmp_path / "nested" / "life.db"))
        monkeypatch.setenv("LOGFIRE_SEND_TO_LOGFIRE", "false")
        monkeypatch.delenv("DAYBOOK_BACKEND", raising=False)
        monkeypatch.delenv("DAYBOOK_AUTH_MODE", raising=False)

        from daybook.gateway.main import create_app, lifespan

        app = create_app()
        async with lifespan(app):
            assert app.state.backend.name == "sqlite"
            assert isinstance(app.state.event_hub, TaskEventHub)
            async with AsyncClient(
                transport=ASGITransport(app=app), base_url="http://test"
            ) as ac:
                resp = await ac.post("/api/tasks", json={"title": "Lifespan"})
                assert resp.status_code == 201

        assert (tmp_path / "nested" / "life.db").exists()
