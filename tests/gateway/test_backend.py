"""Backend 组装测试 -- 按配置选择本地或远程后端"""

from pathlib import Path

import httpx
from daybook.core.session import LocalAuthProvider
from daybook.gateway.backend import build_rest_backend, create_backend
from daybook.remote import BackendConfig, GoTrueAuthProvider, RestTaskStore


class TestCreateBackend:
    async def test_sqlite_default(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("DAYBOOK_DB_PATH", str(tmp_path / "backend.db"))
        backend = await create_backend(BackendConfig())
        try:
            assert backend.name == "sqlite"
            assert isinstance(backend.auth_provider, LocalAuthProvider)
            assert backend.store_group is not None
            assert await backend.ping() is True
        finally:
            await backend.close()

    async def test_magic_link_mode_propagates(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("DAYBOOK_DB_PATH", str(tmp_path / "backend.db"))
        backend = await create_backend(BackendConfig(auth_mode="magic_link"))
        try:
            assert backend.sessions.allow_anonymous is False
        finally:
            await backend.close()

    async def test_rest_backend(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={}))
        backend = build_rest_backend(
            BackendConfig(backend="rest", rest_url="https://example.test"),
            transport=transport,
        )
        try:
            assert backend.name == "rest"
            assert isinstance(backend.task_store, RestTaskStore)
            assert isinstance(backend.auth_provider, GoTrueAuthProvider)
            assert backend.store_group is None
            assert await backend.ping() is True
        finally:
            await backend.close()
