"""gateway 测试配置 -- 绕过 lifespan 手动初始化 app.state"""

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest_asyncio
from daybook.core.events import TaskEventHub
from daybook.core.store import create_store_group
from daybook.gateway.backend import build_sqlite_backend
from httpx import ASGITransport, AsyncClient


@pytest_asyncio.fixture
async def test_app(tmp_path: Path):
    os.environ["DAYBOOK_DB_PATH"] = str(tmp_path / "test.db")
    os.environ["LOGFIRE_SEND_TO_LOGFIRE"] = "false"

    from daybook.gateway.main import create_app

    app = create_app()

    # 手动初始化（绕过 lifespan）
    store_group = await create_store_group(str(tmp_path / "test.db"))
    app.state.backend = build_sqlite_backend(store_group)
    app.state.event_hub = TaskEventHub()

    yield app

    await store_group.close()
    os.environ.pop("DAYBOOK_DB_PATH", None)
    os.environ.pop("LOGFIRE_SEND_TO_LOGFIRE", None)


@pytest_asyncio.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as ac:
        yield ac
