"""全局 pytest 配置 -- 临时 SQLite 数据库 + 会话 fixture"""

from collections.abc import AsyncGenerator
from datetime import date
from pathlib import Path

import aiosqlite
import pytest
import pytest_asyncio

# 固定「今天」：2024-03-06 周三，所在周为 2024-03-04 ~ 2024-03-08
TODAY = date(2024, 3, 6)
MONDAY = date(2024, 3, 4)


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def monday() -> date:
    return MONDAY


@pytest_asyncio.fixture
async def tmp_db_path(tmp_path: Path) -> Path:
    """提供临时 SQLite 数据库路径"""
    return tmp_path / "test.db"


@pytest_asyncio.fixture
async def db_conn(tmp_db_path: Path) -> AsyncGenerator[aiosqlite.Connection, None]:
    """提供已初始化的临时 SQLite 数据库连接"""
    from daybook.core.store.sqlite_init import init_db

    conn = await aiosqlite.connect(str(tmp_db_path))
    conn.row_factory = aiosqlite.Row
    await init_db(conn)
    yield conn
    await conn.close()


@pytest_asyncio.fixture
async def store_group(tmp_db_path: Path):
    """提供基于临时文件的 StoreGroup"""
    from daybook.core.store import create_store_group

    group = await create_store_group(str(tmp_db_path))
    yield group
    await group.close()


@pytest.fixture
def sessions():
    """匿名模式的会话管理器（进程内认证）"""
    from daybook.core.session import LocalAuthProvider, SessionManager

    return SessionManager(LocalAuthProvider(), allow_anonymous=True)
