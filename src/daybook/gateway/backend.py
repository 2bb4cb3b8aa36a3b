"""Backend -- 按配置组装数据存储与认证协作方

sqlite: 本地 aiosqlite Store + 进程内认证
rest:   远程数据 API + 远程认证服务（共用一个 RestClient）
"""

from collections.abc import Awaitable, Callable

import httpx
import structlog
from daybook.core.config import get_db_path
from daybook.core.session import AuthProvider, LocalAuthProvider, SessionManager
from daybook.core.store import StoreGroup, create_store_group
from daybook.core.store.protocols import ProjectStore, TaskStore
from daybook.remote import (
    BackendConfig,
    GoTrueAuthProvider,
    RestClient,
    RestProjectStore,
    RestTaskStore,
    load_backend_config,
)

log = structlog.get_logger()


class Backend:
    """一次组装好的后端协作方"""

    def __init__(
        self,
        name: str,
        task_store: TaskStore,
        project_store: ProjectStore,
        auth_provider: AuthProvider,
        sessions: SessionManager,
        closer: Callable[[], Awaitable[None]],
        pinger: Callable[[], Awaitable[bool]],
        store_group: StoreGroup | None = None,
    ) -> None:
        self.name = name
        self.task_store = task_store
        self.project_store = project_store
        self.auth_provider = auth_provider
        self.sessions = sessions
        self.store_group = store_group
        self._closer = closer
        self._pinger = pinger

    async def ping(self) -> bool:
        return await self._pinger()

    async def close(self) -> None:
        await self._closer()


def build_sqlite_backend(store_group: StoreGroup, allow_anonymous: bool = True) -> Backend:
    """基于已打开的 StoreGroup 组装本地后端"""
    auth = LocalAuthProvider()

    async def ping() -> bool:
        cursor = await store_group.conn.execute("SELECT 1")
        row = await cursor.fetchone()
        return row is not None

    return Backend(
        name="sqlite",
        task_store=store_group.task_store,
        project_store=store_group.project_store,
        auth_provider=auth,
        sessions=SessionManager(auth, allow_anonymous=allow_anonymous),
        closer=store_group.close,
        pinger=ping,
        store_group=store_group,
    )


def build_rest_backend(
    config: BackendConfig,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Backend:
    """组装远程后端

    Args:
        config: 后端配置
        transport: 自定义传输层（测试时注入 MockTransport）
    """
    client = RestClient(
        base_url=config.rest_url,
        anon_key=config.anon_key.get_secret_value(),
        timeout_s=config.timeout_s,
        transport=transport,
    )
    auth = GoTrueAuthProvider(client, redirect_to=config.magic_link_redirect)
    return Backend(
        name="rest",
        task_store=RestTaskStore(client),
        project_store=RestProjectStore(client),
        auth_provider=auth,
        sessions=SessionManager(auth, allow_anonymous=config.allow_anonymous),
        closer=client.close,
        pinger=client.ping,
    )


async def create_backend(config: BackendConfig | None = None) -> Backend:
    """按配置创建后端"""
    config = config or load_backend_config()
    if config.backend == "rest":
        backend = build_rest_backend(config)
        log.info(
            "backend_initialized",
            backend="rest",
            rest_url=config.rest_url,
            timeout_s=config.timeout_s,
            auth_mode=config.auth_mode,
        )
        return backend

    db_path = get_db_path()
    store_group = await create_store_group(db_path)
    log.info(
        "backend_initialized",
        backend="sqlite",
        db_path=db_path,
        auth_mode=config.auth_mode,
    )
    return build_sqlite_backend(store_group, allow_anonymous=config.allow_anonymous)
