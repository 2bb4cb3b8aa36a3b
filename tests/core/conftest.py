"""core 测试共享 fixture -- 可注入故障的 Store 包装"""

import asyncio

import pytest_asyncio
from daybook.core.exceptions import StoreError


class FlakyTaskStore:
    """包装真实 TaskStore：记录调用、按方法名注入故障或挂起"""

    def __init__(self, inner) -> None:
        self._inner = inner
        self.calls: list[str] = []
        self.fail_on: set[str] = set()
        self.gate: asyncio.Event | None = None

    async def _call(self, name: str, *args):
        self.calls.append(name)
        if name in self.fail_on:
            raise StoreError(f"{name} non disponibile")
        if self.gate is not None and name == "list_tasks":
            await self.gate.wait()
        return await getattr(self._inner, name)(*args)

    async def list_tasks(self, query):
        return await self._call("list_tasks", query)

    async def count_tasks(self, query):
        return await self._call("count_tasks", query)

    async def get_task(self, task_id):
        return await self._call("get_task", task_id)

    async def create_task(self, values):
        return await self._call("create_task", values)

    async def update_task(self, task_id, values):
        return await self._call("update_task", task_id, values)

    async def delete_task(self, task_id):
        return await self._call("delete_task", task_id)


@pytest_asyncio.fixture
async def flaky_store(store_group) -> FlakyTaskStore:
    return FlakyTaskStore(store_group.task_store)
