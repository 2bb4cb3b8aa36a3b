"""Store Protocol 接口定义

TaskStore / ProjectStore 是数据存储协作方的抽象接口，
本地（aiosqlite）与远程（PostgREST）两种实现都满足这两个 Protocol。
返回值一律是规范化后的领域模型，原始记录不越过 store 边界。
"""

from typing import Any, Protocol

from ..models.project import Project
from ..models.task import Task
from ..query import TaskQuery


class TaskStore(Protocol):
    """Task 存储接口"""

    async def list_tasks(self, query: TaskQuery) -> list[Task]:
        """按查询描述过滤/排序/截断"""
        ...

    async def count_tasks(self, query: TaskQuery) -> int:
        """按查询描述计数（忽略排序与 limit）"""
        ...

    async def get_task(self, task_id: str) -> Task | None:
        """根据 id 查询任务"""
        ...

    async def create_task(self, values: dict[str, Any]) -> Task:
        """插入任务并返回完整记录"""
        ...

    async def update_task(self, task_id: str, values: dict[str, Any]) -> Task | None:
        """部分更新，任务不存在时返回 None"""
        ...

    async def delete_task(self, task_id: str) -> bool:
        """删除任务，返回是否存在"""
        ...


class ProjectStore(Protocol):
    """Project 存储接口"""

    async def list_projects(self) -> list[Project]:
        """按名称排序"""
        ...

    async def count_projects(self) -> int:
        ...

    async def get_project(self, project_id: str) -> Project | None:
        ...

    async def create_project(self, values: dict[str, Any]) -> Project:
        ...

    async def rename_project(self, project_id: str, name: str) -> Project | None:
        ...

    async def delete_project(self, project_id: str) -> bool:
        """删除项目，引用它的任务 project_id 置空"""
        ...
