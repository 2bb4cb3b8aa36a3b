"""TaskStore / ProjectStore 的远程实现

tasks 查询带上 project 关联投影，返回记录在此统一规范化。
"""

from typing import Any

import structlog

from daybook.core.models.project import Project
from daybook.core.models.task import Task, to_record
from daybook.core.normalize import normalize_task, normalize_tasks
from daybook.core.query import TaskQuery

from .client import RestClient

log = structlog.get_logger()

TASK_COLUMNS = (
    "id,title,type,due_date,work_days,status,priority,project_id,notes,"
    "project:projects(id,name)"
)
PROJECT_COLUMNS = "id,name,color"


def _by_id(record_id: str) -> dict[str, str]:
    return {"id": f"eq.{record_id}"}


class RestTaskStore:
    """TaskStore 的远程实现"""

    def __init__(self, client: RestClient) -> None:
        self._client = client

    async def list_tasks(self, query: TaskQuery) -> list[Task]:
        rows = await self._client.select("tasks", TASK_COLUMNS, query=query)
        return normalize_tasks(rows)

    async def count_tasks(self, query: TaskQuery) -> int:
        return await self._client.count("tasks", query=query)

    async def get_task(self, task_id: str) -> Task | None:
        rows = await self._client.select("tasks", TASK_COLUMNS, filters=_by_id(task_id))
        return normalize_task(rows[0]) if rows else None

    async def create_task(self, values: dict[str, Any]) -> Task:
        row = await self._client.insert("tasks", to_record(values), TASK_COLUMNS)
        return normalize_task(row)

    async def update_task(self, task_id: str, values: dict[str, Any]) -> Task | None:
        rows = await self._client.update(
            "tasks", to_record(values), _by_id(task_id), TASK_COLUMNS
        )
        return normalize_task(rows[0]) if rows else None

    async def delete_task(self, task_id: str) -> bool:
        rows = await self._client.delete("tasks", _by_id(task_id))
        return bool(rows)


class RestProjectStore:
    """ProjectStore 的远程实现"""

    def __init__(self, client: RestClient) -> None:
        self._client = client

    async def list_projects(self) -> list[Project]:
        rows = await self._client.select("projects", PROJECT_COLUMNS, order="name.asc")
        return [Project.model_validate(row) for row in rows]

    async def count_projects(self) -> int:
        return await self._client.count("projects")

    async def get_project(self, project_id: str) -> Project | None:
        rows = await self._client.select(
            "projects", PROJECT_COLUMNS, filters=_by_id(project_id)
        )
        return Project.model_validate(rows[0]) if rows else None

    async def create_project(self, values: dict[str, Any]) -> Project:
        row = await self._client.insert("projects", values, PROJECT_COLUMNS)
        return Project.model_validate(row)

    async def rename_project(self, project_id: str, name: str) -> Project | None:
        rows = await self._client.update(
            "projects", {"name": name}, _by_id(project_id), PROJECT_COLUMNS
        )
        return Project.model_validate(rows[0]) if rows else None

    async def delete_project(self, project_id: str) -> bool:
        """先解除任务关联再删除项目（两次请求，无跨请求事务）"""
        released = await self._client.update(
            "tasks", {"project_id": None}, {"project_id": f"eq.{project_id}"}, "id"
        )
        rows = await self._client.delete("projects", _by_id(project_id))
        if rows:
            log.info("project_deleted", project_id=project_id, released_tasks=len(released))
        return bool(rows)
