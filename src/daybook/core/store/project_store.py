"""ProjectStore SQLite 实现

删除项目时在同一事务内先将引用它的任务 project_id 置空。
"""

from datetime import UTC, datetime
from typing import Any

import aiosqlite
import structlog
from ulid import ULID

from ..exceptions import StoreError
from ..models.project import Project

log = structlog.get_logger()


class SqliteProjectStore:
    """ProjectStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def list_projects(self) -> list[Project]:
        rows = await self._fetch("SELECT id, name, color FROM projects ORDER BY name ASC")
        return [self._row_to_project(row) for row in rows]

    async def count_projects(self) -> int:
        rows = await self._fetch("SELECT COUNT(*) FROM projects")
        return rows[0][0] if rows else 0

    async def get_project(self, project_id: str) -> Project | None:
        rows = await self._fetch(
            "SELECT id, name, color FROM projects WHERE id = ?", (project_id,)
        )
        return self._row_to_project(rows[0]) if rows else None

    async def create_project(self, values: dict[str, Any]) -> Project:
        project = Project(id=str(ULID()), name=values["name"], color=values.get("color"))
        try:
            await self._conn.execute(
                "INSERT INTO projects (id, name, color, created_at) VALUES (?, ?, ?, ?)",
                (project.id, project.name, project.color, datetime.now(UTC).isoformat()),
            )
            await self._conn.commit()
        except aiosqlite.Error as e:
            await self._conn.rollback()
            raise StoreError(f"Creazione progetto fallita: {e}") from e
        return project

    async def rename_project(self, project_id: str, name: str) -> Project | None:
        try:
            cursor = await self._conn.execute(
                "UPDATE projects SET name = ? WHERE id = ?", (name, project_id)
            )
            await self._conn.commit()
        except aiosqlite.Error as e:
            await self._conn.rollback()
            raise StoreError(f"Rinomina progetto fallita: {e}") from e
        if cursor.rowcount == 0:
            return None
        return await self.get_project(project_id)

    async def delete_project(self, project_id: str) -> bool:
        try:
            released = await self._conn.execute(
                "UPDATE tasks SET project_id = NULL WHERE project_id = ?", (project_id,)
            )
            cursor = await self._conn.execute(
                "DELETE FROM projects WHERE id = ?", (project_id,)
            )
            await self._conn.commit()
        except aiosqlite.Error as e:
            await self._conn.rollback()
            raise StoreError(f"Eliminazione progetto fallita: {e}") from e
        if cursor.rowcount:
            log.info("project_deleted", project_id=project_id, released_tasks=released.rowcount)
        return cursor.rowcount > 0

    async def _fetch(self, sql: str, params: tuple[Any, ...] = ()) -> list[aiosqlite.Row]:
        try:
            cursor = await self._conn.execute(sql, params)
            return list(await cursor.fetchall())
        except aiosqlite.Error as e:
            raise StoreError(f"Lettura progetti fallita: {e}") from e

    @staticmethod
    def _row_to_project(row: aiosqlite.Row) -> Project:
        return Project(id=row["id"], name=row["name"], color=row["color"])
