"""TaskStore SQLite 实现

TaskQuery 翻译为 SQL：
- contains / overlaps 作用于 work_days，借助 json_each 展开 JSON 数组
- 排序统一 NULL 置后
读出的记录经 normalize_task() 转换后返回。
"""

import json
from datetime import UTC, datetime
from typing import Any

import aiosqlite
import structlog
from ulid import ULID

from ..exceptions import StoreError
from ..models.task import Task, to_record
from ..normalize import normalize_task
from ..query import FilterOp, QueryFilter, TaskQuery

log = structlog.get_logger()

_SELECT = """
SELECT t.id, t.title, t.type, t.status, t.priority, t.due_date,
       t.work_days, t.work_day, t.project_id, t.notes,
       p.id AS project_ref_id, p.name AS project_ref_name
FROM tasks t
LEFT JOIN projects p ON p.id = t.project_id
"""

# 旧数据只有 work_day 时也参与数组匹配
_WORK_DAYS_EXPR = "COALESCE(t.work_days, json_array(t.work_day))"
# 排序用：两列都为空时保持 NULL
_WORK_DAYS_ORDER_EXPR = (
    "COALESCE(t.work_days, CASE WHEN t.work_day IS NOT NULL THEN json_array(t.work_day) END)"
)


def _placeholders(count: int) -> str:
    return ", ".join("?" for _ in range(count))


def _compile_filter(flt: QueryFilter) -> tuple[str, list[Any]]:
    col = f"t.{flt.column}"
    match flt.op:
        case FilterOp.EQ:
            return f"{col} = ?", [flt.value]
        case FilterOp.NEQ:
            return f"{col} != ?", [flt.value]
        case FilterOp.IN:
            return f"{col} IN ({_placeholders(len(flt.value))})", list(flt.value)
        case FilterOp.GTE:
            return f"{col} >= ?", [flt.value]
        case FilterOp.LTE:
            return f"{col} <= ?", [flt.value]
        case FilterOp.LT:
            return f"{col} < ?", [flt.value]
        case FilterOp.IS_NULL:
            return f"{col} IS NULL", []
        case FilterOp.NOT_NULL:
            return f"{col} IS NOT NULL", []

    if flt.column != "work_days":
        raise ValueError(f"Array operator {flt.op} requires work_days, got {flt.column}")
    if flt.op == FilterOp.CONTAINS:
        clauses = [
            f"EXISTS (SELECT 1 FROM json_each({_WORK_DAYS_EXPR}) WHERE value = ?)"
            for _ in flt.value
        ]
        return "(" + " AND ".join(clauses or ["1 = 1"]) + ")", list(flt.value)
    return (
        f"EXISTS (SELECT 1 FROM json_each({_WORK_DAYS_EXPR}) "
        f"WHERE value IN ({_placeholders(len(flt.value))}))",
        list(flt.value),
    )


def compile_where(query: TaskQuery) -> tuple[str, list[Any]]:
    """将过滤条件翻译为 WHERE 子句（无条件时返回空串）"""
    clauses: list[str] = []
    params: list[Any] = []
    for flt in query.filters:
        sql, values = _compile_filter(flt)
        clauses.append(sql)
        params.extend(values)
    if not clauses:
        return "", params
    return "WHERE " + " AND ".join(clauses), params


def compile_order(query: TaskQuery) -> str:
    parts = []
    for order in query.orders:
        col = _WORK_DAYS_ORDER_EXPR if order.column == "work_days" else f"t.{order.column}"
        direction = "ASC" if order.ascending else "DESC"
        nulls = f"{col} IS NOT NULL" if order.nulls_first else f"{col} IS NULL"
        parts.append(f"{nulls}, {col} {direction}")
    return "ORDER BY " + ", ".join(parts) if parts else ""


def _row_to_dict(row: aiosqlite.Row) -> dict[str, Any]:
    """数据库行 -> 原始记录（形态与远程 API 返回一致）"""
    project = None
    if row["project_ref_id"] is not None:
        project = {"id": row["project_ref_id"], "name": row["project_ref_name"]}
    return {
        "id": row["id"],
        "title": row["title"],
        "type": row["type"],
        "status": row["status"],
        "priority": row["priority"],
        "due_date": row["due_date"],
        "work_days": json.loads(row["work_days"]) if row["work_days"] else None,
        "work_day": row["work_day"],
        "project_id": row["project_id"],
        "notes": row["notes"],
        "project": project,
    }


def _to_columns(values: dict[str, Any]) -> dict[str, Any]:
    record = to_record(values)
    if "work_days" in record:
        days = record["work_days"]
        record["work_days"] = json.dumps(days) if days else None
        # 写入新字段后旧字段失效
        record["work_day"] = None
    return record


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def list_tasks(self, query: TaskQuery) -> list[Task]:
        where, params = compile_where(query)
        sql = f"{_SELECT} {where} {compile_order(query)}"
        if query.limit_count is not None:
            sql += " LIMIT ?"
            params.append(query.limit_count)
        try:
            cursor = await self._conn.execute(sql, params)
            rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise StoreError(f"Lettura task fallita: {e}") from e
        return [normalize_task(_row_to_dict(row)) for row in rows]

    async def count_tasks(self, query: TaskQuery) -> int:
        where, params = compile_where(query)
        try:
            cursor = await self._conn.execute(f"SELECT COUNT(*) FROM tasks t {where}", params)
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise StoreError(f"Conteggio task fallito: {e}") from e
        return row[0] if row else 0

    async def get_task(self, task_id: str) -> Task | None:
        try:
            cursor = await self._conn.execute(f"{_SELECT} WHERE t.id = ?", (task_id,))
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise StoreError(f"Lettura task fallita: {e}") from e
        if row is None:
            return None
        return normalize_task(_row_to_dict(row))

    async def create_task(self, values: dict[str, Any]) -> Task:
        task_id = str(ULID())
        now = datetime.now(UTC).isoformat()
        record = _to_columns(values)
        record.update(id=task_id, created_at=now, updated_at=now)
        columns = list(record)
        await self._write(
            f"INSERT INTO tasks ({', '.join(columns)}) VALUES ({_placeholders(len(columns))})",
            [record[c] for c in columns],
        )
        log.debug("task_inserted", task_id=task_id)
        task = await self.get_task(task_id)
        if task is None:
            raise StoreError(f"Task appena creato non trovato: {task_id}", recoverable=False)
        return task

    async def update_task(self, task_id: str, values: dict[str, Any]) -> Task | None:
        record = _to_columns(values)
        record["updated_at"] = datetime.now(UTC).isoformat()
        assignments = ", ".join(f"{column} = ?" for column in record)
        rowcount = await self._write(
            f"UPDATE tasks SET {assignments} WHERE id = ?",
            [*record.values(), task_id],
        )
        if rowcount == 0:
            return None
        return await self.get_task(task_id)

    async def delete_task(self, task_id: str) -> bool:
        rowcount = await self._write("DELETE FROM tasks WHERE id = ?", [task_id])
        return rowcount > 0

    async def _write(self, sql: str, params: list[Any]) -> int:
        """执行单条写语句并提交，失败时回滚"""
        try:
            cursor = await self._conn.execute(sql, params)
            await self._conn.commit()
        except aiosqlite.Error as e:
            await self._conn.rollback()
            raise StoreError(f"Scrittura task fallita: {e}") from e
        return cursor.rowcount
