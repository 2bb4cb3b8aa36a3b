"""SQLite Store 测试 -- 查询翻译、JSON 数组匹配、旧字段兼容、项目删除、WAL"""

import json
from datetime import date

import pytest
from daybook.core.exceptions import StoreError
from daybook.core.models import TaskCreate, TaskPriority, TaskStatus
from daybook.core.query import (
    TaskQuery,
    inbox_query,
    today_query,
    upcoming_query,
    week_planned_query,
)
from daybook.core.scheduling import build_create_values
from daybook.core.store import create_store_group, verify_wal_mode
from daybook.core.store.task_store import compile_order, compile_where

D4, D5, D6, D7 = (date(2024, 3, d) for d in (4, 5, 6, 7))


async def _seed(store_group, **fields):
    return await store_group.task_store.create_task(build_create_values(TaskCreate(**fields)))


class TestCompile:
    def test_where_params(self):
        query = TaskQuery().eq("status", TaskStatus.OPEN).contains("work_days", [D6])
        where, params = compile_where(query)
        assert where.startswith("WHERE t.status = ?")
        assert "json_each" in where
        assert params == ["OPEN", "2024-03-06"]

    def test_empty_where(self):
        assert compile_where(TaskQuery()) == ("", [])

    def test_order_nulls_last(self):
        sql = compile_order(TaskQuery().order("due_date"))
        assert sql == "ORDER BY t.due_date IS NULL, t.due_date ASC"

    def test_work_days_order_reads_legacy_column(self):
        sql = compile_order(TaskQuery().order("work_days"))
        assert "json_array(t.work_day)" in sql
        assert sql.startswith("ORDER BY COALESCE(t.work_days, CASE WHEN")


class TestTaskStore:
    async def test_create_assigns_ulid(self, store_group):
        task = await _seed(store_group, title="Report", work_days=[D5, D4])
        assert len(task.id) == 26
        assert task.work_days == [D4, D5]
        assert task.status == TaskStatus.OPEN

    async def test_work_days_stored_as_json(self, store_group):
        task = await _seed(store_group, title="Report", work_days=[D4])
        cursor = await store_group.conn.execute(
            "SELECT work_days FROM tasks WHERE id = ?", (task.id,)
        )
        row = await cursor.fetchone()
        assert json.loads(row[0]) == ["2024-03-04"]

    async def test_contains_and_overlaps(self, store_group):
        today = await _seed(store_group, title="Oggi", work_days=[D5, D6])
        other = await _seed(store_group, title="Giovedì", work_days=[D7])

        listed = await store_group.task_store.list_tasks(today_query(D6))
        assert [t.id for t in listed] == [today.id]

        week = await store_group.task_store.list_tasks(week_planned_query([D4, D7]))
        assert [t.id for t in week] == [other.id]

    async def test_legacy_work_day_participates(self, store_group):
        await store_group.conn.execute(
            "INSERT INTO tasks (id, title, status, work_day, created_at, updated_at) "
            "VALUES ('legacy', 'Vecchio', 'OPEN', '2024-03-06', 'x', 'x')"
        )
        await store_group.conn.commit()

        listed = await store_group.task_store.list_tasks(today_query(D6))
        assert [t.id for t in listed] == ["legacy"]
        assert listed[0].work_days == [D6]

    async def test_writing_work_days_clears_legacy(self, store_group):
        await store_group.conn.execute(
            "INSERT INTO tasks (id, title, status, work_day, created_at, updated_at) "
            "VALUES ('legacy', 'Vecchio', 'OPEN', '2024-03-06', 'x', 'x')"
        )
        await store_group.conn.commit()

        updated = await store_group.task_store.update_task("legacy", {"work_days": [D7]})
        assert updated.work_days == [D7]

    async def test_legacy_work_day_sorts_by_date(self, store_group):
        later = await _seed(store_group, title="Nuovo", work_days=[D6])
        await store_group.conn.execute(
            "INSERT INTO tasks (id, title, status, work_day, created_at, updated_at) "
            "VALUES ('legacy', 'Vecchio', 'OPEN', '2024-03-04', 'x', 'x')"
        )
        await store_group.conn.commit()

        listed = await store_group.task_store.list_tasks(week_planned_query([D4, D5, D6, D7]))
        assert [t.id for t in listed] == ["legacy", later.id]

    async def test_order_and_limit(self, store_group):
        for day in (7, 5, 6, 4, 8, 9):
            await _seed(
                store_group,
                title=f"Scadenza {day}",
                work_days=[D4],
                due_date=date(2024, 3, day),
            )
        await _seed(store_group, title="Senza scadenza", work_days=[D4])

        listed = await store_group.task_store.list_tasks(upcoming_query())
        assert [t.due_date.day for t in listed] == [4, 5, 6, 7, 8]

    async def test_inbox_priority_order(self, store_group):
        await _seed(store_group, title="Basso", priority=TaskPriority.P3)
        await _seed(store_group, title="Critico", priority=TaskPriority.P0)
        listed = await store_group.task_store.list_tasks(inbox_query())
        assert [t.title for t in listed] == ["Critico", "Basso"]

    async def test_count(self, store_group):
        await _seed(store_group, title="A")
        await _seed(store_group, title="B")
        await _seed(store_group, title="C", work_days=[D4])
        assert await store_group.task_store.count_tasks(inbox_query()) == 2

    async def test_update_missing_returns_none(self, store_group):
        assert await store_group.task_store.update_task("missing", {"title": "x"}) is None

    async def test_delete(self, store_group):
        task = await _seed(store_group, title="Via")
        assert await store_group.task_store.delete_task(task.id) is True
        assert await store_group.task_store.delete_task(task.id) is False
        assert await store_group.task_store.get_task(task.id) is None

    async def test_project_join(self, store_group):
        project = await store_group.project_store.create_project({"name": "Alpha"})
        task = await _seed(store_group, title="Con progetto", project_id=project.id)
        assert task.project is not None
        assert task.project.name == "Alpha"

    async def test_unknown_project_rejected(self, store_group):
        with pytest.raises(StoreError):
            await _seed(store_group, title="Orfano", project_id="non-esiste")


class TestProjectStore:
    async def test_list_sorted(self, store_group):
        await store_group.project_store.create_project({"name": "Beta"})
        await store_group.project_store.create_project({"name": "Alpha"})
        projects = await store_group.project_store.list_projects()
        assert [p.name for p in projects] == ["Alpha", "Beta"]
        assert await store_group.project_store.count_projects() == 2

    async def test_rename(self, store_group):
        project = await store_group.project_store.create_project({"name": "Alpha"})
        renamed = await store_group.project_store.rename_project(project.id, "Omega")
        assert renamed.name == "Omega"
        assert await store_group.project_store.rename_project("missing", "x") is None

    async def test_delete_releases_tasks(self, store_group):
        project = await store_group.project_store.create_project({"name": "Alpha"})
        task = await _seed(store_group, title="Legato", project_id=project.id)

        assert await store_group.project_store.delete_project(project.id) is True

        stored = await store_group.task_store.get_task(task.id)
        assert stored.project_id is None
        assert await store_group.project_store.delete_project(project.id) is False


class TestSqliteInit:
    async def test_wal_mode(self, store_group):
        assert await verify_wal_mode(store_group.conn) is True

    async def test_memory_database(self):
        group = await create_store_group(":memory:")
        try:
            assert await verify_wal_mode(group.conn) is False
            assert await group.task_store.list_tasks(inbox_query()) == []
        finally:
            await group.close()
