"""任务规范化 -- 原始记录 -> Task

数据存储返回的记录形态不一：
- project join 可能是对象、列表或缺失
- work_days 可能为空，旧数据只有单日字段 work_day
- priority 可能缺失

normalize_task() 是唯一的映射入口，store 在返回前调用，
视图层只会看到规范化后的 Task。
"""

from collections.abc import Iterable
from datetime import date
from typing import Any

import structlog

from .dates import parse_iso_date
from .models.enums import DEFAULT_PRIORITY
from .models.task import ProjectRef, Task, TaskRow

log = structlog.get_logger()


def _coerce_day(value: str | date) -> date | None:
    if isinstance(value, date):
        return value
    # 兼容 timestamp 形式（取前 10 位）
    return parse_iso_date(value[:10])


def normalize_work_days(values: Iterable[str | date] | None) -> list[date] | None:
    """去重 + 升序，空集合返回 None（幂等）"""
    if not values:
        return None
    days: set[date] = set()
    for value in values:
        day = _coerce_day(value)
        if day is None:
            log.warning("invalid_work_day_dropped", value=value)
            continue
        days.add(day)
    return sorted(days) or None


def _flatten_project(project: ProjectRef | list[ProjectRef] | None) -> ProjectRef | None:
    if isinstance(project, list):
        return project[0] if project else None
    return project


def normalize_task(row: TaskRow | dict[str, Any]) -> Task:
    """将原始记录转换为 Task"""
    if not isinstance(row, TaskRow):
        row = TaskRow.model_validate(row)

    raw_days = row.work_days or ([row.work_day] if row.work_day else None)
    due_date = _coerce_day(row.due_date) if row.due_date else None

    return Task(
        id=row.id,
        title=row.title,
        type=row.type,
        status=row.status,
        priority=row.priority or DEFAULT_PRIORITY,
        due_date=due_date,
        work_days=normalize_work_days(raw_days),
        project_id=row.project_id,
        notes=row.notes,
        project=_flatten_project(row.project),
    )


def normalize_tasks(rows: Iterable[TaskRow | dict[str, Any]]) -> list[Task]:
    """批量规范化"""
    return [normalize_task(row) for row in rows]
