"""任务查询描述 -- 与存储实现无关的过滤/排序/分页

TaskQuery 以不可变构建器的方式描述一次 select，
由各 store 翻译为 SQL（本地）或 PostgREST 参数（远程）。
matches() 在内存中复核单条任务是否仍属于当前视图。
"""

from datetime import date
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .config import UPCOMING_LIMIT
from .dates import start_of_week, week_days
from .models.enums import ACTIVE_STATUSES, TaskPriority, TaskStatus, TaskType
from .models.task import Task

# 允许出现在过滤/排序中的列
QUERY_COLUMNS: frozenset[str] = frozenset(
    {"id", "title", "type", "status", "priority", "due_date", "work_days", "project_id"}
)


class FilterOp(StrEnum):
    """过滤操作符"""

    EQ = "eq"
    NEQ = "neq"
    IN = "in"
    CONTAINS = "cs"
    OVERLAPS = "ov"
    GTE = "gte"
    LTE = "lte"
    LT = "lt"
    IS_NULL = "is_null"
    NOT_NULL = "not_null"


def _raw(value: Any) -> Any:
    """日期/枚举转换为存储层原始值"""
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, StrEnum):
        return value.value
    if isinstance(value, (list, tuple, set, frozenset)):
        return sorted(_raw(item) for item in value)
    return value


class QueryFilter(BaseModel):
    """单个过滤条件"""

    model_config = ConfigDict(frozen=True)

    column: str
    op: FilterOp
    value: Any = None


class QueryOrder(BaseModel):
    """单个排序条件"""

    model_config = ConfigDict(frozen=True)

    column: str
    ascending: bool = True
    nulls_first: bool = False


class TaskQuery(BaseModel):
    """任务查询 -- 所有构建方法返回新实例"""

    model_config = ConfigDict(frozen=True)

    filters: tuple[QueryFilter, ...] = ()
    orders: tuple[QueryOrder, ...] = ()
    limit_count: int | None = Field(default=None, ge=1)

    def _with_filter(self, column: str, op: FilterOp, value: Any = None) -> "TaskQuery":
        if column not in QUERY_COLUMNS:
            raise ValueError(f"Unsupported query column: {column}")
        flt = QueryFilter(column=column, op=op, value=_raw(value))
        return self.model_copy(update={"filters": (*self.filters, flt)})

    def eq(self, column: str, value: Any) -> "TaskQuery":
        return self._with_filter(column, FilterOp.EQ, value)

    def neq(self, column: str, value: Any) -> "TaskQuery":
        return self._with_filter(column, FilterOp.NEQ, value)

    def in_(self, column: str, values: list[Any]) -> "TaskQuery":
        return self._with_filter(column, FilterOp.IN, values)

    def contains(self, column: str, values: list[Any]) -> "TaskQuery":
        return self._with_filter(column, FilterOp.CONTAINS, values)

    def overlaps(self, column: str, values: list[Any]) -> "TaskQuery":
        return self._with_filter(column, FilterOp.OVERLAPS, values)

    def gte(self, column: str, value: Any) -> "TaskQuery":
        return self._with_filter(column, FilterOp.GTE, value)

    def lte(self, column: str, value: Any) -> "TaskQuery":
        return self._with_filter(column, FilterOp.LTE, value)

    def lt(self, column: str, value: Any) -> "TaskQuery":
        return self._with_filter(column, FilterOp.LT, value)

    def is_null(self, column: str) -> "TaskQuery":
        return self._with_filter(column, FilterOp.IS_NULL)

    def not_null(self, column: str) -> "TaskQuery":
        return self._with_filter(column, FilterOp.NOT_NULL)

    def order(
        self, column: str, ascending: bool = True, nulls_first: bool = False
    ) -> "TaskQuery":
        if column not in QUERY_COLUMNS:
            raise ValueError(f"Unsupported order column: {column}")
        order = QueryOrder(column=column, ascending=ascending, nulls_first=nulls_first)
        return self.model_copy(update={"orders": (*self.orders, order)})

    def limit(self, count: int) -> "TaskQuery":
        return self.model_copy(update={"limit_count": count})

    def matches(self, task: Task) -> bool:
        """内存中判断任务是否满足全部过滤条件（NULL 语义同 SQL）"""
        return all(_matches_filter(flt, _raw(getattr(task, flt.column))) for flt in self.filters)


def _matches_filter(flt: QueryFilter, actual: Any) -> bool:
    if flt.op == FilterOp.IS_NULL:
        return actual is None
    if flt.op == FilterOp.NOT_NULL:
        return actual is not None
    if actual is None:
        return False
    match flt.op:
        case FilterOp.EQ:
            return actual == flt.value
        case FilterOp.NEQ:
            return actual != flt.value
        case FilterOp.IN:
            return actual in flt.value
        case FilterOp.CONTAINS:
            return set(flt.value) <= set(actual)
        case FilterOp.OVERLAPS:
            return bool(set(flt.value) & set(actual))
        case FilterOp.GTE:
            return actual >= flt.value
        case FilterOp.LTE:
            return actual <= flt.value
        case FilterOp.LT:
            return actual < flt.value
    return False


class TaskFilters(BaseModel):
    """列表页筛选项，None 表示「全部」"""

    status: TaskStatus | None = None
    type: TaskType | None = None
    priority: TaskPriority | None = None
    project_id: str | None = None


def inbox_query() -> TaskQuery:
    """Inbox：未规划的任务"""
    return (
        TaskQuery()
        .eq("status", TaskStatus.INBOX)
        .order("priority")
        .order("due_date")
    )


def all_tasks_query(filters: TaskFilters | None = None) -> TaskQuery:
    """全部进行中任务，支持状态/类型/优先级/项目筛选"""
    filters = filters or TaskFilters()
    query = (
        TaskQuery()
        .in_("status", list(ACTIVE_STATUSES))
        .order("status")
        .order("work_days")
        .order("due_date")
    )
    if filters.status is not None:
        query = query.eq("status", filters.status)
    if filters.type is not None:
        query = query.eq("type", filters.type)
    if filters.priority is not None:
        query = query.eq("priority", filters.priority)
    if filters.project_id is not None:
        query = query.eq("project_id", filters.project_id)
    return query


def today_query(today: date) -> TaskQuery:
    """今天：计划在今天的进行中任务"""
    return (
        TaskQuery()
        .eq("status", TaskStatus.OPEN)
        .contains("work_days", [today])
        .order("type")
        .order("due_date")
    )


def done_query(filters: TaskFilters | None = None) -> TaskQuery:
    """已完成任务，支持类型/项目筛选"""
    filters = filters or TaskFilters()
    query = TaskQuery().eq("status", TaskStatus.DONE).order("work_days", ascending=False)
    if filters.type is not None:
        query = query.eq("type", filters.type)
    if filters.project_id is not None:
        query = query.eq("project_id", filters.project_id)
    return query


def upcoming_query(limit: int = UPCOMING_LIMIT) -> TaskQuery:
    """即将到期：有截止日期的进行中任务"""
    return (
        TaskQuery()
        .eq("status", TaskStatus.OPEN)
        .not_null("due_date")
        .order("due_date")
        .limit(limit)
    )


def week_planned_query(days: list[date]) -> TaskQuery:
    """周视图：计划在给定日期中任意一天的任务"""
    return (
        TaskQuery()
        .eq("status", TaskStatus.OPEN)
        .overlaps("work_days", days)
        .order("work_days")
        .order("priority")
    )


def week_deadlines_query(start: date, end: date) -> TaskQuery:
    """周视图：截止日期落在 [start, end] 的未完成任务"""
    return (
        TaskQuery()
        .neq("status", TaskStatus.DONE)
        .not_null("due_date")
        .gte("due_date", start)
        .lte("due_date", end)
        .order("due_date")
        .order("priority")
    )


def summary_queries(today: date) -> dict[str, TaskQuery]:
    """导航计数查询：inbox / today / week（周一至周日）/ overdue"""
    monday = start_of_week(today)
    return {
        "inbox": TaskQuery().eq("status", TaskStatus.INBOX),
        "today": TaskQuery().eq("status", TaskStatus.OPEN).contains("work_days", [today]),
        "week": TaskQuery()
        .eq("status", TaskStatus.OPEN)
        .overlaps("work_days", week_days(monday, 7)),
        "overdue": TaskQuery()
        .neq("status", TaskStatus.DONE)
        .lt("due_date", today),
    }
