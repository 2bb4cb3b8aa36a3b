"""Task Domain Model

Task 是应用内部唯一的任务形态；TaskRow 是数据存储返回的原始记录，
只在 store 边界内出现，由 normalize_task() 转换为 Task。
"""

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .enums import DEFAULT_PRIORITY, TaskPriority, TaskStatus, TaskType

# 可写入 tasks 表的字段
TASK_WRITABLE_FIELDS: frozenset[str] = frozenset(
    {
        "title",
        "type",
        "status",
        "priority",
        "due_date",
        "work_days",
        "project_id",
        "notes",
    }
)


class ProjectRef(BaseModel):
    """任务关联的项目（join 投影）"""

    id: str
    name: str


class Task(BaseModel):
    """任务数据模型

    work_days 始终升序、去重，空集合以 None 表示。
    status 为 INBOX 时 work_days 必为 None。
    """

    id: str = Field(description="唯一标识")
    title: str = Field(description="任务标题")
    type: TaskType = Field(default=TaskType.WORK, description="工作/个人")
    status: TaskStatus = Field(default=TaskStatus.INBOX, description="当前状态")
    priority: TaskPriority = Field(default=DEFAULT_PRIORITY, description="优先级")
    due_date: date | None = Field(default=None, description="截止日期")
    work_days: list[date] | None = Field(default=None, description="计划工作日")
    project_id: str | None = Field(default=None, description="所属项目 ID")
    notes: str | None = Field(default=None, description="备注")
    project: ProjectRef | None = Field(default=None, description="所属项目")


class TaskRow(BaseModel):
    """数据存储返回的原始任务记录

    - project 可能是对象、列表（取第一个）或缺失
    - work_day 是旧版单日字段，work_days 为空时作为回退
    """

    model_config = ConfigDict(extra="ignore")

    id: str
    title: str
    type: TaskType = TaskType.WORK
    status: TaskStatus = TaskStatus.INBOX
    priority: TaskPriority | None = None
    due_date: str | date | None = None
    work_days: list[str | date] | None = None
    work_day: str | date | None = None
    project_id: str | None = None
    notes: str | None = None
    project: ProjectRef | list[ProjectRef] | None = None


class TaskCreate(BaseModel):
    """新建任务请求

    status 为 None 时按 work_days 推导：有工作日为 OPEN，否则 INBOX。
    """

    title: str = Field(description="任务标题（去除首尾空白后不能为空）")
    type: TaskType = Field(default=TaskType.WORK)
    priority: TaskPriority = Field(default=DEFAULT_PRIORITY)
    status: TaskStatus | None = Field(default=None)
    project_id: str | None = Field(default=None)
    notes: str | None = Field(default=None)
    work_days: list[date] | None = Field(default=None)
    due_date: date | None = Field(default=None)


class TaskPatch(BaseModel):
    """部分更新请求 -- 仅显式传入的字段生效（显式 null 表示清空）"""

    title: str | None = None
    type: TaskType | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    due_date: date | None = None
    work_days: list[date] | None = None
    project_id: str | None = None
    notes: str | None = None


def to_record(values: dict[str, Any]) -> dict[str, Any]:
    """将字段值转换为存储层可写入的原始值（日期 -> ISO 字符串）"""
    record: dict[str, Any] = {}
    for key, value in values.items():
        if key not in TASK_WRITABLE_FIELDS:
            raise ValueError(f"Unknown task field: {key}")
        if isinstance(value, date):
            record[key] = value.isoformat()
        elif key == "work_days" and value is not None:
            record[key] = [
                day.isoformat() if isinstance(day, date) else day for day in value
            ]
        elif isinstance(value, (TaskStatus, TaskType, TaskPriority)):
            record[key] = value.value
        else:
            record[key] = value
    return record
