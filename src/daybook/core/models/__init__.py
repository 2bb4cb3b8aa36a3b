"""Daybook Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .change import TaskChange
from .enums import (
    ACTIVE_STATUSES,
    DEFAULT_PRIORITY,
    ChangeKind,
    TaskPriority,
    TaskStatus,
    TaskType,
)
from .project import Project, ProjectCreate, ProjectRename
from .session import Session
from .task import (
    TASK_WRITABLE_FIELDS,
    ProjectRef,
    Task,
    TaskCreate,
    TaskPatch,
    TaskRow,
    to_record,
)

__all__ = [
    # 枚举
    "TaskStatus",
    "TaskType",
    "TaskPriority",
    "ChangeKind",
    "DEFAULT_PRIORITY",
    "ACTIVE_STATUSES",
    # Task
    "Task",
    "TaskRow",
    "TaskCreate",
    "TaskPatch",
    "ProjectRef",
    "TASK_WRITABLE_FIELDS",
    "to_record",
    # Project
    "Project",
    "ProjectCreate",
    "ProjectRename",
    # Session
    "Session",
    # Change
    "TaskChange",
]
