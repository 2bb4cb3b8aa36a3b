"""枚举定义 -- 任务状态、类型、优先级，以及变更事件类型

TaskStatus 约束：
- INBOX: 未规划，不允许携带 work_days
- OPEN: 进行中，可有可无 work_days
- DONE: 已完成（持久化保留，可在 Done 视图查询）
"""

from enum import StrEnum


class TaskStatus(StrEnum):
    """任务状态"""

    INBOX = "INBOX"
    OPEN = "OPEN"
    DONE = "DONE"


class TaskType(StrEnum):
    """任务类型"""

    WORK = "WORK"
    PERSONAL = "PERSONAL"


class TaskPriority(StrEnum):
    """任务优先级，P0 最高"""

    P0 = "P0"
    P1 = "P1"
    P2 = "P2"
    P3 = "P3"


DEFAULT_PRIORITY = TaskPriority.P2

# 仍在计划中的状态（非终态）
ACTIVE_STATUSES: tuple[TaskStatus, ...] = (TaskStatus.OPEN, TaskStatus.INBOX)


class ChangeKind(StrEnum):
    """「任务已变更」广播的事件类型"""

    TASK_CREATED = "TASK_CREATED"
    TASK_UPDATED = "TASK_UPDATED"
    TASK_DELETED = "TASK_DELETED"
    PROJECTS_CHANGED = "PROJECTS_CHANGED"
