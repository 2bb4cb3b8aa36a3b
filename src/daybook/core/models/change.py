"""TaskChange -- 「任务已变更」广播消息"""

from datetime import UTC, datetime

from pydantic import BaseModel, Field
from ulid import ULID

from .enums import ChangeKind


class TaskChange(BaseModel):
    """跨视图刷新通知，仅提示「有变化」，不携带完整数据"""

    change_id: str = Field(default_factory=lambda: str(ULID()), description="ULID，时间有序")
    kind: ChangeKind
    task_id: str | None = Field(default=None)
    project_id: str | None = Field(default=None)
    ts: datetime = Field(default_factory=lambda: datetime.now(UTC))
