"""HTTP 请求/响应模型

任务响应在领域模型之外附带 display 展示标签（it-IT 文案）。
"""

from datetime import date, datetime

from daybook.core.dates import format_display_date, format_iso_date, format_work_days_summary
from daybook.core.labels import format_priority_label, format_status_label, format_type_label
from daybook.core.models import Project, Session, Task
from pydantic import BaseModel, Field


class TaskDisplay(BaseModel):
    """任务展示标签"""

    status: str
    type: str
    priority: str
    work_days: str = Field(default="", description="工作日摘要，如 04-06 mar")
    due_date: str | None = Field(default=None)


class TaskOut(Task):
    """任务响应"""

    display: TaskDisplay

    @classmethod
    def from_task(cls, task: Task) -> "TaskOut":
        display = TaskDisplay(
            status=format_status_label(task.status, bool(task.work_days)),
            type=format_type_label(task.type),
            priority=format_priority_label(task.priority),
            work_days=format_work_days_summary(task.work_days),
            due_date=(
                format_display_date(format_iso_date(task.due_date), with_year=True)
                if task.due_date
                else None
            ),
        )
        return cls(**task.model_dump(), display=display)


def present_tasks(tasks: list[Task]) -> list[TaskOut]:
    return [TaskOut.from_task(task) for task in tasks]


class TaskListResponse(BaseModel):
    """列表视图响应"""

    view: str
    tasks: list[TaskOut]
    projects: list[Project]
    sections: dict[str, list[str]] = Field(
        default_factory=dict, description="按类型分组的任务 ID（work / personal）"
    )


class ScheduleRequest(BaseModel):
    work_days: list[date] = Field(default_factory=list, description="至少一天")


class WeekColumn(BaseModel):
    day: date
    label: str
    tasks: list[TaskOut]
    deadlines: list[TaskOut]


class WeekResponse(BaseModel):
    """周看板响应"""

    week_start: date
    week_end: date
    label: str
    previous_week: date
    next_week: date
    columns: list[WeekColumn]
    drag_phase: str | None = Field(default=None, description="本次拖放的结束状态")


class WeekMoveRequest(BaseModel):
    task_id: str
    origin_day: date | None = Field(default=None, description="来源列，从看板外拖入时为空")
    target_day: date


class WeekRemoveDayRequest(BaseModel):
    task_id: str
    day: date


class WeekDeadlineRequest(BaseModel):
    task_id: str
    target_day: date | None = Field(default=None, description="为空表示清除截止日期")


class ProjectListResponse(BaseModel):
    projects: list[Project]


class SessionOut(BaseModel):
    """会话响应（不返回令牌）"""

    user_id: str
    email: str | None = None
    is_anonymous: bool
    expires_at: datetime | None = None

    @classmethod
    def from_session(cls, session: Session) -> "SessionOut":
        return cls(
            user_id=session.user_id,
            email=session.email,
            is_anonymous=session.is_anonymous,
            expires_at=session.expires_at,
        )


class SessionResponse(BaseModel):
    session: SessionOut | None
    allow_anonymous: bool


class MagicLinkRequest(BaseModel):
    email: str
    redirect_to: str | None = None


class VerifyRequest(BaseModel):
    email: str
    token: str
