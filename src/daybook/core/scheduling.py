"""调度规则 -- 纯函数，返回待写入的字段补丁

所有补丁都满足两条约束：
- work_days 升序去重，空集合写 None
- INBOX 任务不携带 work_days；给 INBOX 任务加工作日会转为 OPEN
"""

from collections.abc import Iterable
from datetime import date
from typing import Any

from .dates import add_days
from .exceptions import TaskValidationError
from .models.enums import TaskStatus
from .models.project import ProjectCreate
from .models.task import Task, TaskCreate, TaskPatch
from .normalize import normalize_work_days


def creation_status(work_days: Iterable[date] | None) -> TaskStatus:
    """新建任务的默认状态：有工作日为 OPEN，否则 INBOX"""
    return TaskStatus.OPEN if normalize_work_days(work_days) else TaskStatus.INBOX


def clean_title(title: str | None) -> str:
    title = (title or "").strip()
    if not title:
        raise TaskValidationError("Il titolo è obbligatorio", field="title")
    return title


def clean_project_name(name: str | None) -> str:
    name = (name or "").strip()
    if not name:
        raise TaskValidationError("Il nome del progetto è obbligatorio", field="name")
    return name


def _clean_notes(notes: str | None) -> str | None:
    return (notes or "").strip() or None


def build_create_values(payload: TaskCreate) -> dict[str, Any]:
    """校验并生成新建任务的字段

    Raises:
        TaskValidationError: 标题为空
    """
    work_days = normalize_work_days(payload.work_days)
    status = payload.status or creation_status(work_days)
    if status == TaskStatus.INBOX:
        work_days = None
    return {
        "title": clean_title(payload.title),
        "type": payload.type,
        "priority": payload.priority,
        "status": status,
        "project_id": payload.project_id or None,
        "notes": _clean_notes(payload.notes),
        "work_days": work_days,
        "due_date": payload.due_date,
    }


def build_project_values(payload: ProjectCreate) -> dict[str, Any]:
    return {"name": clean_project_name(payload.name), "color": payload.color}


def work_days_patch(task: Task, days: Iterable[date] | None) -> dict[str, Any]:
    """替换工作日；INBOX 任务获得工作日时转为 OPEN"""
    work_days = normalize_work_days(days)
    patch: dict[str, Any] = {"work_days": work_days}
    if work_days and task.status == TaskStatus.INBOX:
        patch["status"] = TaskStatus.OPEN
    return patch


def status_patch(task: Task, status: TaskStatus) -> dict[str, Any]:
    """切换状态；转入 INBOX 时清空工作日"""
    patch: dict[str, Any] = {"status": status}
    if status == TaskStatus.INBOX:
        patch["work_days"] = None
    return patch


def add_work_day(task: Task, day: date) -> dict[str, Any]:
    """并入一天，状态确保为 OPEN"""
    return {
        "work_days": normalize_work_days([*(task.work_days or []), day]),
        "status": TaskStatus.OPEN,
    }


def remove_work_day(task: Task, day: date) -> dict[str, Any]:
    """移除一天；移空后回到 INBOX"""
    remaining = normalize_work_days(d for d in (task.work_days or []) if d != day)
    if remaining is None:
        return {"work_days": None, "status": TaskStatus.INBOX}
    return {"work_days": remaining}


def move_work_day(task: Task, origin: date | None, target: date) -> dict[str, Any]:
    """从 origin 移到 target（净移动）；origin 为空等同于 add_work_day"""
    days = [d for d in (task.work_days or []) if d != origin]
    return {
        "work_days": normalize_work_days([*days, target]),
        "status": TaskStatus.OPEN,
    }


def schedule_patch(days: Iterable[date] | None) -> dict[str, Any]:
    """Inbox 任务排期

    Raises:
        TaskValidationError: 未选择任何日期
    """
    work_days = normalize_work_days(days)
    if work_days is None:
        raise TaskValidationError("Seleziona almeno un giorno", field="work_days")
    return {"work_days": work_days, "status": TaskStatus.OPEN}


def send_to_today(task: Task, today: date | None = None) -> dict[str, Any]:
    return add_work_day(task, today or date.today())


def send_to_inbox(task: Task) -> dict[str, Any]:
    return status_patch(task, TaskStatus.INBOX)


def snooze_patch(task: Task, days: int = 1) -> dict[str, Any]:
    """所有工作日顺延 days 天

    Raises:
        TaskValidationError: 任务没有工作日
    """
    if not task.work_days:
        raise TaskValidationError("Il task non ha giorni pianificati", field="work_days")
    return {"work_days": normalize_work_days(add_days(d, days) for d in task.work_days)}


def complete_patch() -> dict[str, Any]:
    return {"status": TaskStatus.DONE}


def due_date_patch(due_date: date | None) -> dict[str, Any]:
    return {"due_date": due_date}


def patch_values(task: Task, patch: TaskPatch) -> dict[str, Any]:
    """详情页整体保存：只取显式传入的字段，并套用状态/工作日规则

    Raises:
        TaskValidationError: 标题被改为空
    """
    values = patch.model_dump(exclude_unset=True)
    for key in ("type", "status", "priority"):
        if key in values and values[key] is None:
            raise TaskValidationError(f"Campo obbligatorio: {key}", field=key)
    if "title" in values:
        values["title"] = clean_title(values["title"])
    if "notes" in values:
        values["notes"] = _clean_notes(values["notes"])
    if "project_id" in values:
        values["project_id"] = values["project_id"] or None
    if "work_days" in values:
        values["work_days"] = normalize_work_days(values["work_days"])
        if values["work_days"] and "status" not in values and task.status == TaskStatus.INBOX:
            values["status"] = TaskStatus.OPEN
    if values.get("status") == TaskStatus.INBOX:
        values["work_days"] = None
    return values


def apply_patch(task: Task, values: dict[str, Any]) -> Task:
    """将补丁应用到本地副本（不修改原对象）"""
    return task.model_copy(update=values, deep=True)
