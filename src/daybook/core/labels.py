"""展示标签 -- 优先级/类型/状态的名称、emoji 与色调

文案沿用 it-IT；tone 供前端选择样式。
"""

from typing import NamedTuple

from .models.enums import DEFAULT_PRIORITY, TaskPriority, TaskStatus, TaskType


class LabelMeta(NamedTuple):
    label: str
    emoji: str
    tone: str


PRIORITY_META: dict[TaskPriority, LabelMeta] = {
    TaskPriority.P0: LabelMeta("Critico", "🔥", "p0"),
    TaskPriority.P1: LabelMeta("Alto", "⚡", "p1"),
    TaskPriority.P2: LabelMeta("Medio", "✨", "p2"),
    TaskPriority.P3: LabelMeta("Basso", "🌿", "p3"),
}

TYPE_META: dict[TaskType, LabelMeta] = {
    TaskType.WORK: LabelMeta("Lavoro", "💼", "work"),
    TaskType.PERSONAL: LabelMeta("Personale", "🏡", "personal"),
}

STATUS_META: dict[TaskStatus, LabelMeta] = {
    TaskStatus.INBOX: LabelMeta("Da pianificare", "📥", "inbox"),
    TaskStatus.OPEN: LabelMeta("Pianificato", "🗓️", "open"),
    TaskStatus.DONE: LabelMeta("Completato", "✅", "done"),
}

# OPEN 但还没有工作日
UNSCHEDULED_OPEN_LABEL = "🕒 Da pianificare"


def _option(value: str, meta: LabelMeta) -> dict[str, str]:
    return {"value": value, "label": f"{meta.emoji} {meta.label}", "tone": meta.tone}


def priority_options() -> list[dict[str, str]]:
    return [_option(p.value, meta) for p, meta in PRIORITY_META.items()]


def type_options() -> list[dict[str, str]]:
    return [_option(t.value, meta) for t, meta in TYPE_META.items()]


def status_options(include_done: bool = True) -> list[dict[str, str]]:
    """状态选项；新建任务与列表筛选场景不提供 DONE"""
    order = [TaskStatus.OPEN, TaskStatus.INBOX, TaskStatus.DONE]
    return [
        _option(status.value, STATUS_META[status])
        for status in order
        if include_done or status != TaskStatus.DONE
    ]


def format_priority_label(priority: TaskPriority | None) -> str:
    meta = PRIORITY_META[priority or DEFAULT_PRIORITY]
    return f"{meta.emoji} {meta.label}"


def format_type_label(task_type: TaskType) -> str:
    meta = TYPE_META[task_type]
    return f"{meta.emoji} {meta.label}"


def format_status_label(status: TaskStatus, has_work_days: bool = True) -> str:
    if status == TaskStatus.OPEN and not has_work_days:
        return UNSCHEDULED_OPEN_LABEL
    meta = STATUS_META[status]
    return f"{meta.emoji} {meta.label}"


def join_meta(parts: list[str | None]) -> str:
    """用 " | " 连接非空片段"""
    return " | ".join(part for part in parts if part)
