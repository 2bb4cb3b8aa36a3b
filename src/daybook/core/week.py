"""周视图 -- 周一至周五看板 + 拖放状态机

拖放对象有两种：
- 任务（来自某一天的列，origin_day 为该天；来自列外时为 None）
- 截止日期标签（deadline chip）

状态流转：IDLE -> DRAGGING -> DROPPED | DROPPED_OUTSIDE
- drop(target): 任务从 origin 移到 target（净移动），状态置为 OPEN；
  截止日期标签改写 due_date
- end_drag() 且没有处理过的 drop: 任务移除 origin 这一天（移空后回到 INBOX）；
  截止日期标签清空 due_date

所有变更都是乐观的，失败回滚；清除截止日期失败时，被移除的标签放回列表最前面。
"""

from collections import defaultdict
from datetime import date
from enum import StrEnum
from typing import Any

import structlog
from pydantic import BaseModel

from . import scheduling
from .config import WORK_WEEK_LENGTH
from .dates import add_days, format_display_date, format_iso_date, start_of_week, week_days
from .events import TaskEventHub
from .exceptions import DaybookError, NotFoundError
from .models.enums import ChangeKind, TaskStatus
from .models.task import Task
from .query import TaskQuery, week_deadlines_query, week_planned_query
from .session import SessionManager
from .store.protocols import ProjectStore, TaskStore
from .views import ViewState, snapshot

log = structlog.get_logger()


class DragKind(StrEnum):
    TASK = "task"
    DEADLINE = "deadline"


class DragPhase(StrEnum):
    IDLE = "idle"
    DRAGGING = "dragging"
    DROPPED = "dropped"
    DROPPED_OUTSIDE = "dropped_outside"


class DragState(BaseModel):
    """当前拖放对象"""

    phase: DragPhase = DragPhase.IDLE
    task_id: str | None = None
    origin_day: date | None = None
    kind: DragKind = DragKind.TASK
    drop_handled: bool = False


class WeekBoard(ViewState):
    """周看板"""

    name = "week"

    def __init__(
        self,
        task_store: TaskStore,
        project_store: ProjectStore,
        sessions: SessionManager,
        hub: TaskEventHub | None = None,
        week_start: date | None = None,
        length: int = WORK_WEEK_LENGTH,
    ) -> None:
        super().__init__(task_store, project_store, sessions, hub)
        self.week_start: date = start_of_week(week_start or date.today())
        self.length = length
        self.tasks: list[Task] = []
        self.deadlines: list[Task] = []
        self.drag = DragState()

    # ---- 周范围 ----

    @property
    def days(self) -> list[date]:
        return week_days(self.week_start, self.length)

    @property
    def week_end(self) -> date:
        return add_days(self.week_start, self.length - 1)

    @property
    def label(self) -> str:
        start = format_display_date(format_iso_date(self.week_start), with_year=True)
        end = format_display_date(format_iso_date(self.week_end), with_year=True)
        return f"Dal {start} al {end}"

    @property
    def planned_query(self) -> TaskQuery:
        return week_planned_query(self.days)

    @property
    def deadlines_query(self) -> TaskQuery:
        return week_deadlines_query(self.week_start, self.week_end)

    async def load(self) -> None:
        self.loading = True
        self.dismiss_error()
        if not await self._ensure_session():
            self.loading = False
            return
        week_start = self.week_start
        planned, deadlines = await self._gather_week()
        if not self.active or week_start != self.week_start:
            log.debug("late_result_discarded", view=self.name)
            return
        if planned is not None:
            self.tasks = planned
        if deadlines is not None:
            self.deadlines = deadlines
        self.loading = False

    async def _gather_week(self) -> tuple[list[Task] | None, list[Task] | None]:
        # 两个查询独立：一个失败不影响另一个的结果
        planned: list[Task] | None = None
        deadlines: list[Task] | None = None
        try:
            planned = await self._task_store.list_tasks(self.planned_query)
        except DaybookError as e:
            self._fail(e)
        try:
            deadlines = await self._task_store.list_tasks(self.deadlines_query)
        except DaybookError as e:
            if self.error is None:
                self._fail(e)
        return planned, deadlines

    async def previous_week(self) -> None:
        self.week_start = add_days(self.week_start, -7)
        await self.load()

    async def next_week(self) -> None:
        self.week_start = add_days(self.week_start, 7)
        await self.load()

    async def this_week(self, today: date | None = None) -> None:
        self.week_start = start_of_week(today or date.today())
        await self.load()

    # ---- 查询 ----

    def tasks_for(self, day: date) -> list[Task]:
        return [
            t for t in self.tasks
            if t.status == TaskStatus.OPEN and t.work_days and day in t.work_days
        ]

    def deadlines_by_day(self) -> dict[date, list[Task]]:
        grouped: dict[date, list[Task]] = defaultdict(list)
        for task in self.deadlines:
            if task.due_date is not None:
                grouped[task.due_date].append(task)
        return dict(grouped)

    # ---- 拖放状态机 ----

    def start_drag(
        self,
        task_id: str,
        origin_day: date | None = None,
        kind: DragKind = DragKind.TASK,
    ) -> None:
        self.drag = DragState(
            phase=DragPhase.DRAGGING,
            task_id=task_id,
            origin_day=origin_day,
            kind=kind,
        )

    async def drop(self, target_day: date) -> Task | None:
        """放到某一天的列上"""
        drag = self.drag
        if drag.phase != DragPhase.DRAGGING or drag.task_id is None:
            log.debug("drop_ignored", phase=drag.phase)
            return None
        self.drag = drag.model_copy(update={"phase": DragPhase.DROPPED, "drop_handled": True})
        if drag.kind == DragKind.DEADLINE:
            return await self.move_deadline(drag.task_id, target_day)
        return await self.move_task(drag.task_id, drag.origin_day, target_day)

    async def end_drag(self) -> Task | None:
        """拖放结束；没有被 drop 处理时执行「拖出」规则"""
        drag = self.drag
        if drag.phase != DragPhase.DRAGGING or drag.drop_handled or drag.task_id is None:
            return None
        self.drag = drag.model_copy(update={"phase": DragPhase.DROPPED_OUTSIDE})
        if drag.kind == DragKind.DEADLINE:
            return await self.clear_deadline(drag.task_id)
        if drag.origin_day is None:
            return None
        return await self.remove_day(drag.task_id, drag.origin_day)

    # ---- 变更 ----

    def _find(self, task_id: str) -> Task | None:
        return next(
            (t for t in [*self.tasks, *self.deadlines] if t.id == task_id),
            None,
        )

    async def _resolve(self, task_id: str) -> Task | None:
        """看板上没有（例如从 Inbox 拖入）时回查存储"""
        task = self._find(task_id)
        if task is not None:
            return task
        try:
            task = await self._task_store.get_task(task_id)
        except DaybookError as e:
            self._fail(e)
            return None
        if task is None:
            self._fail(NotFoundError("task", task_id))
        return task

    def _apply_local(self, task: Task, values: dict[str, Any]) -> None:
        updated = scheduling.apply_patch(task, values)
        if any(t.id == task.id for t in self.tasks):
            self.tasks = [updated if t.id == task.id else t for t in self.tasks]
        elif "work_days" in values:
            self.tasks = [*self.tasks, updated]
        self.deadlines = [
            scheduling.apply_patch(t, values) if t.id == task.id else t
            for t in self.deadlines
        ]

    def _reconcile(self, updated: Task) -> None:
        self.tasks = self._merge(self.tasks, updated, self.planned_query)
        self.deadlines = self._merge(self.deadlines, updated, self.deadlines_query)

    @staticmethod
    def _merge(tasks: list[Task], updated: Task, query: TaskQuery) -> list[Task]:
        present = any(t.id == updated.id for t in tasks)
        if not query.matches(updated):
            return [t for t in tasks if t.id != updated.id]
        if present:
            return [updated if t.id == updated.id else t for t in tasks]
        return [*tasks, updated]

    async def _commit(self, task: Task, values: dict[str, Any]) -> Task | None:
        """乐观更新两个列表 -> 提交 -> 失败回滚"""
        before_tasks = snapshot(self.tasks)
        before_deadlines = snapshot(self.deadlines)
        self._apply_local(task, values)
        try:
            updated = await self._task_store.update_task(task.id, values)
            if updated is None:
                raise NotFoundError("task", task.id)
        except DaybookError as e:
            if self.active:
                self.tasks = before_tasks
                self.deadlines = before_deadlines
            self._fail(e)
            return None
        if self.active:
            self._reconcile(updated)
        await self._publish(ChangeKind.TASK_UPDATED, task_id=task.id)
        return updated

    async def move_task(
        self, task_id: str, origin_day: date | None, target_day: date
    ) -> Task | None:
        """任务移到 target_day（origin_day 为空时新增这一天）"""
        self.dismiss_error()
        task = await self._resolve(task_id)
        if task is None:
            return None
        if origin_day == target_day and task.status == TaskStatus.OPEN:
            return task
        values = scheduling.move_work_day(task, origin_day, target_day)
        log.info(
            "week_task_moved",
            task_id=task_id,
            origin_day=str(origin_day) if origin_day else None,
            target_day=str(target_day),
        )
        return await self._commit(task, values)

    async def remove_day(self, task_id: str, day: date) -> Task | None:
        """从任务中移除一天；移空后回到 INBOX"""
        self.dismiss_error()
        task = await self._resolve(task_id)
        if task is None or not task.work_days or day not in task.work_days:
            return task
        return await self._commit(task, scheduling.remove_work_day(task, day))

    async def move_deadline(self, task_id: str, target_day: date) -> Task | None:
        self.dismiss_error()
        task = await self._resolve(task_id)
        if task is None:
            return None
        if task.due_date == target_day:
            return task
        return await self._commit(task, scheduling.due_date_patch(target_day))

    async def clear_deadline(self, task_id: str) -> Task | None:
        """清除截止日期；失败时标签放回列表最前面

        截止日期落在周末等看板之外的任务回查存储后直接提交。
        """
        self.dismiss_error()
        values = scheduling.due_date_patch(None)
        current = next((t for t in self.deadlines if t.id == task_id), None)
        if current is None:
            task = await self._resolve(task_id)
            if task is None or task.due_date is None:
                return task
            return await self._commit(task, values)
        if current.due_date is None:
            return current
        before_tasks = snapshot(self.tasks)
        self.deadlines = [t for t in self.deadlines if t.id != task_id]
        self.tasks = [
            scheduling.apply_patch(t, values) if t.id == task_id else t for t in self.tasks
        ]
        try:
            updated = await self._task_store.update_task(task_id, values)
            if updated is None:
                raise NotFoundError("task", task_id)
        except DaybookError as e:
            if self.active:
                self.deadlines = [current, *self.deadlines]
                self.tasks = before_tasks
            self._fail(e)
            return None
        if self.active:
            self._reconcile(updated)
        await self._publish(ChangeKind.TASK_UPDATED, task_id=task_id)
        return updated
