"""TaskService -- 任务视图、变更与周看板的业务入口

路由层的薄封装：每次请求构建一个视图状态对象执行操作，
视图记录的 failure 原样抛出，由 main.py 的异常处理器映射为 HTTP 错误。
所有变更通过视图发布到 TaskEventHub。
"""

from datetime import date

import structlog
from daybook.core.events import TaskEventHub
from daybook.core.exceptions import NotFoundError
from daybook.core.models import Task, TaskCreate, TaskPatch, TaskStatus
from daybook.core.query import TaskFilters
from daybook.core.views import SummaryCounts, SummaryView, TaskListView, ViewKind, ViewState
from daybook.core.week import DragKind, WeekBoard

from ..backend import Backend

log = structlog.get_logger()


def _raise_failure(view: ViewState) -> None:
    if view.failure is not None:
        raise view.failure


class TaskService:
    """任务业务服务"""

    def __init__(
        self,
        backend: Backend,
        event_hub: TaskEventHub | None = None,
        today: date | None = None,
    ) -> None:
        self._backend = backend
        self._event_hub = event_hub
        self._today = today

    def _view(
        self, kind: ViewKind = ViewKind.ALL, filters: TaskFilters | None = None
    ) -> TaskListView:
        return TaskListView(
            kind,
            self._backend.task_store,
            self._backend.project_store,
            self._backend.sessions,
            hub=self._event_hub,
            filters=filters,
            today=self._today,
        )

    def _board(self, week_start: date | None) -> WeekBoard:
        return WeekBoard(
            self._backend.task_store,
            self._backend.project_store,
            self._backend.sessions,
            hub=self._event_hub,
            week_start=week_start or self._today,
        )

    # ---- 查询 ----

    async def load_view(
        self, kind: ViewKind, filters: TaskFilters | None = None
    ) -> TaskListView:
        view = self._view(kind, filters)
        await view.load()
        _raise_failure(view)
        return view

    async def summary(self) -> SummaryCounts:
        view = SummaryView(
            self._backend.task_store,
            self._backend.project_store,
            self._backend.sessions,
            today=self._today,
        )
        counts = await view.refresh()
        _raise_failure(view)
        return counts

    async def get_task(self, task_id: str) -> Task | None:
        await self._backend.sessions.ensure_session()
        return await self._backend.task_store.get_task(task_id)

    # ---- 变更 ----

    async def create_task(self, payload: TaskCreate) -> Task:
        await self._backend.sessions.ensure_session()
        view = self._view()
        task = await view.create(payload)
        _raise_failure(view)
        log.info("task_created", task_id=task.id, status=task.status)
        return task

    async def update_task(self, task_id: str, patch: TaskPatch) -> Task:
        return await self._mutate(task_id, lambda view: view.update_fields(task_id, patch))

    async def change_status(self, task_id: str, status: TaskStatus) -> Task:
        return await self._mutate(task_id, lambda view: view.change_status(task_id, status))

    async def complete_task(self, task_id: str) -> Task:
        return await self._mutate(task_id, lambda view: view.complete(task_id))

    async def schedule_task(self, task_id: str, days: list[date] | None) -> Task:
        return await self._mutate(task_id, lambda view: view.schedule(task_id, days))

    async def send_to_today(self, task_id: str) -> Task:
        return await self._mutate(task_id, lambda view: view.send_to_today(task_id))

    async def send_to_inbox(self, task_id: str) -> Task:
        return await self._mutate(task_id, lambda view: view.send_to_inbox(task_id))

    async def snooze_task(self, task_id: str) -> Task:
        return await self._mutate(task_id, lambda view: view.snooze(task_id))

    async def delete_task(self, task_id: str) -> None:
        await self._backend.sessions.ensure_session()
        view = self._view()
        await view.delete(task_id)
        _raise_failure(view)
        log.info("task_deleted", task_id=task_id)

    async def _mutate(self, task_id: str, operation) -> Task:
        await self._backend.sessions.ensure_session()
        view = self._view()
        task = await operation(view)
        _raise_failure(view)
        log.info("task_updated", task_id=task_id, status=task.status)
        return task

    # ---- 周看板 ----

    async def load_week(self, week_start: date | None = None) -> WeekBoard:
        board = self._board(week_start)
        await board.load()
        _raise_failure(board)
        return board

    async def week_move(
        self, task_id: str, origin_day: date | None, target_day: date
    ) -> WeekBoard:
        """把任务从 origin_day 拖到 target_day"""
        board = await self.load_week(target_day)
        board.start_drag(task_id, origin_day=origin_day)
        await board.drop(target_day)
        await board.end_drag()
        _raise_failure(board)
        return board

    async def week_remove_day(self, task_id: str, day: date) -> WeekBoard:
        """把任务从 day 这一列拖出看板"""
        board = await self.load_week(day)
        board.start_drag(task_id, origin_day=day)
        await board.end_drag()
        _raise_failure(board)
        return board

    async def week_deadline(self, task_id: str, target_day: date | None) -> WeekBoard:
        """拖动截止日期标签；target_day 为空表示拖出看板（清除截止日期）"""
        task = await self.get_task(task_id)
        if task is None:
            raise NotFoundError("task", task_id)
        board = await self.load_week(target_day or task.due_date)
        board.start_drag(task_id, kind=DragKind.DEADLINE)
        if target_day is not None:
            await board.drop(target_day)
        await board.end_drag()
        _raise_failure(board)
        return board
