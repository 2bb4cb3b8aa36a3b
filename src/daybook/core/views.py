"""视图状态 -- 列表视图、项目视图、导航计数

每个视图持有本地（可能过期的）任务副本，约定一致：
- load(): 先确保会话，再并发拉取任务与项目；close() 之后到达的结果直接丢弃
- 变更先乐观地作用于本地列表，再提交存储；失败时回滚到深拷贝快照并设置 error
- 成功后若任务不再满足当前视图的查询条件，就地移出列表（不重新拉取）
- 校验失败（空标题、空项目名、未选日期）只设置 error，不调用存储

视图层从不向上抛出存储异常：error 是面向用户的消息，failure 保留原始异常。
"""

import asyncio
from datetime import date
from enum import StrEnum
from typing import Any

import structlog
from pydantic import BaseModel, Field

from . import scheduling
from .events import TaskEventHub
from .exceptions import DaybookError, NotFoundError, SessionError, TaskValidationError
from .models.change import TaskChange
from .models.enums import ChangeKind, TaskStatus, TaskType
from .models.project import Project, ProjectCreate
from .models.task import Task, TaskCreate, TaskPatch
from .query import (
    TaskFilters,
    TaskQuery,
    all_tasks_query,
    done_query,
    inbox_query,
    summary_queries,
    today_query,
    upcoming_query,
)
from .session import SessionManager
from .store.protocols import ProjectStore, TaskStore

log = structlog.get_logger()


class ViewKind(StrEnum):
    """列表视图类型"""

    INBOX = "inbox"
    ALL = "all"
    TODAY = "today"
    DONE = "done"
    UPCOMING = "upcoming"


def snapshot(tasks: list[Task]) -> list[Task]:
    """任务列表的深拷贝，用于回滚"""
    return [task.model_copy(deep=True) for task in tasks]


class ViewState:
    """视图公共状态：会话引导、错误、active 标志、变更发布"""

    name = "view"

    def __init__(
        self,
        task_store: TaskStore,
        project_store: ProjectStore,
        sessions: SessionManager,
        hub: TaskEventHub | None = None,
    ) -> None:
        self._task_store = task_store
        self._project_store = project_store
        self._sessions = sessions
        self._hub = hub
        self.error: str | None = None
        self.failure: DaybookError | None = None
        self.loading = False
        self.active = True

    def close(self) -> None:
        """视图卸载：之后到达的结果不再写入状态"""
        self.active = False

    def dismiss_error(self) -> None:
        self.error = None
        self.failure = None

    def _fail(self, exc: DaybookError) -> None:
        if not self.active:
            return
        self.error = str(exc)
        self.failure = exc
        log.warning(
            "view_error",
            view=self.name,
            error_type=type(exc).__name__,
            error=str(exc),
        )

    async def _ensure_session(self) -> bool:
        try:
            await self._sessions.ensure_session()
        except SessionError as e:
            self._fail(e)
            return False
        return True

    async def _publish(
        self,
        kind: ChangeKind,
        task_id: str | None = None,
        project_id: str | None = None,
    ) -> None:
        if self._hub is not None:
            await self._hub.broadcast(
                TaskChange(kind=kind, task_id=task_id, project_id=project_id)
            )


class TaskListView(ViewState):
    """Inbox / 全部 / 今天 / 已完成 / 即将到期 列表视图"""

    def __init__(
        self,
        kind: ViewKind,
        task_store: TaskStore,
        project_store: ProjectStore,
        sessions: SessionManager,
        hub: TaskEventHub | None = None,
        filters: TaskFilters | None = None,
        today: date | None = None,
    ) -> None:
        super().__init__(task_store, project_store, sessions, hub)
        self.kind = kind
        self.name = kind.value
        self.filters = filters or TaskFilters()
        self._today = today
        self.tasks: list[Task] = []
        self.projects: list[Project] = []

    @property
    def today(self) -> date:
        return self._today or date.today()

    @property
    def query(self) -> TaskQuery:
        match self.kind:
            case ViewKind.INBOX:
                return inbox_query()
            case ViewKind.ALL:
                return all_tasks_query(self.filters)
            case ViewKind.TODAY:
                return today_query(self.today)
            case ViewKind.DONE:
                return done_query(self.filters)
            case ViewKind.UPCOMING:
                return upcoming_query()
        raise ValueError(f"Unknown view kind: {self.kind}")

    @property
    def work_tasks(self) -> list[Task]:
        return [t for t in self.tasks if t.type == TaskType.WORK]

    @property
    def personal_tasks(self) -> list[Task]:
        return [t for t in self.tasks if t.type == TaskType.PERSONAL]

    def find(self, task_id: str) -> Task | None:
        return next((t for t in self.tasks if t.id == task_id), None)

    async def load(self) -> None:
        """确保会话后并发拉取任务与项目"""
        self.loading = True
        self.dismiss_error()
        if not await self._ensure_session():
            self.loading = False
            return
        try:
            tasks, projects = await asyncio.gather(
                self._task_store.list_tasks(self.query),
                self._project_store.list_projects(),
            )
        except DaybookError as e:
            self._fail(e)
            self.loading = False
            return
        if not self.active:
            log.debug("late_result_discarded", view=self.name)
            return
        self.tasks = tasks
        self.projects = projects
        self.loading = False

    async def set_filters(self, filters: TaskFilters) -> None:
        self.filters = filters
        await self.load()

    async def _mutate(self, task_id: str, values: dict[str, Any]) -> Task | None:
        """乐观更新 -> 提交 -> 失败回滚 / 成功按查询条件对齐"""
        index = next((i for i, t in enumerate(self.tasks) if t.id == task_id), None)
        before = snapshot(self.tasks)
        if index is not None:
            self.tasks[index] = scheduling.apply_patch(self.tasks[index], values)

        try:
            updated = await self._task_store.update_task(task_id, values)
        except DaybookError as e:
            if self.active:
                self.tasks = before
            self._fail(e)
            return None
        if updated is None:
            if self.active:
                self.tasks = before
            self._fail(NotFoundError("task", task_id))
            return None

        if self.active:
            self._reconcile(updated)
        await self._publish(ChangeKind.TASK_UPDATED, task_id=task_id)
        return updated

    def _reconcile(self, updated: Task) -> None:
        if self.query.matches(updated):
            self.tasks = [updated if t.id == updated.id else t for t in self.tasks]
        else:
            self.tasks = [t for t in self.tasks if t.id != updated.id]

    async def _mutate_with(self, task_id: str, build) -> Task | None:
        """先基于当前副本计算补丁（可能校验失败），再提交"""
        task = self.find(task_id)
        if task is None:
            task = await self._fetch(task_id)
            if task is None:
                return None
        try:
            values = build(task)
        except TaskValidationError as e:
            self._fail(e)
            return None
        return await self._mutate(task_id, values)

    async def _fetch(self, task_id: str) -> Task | None:
        try:
            task = await self._task_store.get_task(task_id)
        except DaybookError as e:
            self._fail(e)
            return None
        if task is None:
            self._fail(NotFoundError("task", task_id))
        return task

    async def update_fields(self, task_id: str, patch: TaskPatch) -> Task | None:
        return await self._mutate_with(task_id, lambda t: scheduling.patch_values(t, patch))

    async def change_work_days(self, task_id: str, days: list[date] | None) -> Task | None:
        return await self._mutate_with(task_id, lambda t: scheduling.work_days_patch(t, days))

    async def change_due_date(self, task_id: str, due_date: date | None) -> Task | None:
        return await self._mutate(task_id, scheduling.due_date_patch(due_date))

    async def change_status(self, task_id: str, status: TaskStatus) -> Task | None:
        return await self._mutate_with(task_id, lambda t: scheduling.status_patch(t, status))

    async def schedule(self, task_id: str, days: list[date] | None) -> Task | None:
        """Inbox 排期：至少选择一天"""
        return await self._mutate_with(task_id, lambda t: scheduling.schedule_patch(days))

    async def send_to_today(self, task_id: str) -> Task | None:
        return await self._mutate_with(
            task_id, lambda t: scheduling.send_to_today(t, self.today)
        )

    async def send_to_inbox(self, task_id: str) -> Task | None:
        return await self._mutate_with(task_id, scheduling.send_to_inbox)

    async def snooze(self, task_id: str) -> Task | None:
        return await self._mutate_with(task_id, scheduling.snooze_patch)

    async def complete(self, task_id: str) -> Task | None:
        """完成：状态置为 DONE 并保留记录"""
        return await self._mutate(task_id, scheduling.complete_patch())

    async def delete(self, task_id: str) -> bool:
        before = snapshot(self.tasks)
        self.tasks = [t for t in self.tasks if t.id != task_id]
        try:
            deleted = await self._task_store.delete_task(task_id)
        except DaybookError as e:
            if self.active:
                self.tasks = before
            self._fail(e)
            return False
        if not deleted:
            if self.active:
                self.tasks = before
            self._fail(NotFoundError("task", task_id))
            return False
        await self._publish(ChangeKind.TASK_DELETED, task_id=task_id)
        return True

    async def create(self, payload: TaskCreate) -> Task | None:
        """新建任务；满足当前视图条件时追加到列表"""
        try:
            values = scheduling.build_create_values(payload)
        except TaskValidationError as e:
            self._fail(e)
            return None
        try:
            task = await self._task_store.create_task(values)
        except DaybookError as e:
            self._fail(e)
            return None
        if self.active and self.query.matches(task):
            self.tasks = [*self.tasks, task]
        await self._publish(ChangeKind.TASK_CREATED, task_id=task.id)
        return task

    async def create_project(self, payload: ProjectCreate) -> Project | None:
        """录入任务时就地新建项目"""
        try:
            values = scheduling.build_project_values(payload)
        except TaskValidationError as e:
            self._fail(e)
            return None
        try:
            project = await self._project_store.create_project(values)
        except DaybookError as e:
            self._fail(e)
            return None
        if self.active:
            self.projects = sorted([*self.projects, project], key=lambda p: p.name.lower())
        await self._publish(ChangeKind.PROJECTS_CHANGED, project_id=project.id)
        return project


class ProjectListView(ViewState):
    """项目管理视图：列表、重命名、删除"""

    name = "projects"

    def __init__(
        self,
        task_store: TaskStore,
        project_store: ProjectStore,
        sessions: SessionManager,
        hub: TaskEventHub | None = None,
    ) -> None:
        super().__init__(task_store, project_store, sessions, hub)
        self.projects: list[Project] = []

    async def load(self) -> None:
        self.loading = True
        self.dismiss_error()
        if not await self._ensure_session():
            self.loading = False
            return
        try:
            projects = await self._project_store.list_projects()
        except DaybookError as e:
            self._fail(e)
            self.loading = False
            return
        if not self.active:
            return
        self.projects = projects
        self.loading = False

    async def create(self, payload: ProjectCreate) -> Project | None:
        try:
            values = scheduling.build_project_values(payload)
        except TaskValidationError as e:
            self._fail(e)
            return None
        try:
            project = await self._project_store.create_project(values)
        except DaybookError as e:
            self._fail(e)
            return None
        if self.active:
            self.projects = sorted([*self.projects, project], key=lambda p: p.name.lower())
        await self._publish(ChangeKind.PROJECTS_CHANGED, project_id=project.id)
        return project

    async def rename(self, project_id: str, name: str) -> Project | None:
        try:
            name = scheduling.clean_project_name(name)
        except TaskValidationError as e:
            self._fail(e)
            return None
        before = [p.model_copy() for p in self.projects]
        self.projects = [
            p.model_copy(update={"name": name}) if p.id == project_id else p
            for p in self.projects
        ]
        try:
            renamed = await self._project_store.rename_project(project_id, name)
        except DaybookError as e:
            if self.active:
                self.projects = before
            self._fail(e)
            return None
        if renamed is None:
            if self.active:
                self.projects = before
            self._fail(NotFoundError("project", project_id))
            return None
        await self._publish(ChangeKind.PROJECTS_CHANGED, project_id=project_id)
        return renamed

    async def delete(self, project_id: str) -> bool:
        """删除项目，引用它的任务解除关联"""
        before = [p.model_copy() for p in self.projects]
        self.projects = [p for p in self.projects if p.id != project_id]
        try:
            deleted = await self._project_store.delete_project(project_id)
        except DaybookError as e:
            if self.active:
                self.projects = before
            self._fail(e)
            return False
        if not deleted:
            if self.active:
                self.projects = before
            self._fail(NotFoundError("project", project_id))
            return False
        await self._publish(ChangeKind.PROJECTS_CHANGED, project_id=project_id)
        return True


class SummaryCounts(BaseModel):
    """导航栏计数"""

    inbox: int = Field(default=0)
    today: int = Field(default=0)
    week: int = Field(default=0)
    overdue: int = Field(default=0, description="未完成且截止日期早于今天")
    projects: int = Field(default=0)


class SummaryView(ViewState):
    """导航计数，订阅变更后自动刷新"""

    name = "summary"

    def __init__(
        self,
        task_store: TaskStore,
        project_store: ProjectStore,
        sessions: SessionManager,
        today: date | None = None,
    ) -> None:
        super().__init__(task_store, project_store, sessions)
        self._today = today
        self.counts = SummaryCounts()

    async def refresh(self) -> SummaryCounts:
        self.dismiss_error()
        if not await self._ensure_session():
            return self.counts
        queries = summary_queries(self._today or date.today())
        names = list(queries)
        try:
            results = await asyncio.gather(
                *(self._task_store.count_tasks(queries[name]) for name in names),
                self._project_store.count_projects(),
            )
        except DaybookError as e:
            self._fail(e)
            return self.counts
        if self.active:
            self.counts = SummaryCounts(**dict(zip(names, results)), projects=results[-1])
        return self.counts

    async def watch(self, hub: TaskEventHub) -> None:
        """每次收到变更就刷新，直到被取消

        同一批积压的变更合并为一次刷新。
        """
        queue = await hub.subscribe()
        try:
            while self.active:
                await queue.get()
                while not queue.empty():
                    queue.get_nowait()
                await self.refresh()
        finally:
            await hub.unsubscribe(queue)
