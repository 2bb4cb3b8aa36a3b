"""ProjectService -- 项目列表、新建、重命名、删除"""

import structlog
from daybook.core.events import TaskEventHub
from daybook.core.models import Project, ProjectCreate
from daybook.core.views import ProjectListView

from ..backend import Backend

log = structlog.get_logger()


class ProjectService:
    """项目业务服务"""

    def __init__(self, backend: Backend, event_hub: TaskEventHub | None = None) -> None:
        self._backend = backend
        self._event_hub = event_hub

    def _view(self) -> ProjectListView:
        return ProjectListView(
            self._backend.task_store,
            self._backend.project_store,
            self._backend.sessions,
            hub=self._event_hub,
        )

    async def _run(self, operation):
        await self._backend.sessions.ensure_session()
        view = self._view()
        result = await operation(view)
        if view.failure is not None:
            raise view.failure
        return result

    async def list_projects(self) -> list[Project]:
        view = self._view()
        await view.load()
        if view.failure is not None:
            raise view.failure
        return view.projects

    async def create_project(self, payload: ProjectCreate) -> Project:
        project = await self._run(lambda view: view.create(payload))
        log.info("project_created", project_id=project.id)
        return project

    async def rename_project(self, project_id: str, name: str) -> Project:
        return await self._run(lambda view: view.rename(project_id, name))

    async def delete_project(self, project_id: str) -> None:
        await self._run(lambda view: view.delete(project_id))
