"""列表视图路由

GET /api/views/{kind}: inbox / all / today / done / upcoming，支持筛选参数。
GET /api/summary: 导航计数。
GET /api/options: 优先级/类型/状态选项（筛选器与表单使用）。
"""

from daybook.core.labels import priority_options, status_options, type_options
from daybook.core.models import TaskPriority, TaskStatus, TaskType
from daybook.core.query import TaskFilters
from daybook.core.views import SummaryCounts, ViewKind
from fastapi import APIRouter, Depends, Query

from ..deps import get_task_service
from ..schemas import TaskListResponse, present_tasks
from ..services.task_service import TaskService

router = APIRouter()


@router.get("/api/views/{kind}", response_model=TaskListResponse)
async def get_view(
    kind: ViewKind,
    status: TaskStatus | None = Query(default=None, description="按状态筛选（all 视图）"),
    type: TaskType | None = Query(default=None, description="按类型筛选"),
    priority: TaskPriority | None = Query(default=None, description="按优先级筛选（all 视图）"),
    project_id: str | None = Query(default=None, description="按项目筛选"),
    service: TaskService = Depends(get_task_service),
):
    """查询列表视图，筛选交给存储端执行"""
    filters = TaskFilters(status=status, type=type, priority=priority, project_id=project_id)
    view = await service.load_view(kind, filters)
    return TaskListResponse(
        view=kind.value,
        tasks=present_tasks(view.tasks),
        projects=view.projects,
        sections={
            "work": [t.id for t in view.work_tasks],
            "personal": [t.id for t in view.personal_tasks],
        },
    )


@router.get("/api/summary", response_model=SummaryCounts)
async def get_summary(service: TaskService = Depends(get_task_service)):
    """导航计数：inbox / today / week / overdue / projects"""
    return await service.summary()


@router.get("/api/options")
async def get_options():
    return {
        "priority": priority_options(),
        "type": type_options(),
        "status": status_options(include_done=True),
        "filter_status": status_options(include_done=False),
    }
