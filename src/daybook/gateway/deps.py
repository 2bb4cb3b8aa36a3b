"""依赖注入模块 -- 通过 FastAPI Depends 注入后端与服务

Backend 与 TaskEventHub 通过 app.state 管理，在 lifespan 中初始化/清理。
"""

from daybook.core.events import TaskEventHub
from fastapi import Request

from .backend import Backend
from .services.project_service import ProjectService
from .services.task_service import TaskService


def get_backend(request: Request) -> Backend:
    """从 app.state 获取 Backend 实例"""
    return request.app.state.backend


def get_event_hub(request: Request) -> TaskEventHub:
    """从 app.state 获取 TaskEventHub 实例"""
    return request.app.state.event_hub


def get_task_service(request: Request) -> TaskService:
    return TaskService(get_backend(request), get_event_hub(request))


def get_project_service(request: Request) -> ProjectService:
    return ProjectService(get_backend(request), get_event_hub(request))
