"""项目路由

GET    /api/projects: 项目列表（按名称排序）
POST   /api/projects: 新建项目
PATCH  /api/projects/{project_id}: 重命名
DELETE /api/projects/{project_id}: 删除（引用它的任务解除关联）
"""

from daybook.core.models import Project, ProjectCreate, ProjectRename
from fastapi import APIRouter, Depends
from starlette.responses import Response

from ..deps import get_project_service
from ..schemas import ProjectListResponse
from ..services.project_service import ProjectService

router = APIRouter()


@router.get("/api/projects", response_model=ProjectListResponse)
async def list_projects(service: ProjectService = Depends(get_project_service)):
    return ProjectListResponse(projects=await service.list_projects())


@router.post("/api/projects", response_model=Project, status_code=201)
async def create_project(
    payload: ProjectCreate,
    service: ProjectService = Depends(get_project_service),
):
    return await service.create_project(payload)


@router.patch("/api/projects/{project_id}", response_model=Project)
async def rename_project(
    project_id: str,
    payload: ProjectRename,
    service: ProjectService = Depends(get_project_service),
):
    return await service.rename_project(project_id, payload.name)


@router.delete("/api/projects/{project_id}", status_code=204)
async def delete_project(
    project_id: str,
    service: ProjectService = Depends(get_project_service),
):
    await service.delete_project(project_id)
    return Response(status_code=204)
