"""任务路由

POST   /api/tasks: 新建任务（无工作日 -> INBOX，有工作日 -> OPEN）
GET    /api/tasks/{task_id}: 任务详情
PATCH  /api/tasks/{task_id}: 部分更新（详情页保存）
DELETE /api/tasks/{task_id}: 删除任务
POST   /api/tasks/{task_id}/complete|schedule|today|inbox|snooze: 快捷操作
"""

from daybook.core.models import TaskCreate, TaskPatch
from fastapi import APIRouter, Depends
from starlette.responses import JSONResponse, Response

from ..deps import get_task_service
from ..schemas import ScheduleRequest, TaskOut
from ..services.task_service import TaskService

router = APIRouter()


@router.post("/api/tasks", response_model=TaskOut, status_code=201)
async def create_task(
    payload: TaskCreate,
    service: TaskService = Depends(get_task_service),
):
    task = await service.create_task(payload)
    return TaskOut.from_task(task)


@router.get("/api/tasks/{task_id}", response_model=TaskOut)
async def get_task(
    task_id: str,
    service: TaskService = Depends(get_task_service),
):
    task = await service.get_task(task_id)
    if task is None:
        return JSONResponse(
            status_code=404,
            content={
                "error": {
                    "code": "TASK_NOT_FOUND",
                    "message": f"Task with id {task_id} does not exist",
                }
            },
        )
    return TaskOut.from_task(task)


@router.patch("/api/tasks/{task_id}", response_model=TaskOut)
async def update_task(
    task_id: str,
    patch: TaskPatch,
    service: TaskService = Depends(get_task_service),
):
    """只更新请求体中显式出现的字段，显式 null 表示清空"""
    task = await service.update_task(task_id, patch)
    return TaskOut.from_task(task)


@router.delete("/api/tasks/{task_id}", status_code=204)
async def delete_task(
    task_id: str,
    service: TaskService = Depends(get_task_service),
):
    await service.delete_task(task_id)
    return Response(status_code=204)


@router.post("/api/tasks/{task_id}/complete", response_model=TaskOut)
async def complete_task(
    task_id: str,
    service: TaskService = Depends(get_task_service),
):
    """完成任务：状态置为 DONE，记录保留在「已完成」视图"""
    return TaskOut.from_task(await service.complete_task(task_id))


@router.post("/api/tasks/{task_id}/schedule", response_model=TaskOut)
async def schedule_task(
    task_id: str,
    payload: ScheduleRequest,
    service: TaskService = Depends(get_task_service),
):
    """Inbox 排期，至少选择一天"""
    return TaskOut.from_task(await service.schedule_task(task_id, payload.work_days))


@router.post("/api/tasks/{task_id}/today", response_model=TaskOut)
async def send_to_today(
    task_id: str,
    service: TaskService = Depends(get_task_service),
):
    return TaskOut.from_task(await service.send_to_today(task_id))


@router.post("/api/tasks/{task_id}/inbox", response_model=TaskOut)
async def send_to_inbox(
    task_id: str,
    service: TaskService = Depends(get_task_service),
):
    return TaskOut.from_task(await service.send_to_inbox(task_id))


@router.post("/api/tasks/{task_id}/snooze", response_model=TaskOut)
async def snooze_task(
    task_id: str,
    service: TaskService = Depends(get_task_service),
):
    """所有工作日顺延一天"""
    return TaskOut.from_task(await service.snooze_task(task_id))
