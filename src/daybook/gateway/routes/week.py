"""周看板路由

GET  /api/week?start=YYYY-MM-DD: 周一至周五看板（start 所在周，默认本周）
POST /api/week/move: 任务拖到某一天（净移动）
POST /api/week/remove-day: 任务从某一天的列拖出
POST /api/week/deadline: 截止日期标签拖到某一天，或拖出以清除
"""

from datetime import date

from daybook.core.dates import add_days, format_display_date, format_iso_date
from daybook.core.week import WeekBoard
from fastapi import APIRouter, Depends, Query

from ..deps import get_task_service
from ..schemas import (
    WeekColumn,
    WeekDeadlineRequest,
    WeekMoveRequest,
    WeekRemoveDayRequest,
    WeekResponse,
    present_tasks,
)
from ..services.task_service import TaskService

router = APIRouter()


def _board_response(board: WeekBoard) -> WeekResponse:
    deadlines = board.deadlines_by_day()
    columns = [
        WeekColumn(
            day=day,
            label=format_display_date(format_iso_date(day), with_weekday=True),
            tasks=present_tasks(board.tasks_for(day)),
            deadlines=present_tasks(deadlines.get(day, [])),
        )
        for day in board.days
    ]
    return WeekResponse(
        week_start=board.week_start,
        week_end=board.week_end,
        label=board.label,
        previous_week=add_days(board.week_start, -7),
        next_week=add_days(board.week_start, 7),
        columns=columns,
        drag_phase=board.drag.phase.value if board.drag.task_id else None,
    )


@router.get("/api/week", response_model=WeekResponse)
async def get_week(
    start: date | None = Query(default=None, description="该日期所在的周"),
    service: TaskService = Depends(get_task_service),
):
    board = await service.load_week(start)
    return _board_response(board)


@router.post("/api/week/move", response_model=WeekResponse)
async def move_task(
    payload: WeekMoveRequest,
    service: TaskService = Depends(get_task_service),
):
    board = await service.week_move(payload.task_id, payload.origin_day, payload.target_day)
    return _board_response(board)


@router.post("/api/week/remove-day", response_model=WeekResponse)
async def remove_day(
    payload: WeekRemoveDayRequest,
    service: TaskService = Depends(get_task_service),
):
    board = await service.week_remove_day(payload.task_id, payload.day)
    return _board_response(board)


@router.post("/api/week/deadline", response_model=WeekResponse)
async def move_deadline(
    payload: WeekDeadlineRequest,
    service: TaskService = Depends(get_task_service),
):
    board = await service.week_deadline(payload.task_id, payload.target_day)
    return _board_response(board)
