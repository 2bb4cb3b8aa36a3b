"""SSE 变更流路由

GET /api/stream/changes: 「任务已变更」实时推送。
只推送订阅之后的变更，不重放历史；空闲时按固定间隔发送心跳。
"""

import asyncio
from collections.abc import AsyncIterator

from daybook.core.config import SSE_HEARTBEAT_INTERVAL
from daybook.core.events import TaskEventHub
from daybook.core.models import TaskChange
from fastapi import APIRouter, Depends
from sse_starlette.sse import EventSourceResponse

from ..deps import get_event_hub

router = APIRouter()


def _change_to_sse(change: TaskChange) -> dict:
    return {
        "id": change.change_id,
        "event": change.kind.value,
        "data": change.model_dump_json(),
    }


async def change_events(
    event_hub: TaskEventHub,
    queue: asyncio.Queue[TaskChange],
    heartbeat_interval: float = SSE_HEARTBEAT_INTERVAL,
) -> AsyncIterator[dict]:
    """把订阅队列转换为 SSE 消息；连接关闭时退订"""
    try:
        while True:
            try:
                change = await asyncio.wait_for(queue.get(), timeout=heartbeat_interval)
                yield _change_to_sse(change)
            except TimeoutError:
                # 心跳保活
                yield {"comment": "heartbeat"}
    finally:
        await event_hub.unsubscribe(queue)


@router.get("/api/stream/changes")
async def stream_changes(event_hub: TaskEventHub = Depends(get_event_hub)):
    """SSE 变更流端点"""
    queue = await event_hub.subscribe()
    return EventSourceResponse(change_events(event_hub, queue))
