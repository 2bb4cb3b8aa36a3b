"""TaskEventHub -- 「任务已变更」的内存广播器

每个订阅者持有一个有界 asyncio.Queue：
- 每次广播最多投递一次，不重放历史
- 订阅者队列写满时直接移除该订阅者（发送方不阻塞）
"""

import asyncio

import structlog

from .config import HUB_QUEUE_SIZE
from .models.change import TaskChange

log = structlog.get_logger()


class TaskEventHub:
    """跨视图刷新通知 -- 基于 asyncio.Queue 的发布/订阅"""

    def __init__(self, queue_maxsize: int = HUB_QUEUE_SIZE) -> None:
        self._subscribers: set[asyncio.Queue[TaskChange]] = set()
        self._queue_maxsize = queue_maxsize

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def subscribe(self) -> asyncio.Queue[TaskChange]:
        """订阅变更通知

        Returns:
            asyncio.Queue 实例，订阅之后的变更会被推送到此队列
        """
        queue: asyncio.Queue[TaskChange] = asyncio.Queue(maxsize=self._queue_maxsize)
        self._subscribers.add(queue)
        return queue

    async def unsubscribe(self, queue: asyncio.Queue[TaskChange]) -> None:
        self._subscribers.discard(queue)

    async def broadcast(self, change: TaskChange) -> None:
        """向所有订阅者广播变更

        Args:
            change: 变更通知
        """
        dead_queues = []
        for queue in self._subscribers:
            try:
                queue.put_nowait(change)
            except asyncio.QueueFull:
                dead_queues.append(queue)

        # 清理已满的队列
        for q in dead_queues:
            self._subscribers.discard(q)
        if dead_queues:
            log.warning("task_change_subscribers_dropped", count=len(dead_queues))
