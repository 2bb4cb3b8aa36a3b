"""TraceMiddleware -- 实体级日志上下文

/api/tasks/{task_id}/... 与 /api/projects/{project_id} 请求
绑定 task_id / project_id，贯穿该请求的所有日志。
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# 路径段 -> 绑定的上下文键
_ENTITY_SEGMENTS = {"tasks": "task_id", "projects": "project_id"}

# ULID 长度
_ID_LENGTH = 26


def extract_entity_ids(path: str) -> dict[str, str]:
    """从路径中提取实体 ID（只接受 ULID 长度的段，排除子路由）"""
    parts = path.strip("/").split("/")
    found: dict[str, str] = {}
    for i, part in enumerate(parts[:-1]):
        key = _ENTITY_SEGMENTS.get(part)
        if key and len(parts[i + 1]) == _ID_LENGTH:
            found[key] = parts[i + 1]
    return found


class TraceMiddleware(BaseHTTPMiddleware):
    """实体级追踪中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        entity_ids = extract_entity_ids(request.url.path)
        if entity_ids:
            structlog.contextvars.bind_contextvars(**entity_ids)

        return await call_next(request)
