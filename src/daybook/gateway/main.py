"""FastAPI 应用主文件

app 创建 + lifespan 管理：后端初始化/关闭 + 变更广播器 + 路由注册 + 异常映射。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from daybook.core.events import TaskEventHub
from daybook.core.exceptions import (
    NotFoundError,
    SessionError,
    StoreError,
    TaskValidationError,
)
from fastapi import FastAPI, Request
from starlette.responses import JSONResponse

from .backend import create_backend
from .middleware.logging_config import setup_logfire, setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .middleware.trace_mw import TraceMiddleware
from .routes import auth, health, projects, stream, tasks, views, week

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：启动时组装后端，关闭时释放连接"""
    app.state.backend = await create_backend()
    app.state.event_hub = TaskEventHub()

    yield

    if getattr(app.state, "backend", None) is not None:
        await app.state.backend.close()


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message}},
    )


async def _validation_error_handler(request: Request, exc: TaskValidationError) -> JSONResponse:
    return _error_response(422, "VALIDATION_FAILED", str(exc))


async def _not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return _error_response(404, f"{exc.entity.upper()}_NOT_FOUND", str(exc))


async def _session_error_handler(request: Request, exc: SessionError) -> JSONResponse:
    log.warning("session_unavailable", path=request.url.path, error=str(exc))
    return _error_response(401, "SESSION_UNAVAILABLE", str(exc))


async def _store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    log.error(
        "store_request_failed",
        path=request.url.path,
        error=str(exc),
        recoverable=exc.recoverable,
    )
    return _error_response(502, "STORE_ERROR", str(exc))


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="Daybook",
        version="0.1.0",
        description="Daybook 个人任务管理 API",
        lifespan=lifespan,
    )

    # 注册中间件（顺序：先 Trace 后 Logging）
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)

    # 初始化日志
    setup_logging()
    setup_logfire(app)

    # 异常映射（按异常类 MRO 匹配最近的处理器）
    app.add_exception_handler(TaskValidationError, _validation_error_handler)
    app.add_exception_handler(NotFoundError, _not_found_handler)
    app.add_exception_handler(SessionError, _session_error_handler)
    app.add_exception_handler(StoreError, _store_error_handler)

    # 注册路由
    app.include_router(views.router, tags=["views"])
    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(week.router, tags=["week"])
    app.include_router(projects.router, tags=["projects"])
    app.include_router(auth.router, tags=["auth"])
    app.include_router(stream.router, tags=["stream"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()
