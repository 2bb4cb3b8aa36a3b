"""健康检查路由

GET /health: Liveness 检查，永远返回 200。
GET /ready: Readiness 检查，包含后端连通性、WAL 模式（本地后端）、磁盘空间。
"""

import shutil

import structlog
from daybook.core.store.sqlite_init import verify_wal_mode
from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

log = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health():
    """Liveness 检查 -- 永远返回 200"""
    return {"status": "ok"}


@router.get("/ready")
async def ready(request: Request):
    """Readiness 检查

    检查项：
    1. backend: 数据后端连通性（sqlite: SELECT 1；rest: 探测远程 API）
    2. wal_mode: 本地后端的 WAL 模式（内存库为 off，不影响就绪）
    3. disk_space_mb: 磁盘剩余空间
    """
    backend = request.app.state.backend
    checks: dict = {"backend_name": backend.name}
    all_ok = True

    # 1. 后端连通性
    try:
        if await backend.ping():
            checks["backend"] = "ok"
        else:
            checks["backend"] = "unreachable"
            all_ok = False
    except Exception as e:
        log.warning("readiness_ping_failed", backend=backend.name, error=str(e))
        checks["backend"] = f"error: {str(e)}"
        all_ok = False

    # 2. WAL 模式（仅本地文件库）
    store_group = backend.store_group
    if store_group is None:
        checks["wal_mode"] = "skipped"
    else:
        try:
            checks["wal_mode"] = "ok" if await verify_wal_mode(store_group.conn) else "off"
        except Exception as e:
            checks["wal_mode"] = f"error: {str(e)}"
            all_ok = False

    # 3. 磁盘空间
    try:
        disk_usage = shutil.disk_usage("/")
        checks["disk_space_mb"] = disk_usage.free // (1024 * 1024)
    except OSError:
        checks["disk_space_mb"] = 0
        all_ok = False

    status_code = 200 if all_ok else 503
    return JSONResponse(
        status_code=status_code,
        content={
            "status": "ready" if all_ok else "not_ready",
            "checks": checks,
        },
    )
