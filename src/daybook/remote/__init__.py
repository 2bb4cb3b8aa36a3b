"""Daybook Remote -- 托管后端（数据 API + 认证服务）客户端

daybook.remote 的公开接口导出。
"""

from .auth import GoTrueAuthProvider, session_from_payload
from .client import RestClient, parse_content_range, query_params

# 配置
from .config import BackendConfig, load_backend_config

# 异常
from .exceptions import (
    RemoteAuthError,
    RemoteError,
    RemoteRequestError,
    RemoteUnreachableError,
)
from .rest_store import RestProjectStore, RestTaskStore

__all__ = [
    "RestClient",
    "query_params",
    "parse_content_range",
    "RestTaskStore",
    "RestProjectStore",
    "GoTrueAuthProvider",
    "session_from_payload",
    "BackendConfig",
    "load_backend_config",
    "RemoteError",
    "RemoteUnreachableError",
    "RemoteRequestError",
    "RemoteAuthError",
]
