"""远程后端异常体系

数据 API 异常继承 StoreError（视图层回滚 + 展示错误），
认证异常继承 SessionError（页面级阻断）。
"""

from daybook.core.exceptions import SessionError, StoreError


class RemoteError(StoreError):
    """远程数据 API 基础异常"""


class RemoteUnreachableError(RemoteError):
    """后端不可达（连接失败、超时、DNS 解析失败等）"""

    def __init__(self, base_url: str, original_error: Exception) -> None:
        """
        Args:
            base_url: 尝试连接的后端地址
            original_error: 原始异常
        """
        super().__init__(
            f"Backend non raggiungibile: {base_url} -- {original_error}",
            recoverable=True,
        )
        self.base_url = base_url
        self.original_error = original_error


class RemoteRequestError(RemoteError):
    """后端返回非 2xx 响应"""

    def __init__(self, status_code: int, message: str, code: str | None = None) -> None:
        """
        Args:
            status_code: HTTP 状态码
            message: 后端返回的错误描述
            code: 后端错误码（如 PostgREST 的 PGRST116）
        """
        # 5xx 可重试，4xx 是请求本身的问题
        super().__init__(message, recoverable=status_code >= 500)
        self.status_code = status_code
        self.code = code


class RemoteAuthError(SessionError):
    """认证服务拒绝请求（令牌无效、链接过期、匿名登录未启用等）"""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
