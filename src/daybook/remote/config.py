"""BackendConfig -- 数据存储/认证后端配置加载

从环境变量加载配置，选择本地 SQLite 或远程 REST 后端，
以及会话引导的产品模式（匿名自动登录 / 仅 magic link）。
"""

import os
from typing import Literal

import structlog
from pydantic import BaseModel, Field, SecretStr

log = structlog.get_logger()

_DEFAULT_TIMEOUT_S = 10.0


class BackendConfig(BaseModel):
    """后端配置 -- 从环境变量加载

    环境变量:
        DAYBOOK_BACKEND: sqlite / rest（默认 sqlite）
        DAYBOOK_REST_URL: 远程后端项目地址
        DAYBOOK_ANON_KEY: 远程后端公开访问密钥
        DAYBOOK_TIMEOUT_S: 远程请求超时（秒，默认 10）
        DAYBOOK_AUTH_MODE: anonymous / magic_link（默认 anonymous）
        DAYBOOK_MAGIC_LINK_REDIRECT: magic link 回跳地址
    """

    backend: Literal["sqlite", "rest"] = Field(
        default="sqlite",
        description="数据存储后端：sqlite / rest",
    )
    rest_url: str = Field(
        default="http://localhost:54321",
        description="远程后端项目 URL（/rest/v1 与 /auth/v1 的公共前缀）",
    )
    anon_key: SecretStr = Field(
        default=SecretStr(""),
        description="远程后端公开访问密钥（anon key）",
    )
    timeout_s: float = Field(
        default=_DEFAULT_TIMEOUT_S,
        gt=0,
        description="远程请求超时（秒）",
    )
    auth_mode: Literal["anonymous", "magic_link"] = Field(
        default="anonymous",
        description="会话引导模式：匿名自动登录 / 仅 magic link",
    )
    magic_link_redirect: str | None = Field(
        default=None,
        description="magic link 邮件中的回跳地址",
    )

    @property
    def allow_anonymous(self) -> bool:
        return self.auth_mode == "anonymous"


def load_backend_config() -> BackendConfig:
    """从环境变量加载后端配置

    Returns:
        BackendConfig 实例
    """
    kwargs: dict = {}

    if val := os.environ.get("DAYBOOK_BACKEND"):
        kwargs["backend"] = val

    if val := os.environ.get("DAYBOOK_REST_URL"):
        kwargs["rest_url"] = val.rstrip("/")

    if val := os.environ.get("DAYBOOK_ANON_KEY"):
        kwargs["anon_key"] = SecretStr(val)

    if val := os.environ.get("DAYBOOK_TIMEOUT_S"):
        try:
            timeout = float(val)
            if timeout <= 0:
                raise ValueError(val)
            kwargs["timeout_s"] = timeout
        except ValueError:
            log.warning(
                "invalid_timeout_config",
                env_var="DAYBOOK_TIMEOUT_S",
                value=val,
                fallback=_DEFAULT_TIMEOUT_S,
            )
            # 使用默认值，不阻塞启动

    if val := os.environ.get("DAYBOOK_AUTH_MODE"):
        kwargs["auth_mode"] = val

    if val := os.environ.get("DAYBOOK_MAGIC_LINK_REDIRECT"):
        kwargs["magic_link_redirect"] = val

    return BackendConfig(**kwargs)
