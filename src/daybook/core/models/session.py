"""Session Domain Model -- 认证服务签发的会话"""

from datetime import UTC, datetime

from pydantic import BaseModel, Field


class Session(BaseModel):
    """用户会话

    匿名会话与 magic-link 会话共用同一结构，is_anonymous 区分。
    """

    access_token: str = Field(description="访问令牌")
    refresh_token: str | None = Field(default=None, description="刷新令牌")
    user_id: str = Field(description="用户 ID")
    email: str | None = Field(default=None, description="登录邮箱（匿名会话为空）")
    is_anonymous: bool = Field(default=False)
    expires_at: datetime | None = Field(default=None, description="过期时间（UTC）")

    def is_expired(self, now: datetime | None = None) -> bool:
        """会话是否已过期，无过期时间视为长期有效"""
        if self.expires_at is None:
            return False
        return (now or datetime.now(UTC)) >= self.expires_at
