"""会话管理 -- 认证协作方接口 + 单飞（single-flight）会话引导

SessionManager 是显式注入的对象（而非模块级缓存）：
- ensure_session(): 并发调用合并为同一个进行中的请求，完成或失败后立即清除，
  下一次调用会重新检查会话是否仍然有效
- allow_anonymous: 产品模式，二选一
  - True: 没有会话时自动匿名登录
  - False: 只允许 magic-link 登录，没有会话时直接失败
"""

import asyncio
import secrets
from datetime import UTC, datetime, timedelta
from typing import Protocol

import structlog
from ulid import ULID

from .exceptions import SessionError, StoreError, TaskValidationError
from .models.session import Session

log = structlog.get_logger()


class AuthProvider(Protocol):
    """认证协作方接口"""

    async def get_session(self) -> Session | None:
        """返回当前有效会话（必要时刷新），没有则返回 None"""
        ...

    async def sign_in_anonymously(self) -> Session:
        """创建匿名会话"""
        ...

    async def sign_in_with_otp(self, email: str, redirect_to: str | None = None) -> None:
        """发送 magic link"""
        ...

    async def verify_otp(self, email: str, token: str) -> Session:
        """校验 magic link 令牌并建立会话"""
        ...

    async def sign_out(self) -> None:
        """注销当前会话"""
        ...


class SessionManager:
    """会话引导器"""

    def __init__(self, provider: AuthProvider, allow_anonymous: bool = True) -> None:
        self._provider = provider
        self._allow_anonymous = allow_anonymous
        self._inflight: asyncio.Future[Session] | None = None

    @property
    def allow_anonymous(self) -> bool:
        return self._allow_anonymous

    async def ensure_session(self) -> Session:
        """获取当前会话，必要时按产品模式创建

        Raises:
            SessionError: 无法获取或创建会话
        """
        if self._inflight is None:
            inflight = asyncio.ensure_future(self._resolve_session())
            inflight.add_done_callback(self._clear_inflight)
            self._inflight = inflight
        # shield: 单个调用方被取消不影响其他等待者
        return await asyncio.shield(self._inflight)

    def _clear_inflight(self, future: asyncio.Future[Session]) -> None:
        if self._inflight is future:
            self._inflight = None

    async def _resolve_session(self) -> Session:
        try:
            session = await self._provider.get_session()
            if session is not None:
                return session
            if not self._allow_anonymous:
                raise SessionError("Accesso richiesto: usa il link magico")
            session = await self._provider.sign_in_anonymously()
        except StoreError as e:
            log.warning("session_unavailable", error=str(e))
            raise SessionError(f"Sessione non disponibile: {e}") from e
        log.info("anonymous_session_created", user_id=session.user_id)
        return session

    async def current_session(self) -> Session | None:
        """只读查询当前会话，不自动创建"""
        try:
            return await self._provider.get_session()
        except StoreError as e:
            raise SessionError(f"Sessione non disponibile: {e}") from e

    async def sign_in_with_otp(self, email: str, redirect_to: str | None = None) -> None:
        email = (email or "").strip()
        if not email:
            raise TaskValidationError("Inserisci un indirizzo email", field="email")
        await self._provider.sign_in_with_otp(email, redirect_to=redirect_to)
        log.info("magic_link_requested", email=email)

    async def verify_otp(self, email: str, token: str) -> Session:
        session = await self._provider.verify_otp(email.strip(), token.strip())
        log.info("magic_link_verified", user_id=session.user_id)
        return session

    async def sign_out(self) -> None:
        await self._provider.sign_out()
        log.info("session_signed_out")


class LocalAuthProvider:
    """本地后端的认证实现 -- 会话保存在进程内存

    magic link 不发送邮件，令牌写入日志。
    """

    def __init__(self, session_ttl: timedelta | None = None) -> None:
        self._session: Session | None = None
        self._pending: dict[str, str] = {}
        self._session_ttl = session_ttl

    def _new_session(self, email: str | None) -> Session:
        expires_at = (
            datetime.now(UTC) + self._session_ttl if self._session_ttl is not None else None
        )
        return Session(
            access_token=secrets.token_urlsafe(24),
            refresh_token=secrets.token_urlsafe(24),
            user_id=str(ULID()),
            email=email,
            is_anonymous=email is None,
            expires_at=expires_at,
        )

    async def get_session(self) -> Session | None:
        if self._session is not None and self._session.is_expired():
            log.info("local_session_expired", user_id=self._session.user_id)
            self._session = None
        return self._session

    async def sign_in_anonymously(self) -> Session:
        self._session = self._new_session(email=None)
        return self._session

    async def sign_in_with_otp(self, email: str, redirect_to: str | None = None) -> None:
        token = f"{secrets.randbelow(1_000_000):06d}"
        self._pending[email] = token
        log.info("magic_link_issued", email=email, token=token, redirect_to=redirect_to)

    async def verify_otp(self, email: str, token: str) -> Session:
        expected = self._pending.get(email)
        if expected is None or not secrets.compare_digest(expected, token):
            raise SessionError("Link magico non valido o scaduto")
        del self._pending[email]
        self._session = self._new_session(email=email)
        return self._session

    async def sign_out(self) -> None:
        self._session = None
