"""GoTrueAuthProvider -- 远程认证服务（GoTrue 风格）客户端

- 匿名登录: POST /auth/v1/signup（空 body）
- magic link: POST /auth/v1/otp，随后 POST /auth/v1/verify
- 令牌过期时用 refresh_token 换新: POST /auth/v1/token?grant_type=refresh_token
- 注销: POST /auth/v1/logout
拿到会话后把 access_token 交给 RestClient，后续数据请求以用户身份发出。
"""

from datetime import UTC, datetime, timedelta
from typing import Any

import structlog

from daybook.core.models.session import Session

from .client import RestClient
from .exceptions import RemoteAuthError, RemoteRequestError

log = structlog.get_logger()

_AUTH_PREFIX = "/auth/v1"


def session_from_payload(data: dict[str, Any]) -> Session:
    """认证服务响应 -> Session"""
    user = data.get("user") or {}
    if expires_at := data.get("expires_at"):
        expiry = datetime.fromtimestamp(int(expires_at), tz=UTC)
    elif expires_in := data.get("expires_in"):
        expiry = datetime.now(UTC) + timedelta(seconds=int(expires_in))
    else:
        expiry = None
    return Session(
        access_token=data["access_token"],
        refresh_token=data.get("refresh_token"),
        user_id=user.get("id", ""),
        email=user.get("email") or None,
        is_anonymous=bool(user.get("is_anonymous", False)),
        expires_at=expiry,
    )


class GoTrueAuthProvider:
    """AuthProvider 的远程实现，会话保存在进程内存"""

    def __init__(self, client: RestClient, redirect_to: str | None = None) -> None:
        self._client = client
        self._redirect_to = redirect_to
        self._session: Session | None = None

    async def _post(
        self,
        path: str,
        json: dict[str, Any],
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        try:
            resp = await self._client.request(
                "POST", f"{_AUTH_PREFIX}{path}", params=params, json=json
            )
        except RemoteRequestError as e:
            if e.status_code >= 500:
                raise
            raise RemoteAuthError(str(e), status_code=e.status_code) from e
        return resp.json() if resp.content else {}

    def _activate(self, session: Session | None) -> Session | None:
        self._session = session
        self._client.set_access_token(session.access_token if session else None)
        return session

    async def get_session(self) -> Session | None:
        session = self._session
        if session is None:
            return None
        if not session.is_expired():
            return session
        if not session.refresh_token:
            log.info("session_expired", user_id=session.user_id)
            return self._activate(None)
        try:
            data = await self._post(
                "/token",
                {"refresh_token": session.refresh_token},
                params={"grant_type": "refresh_token"},
            )
        except RemoteAuthError as e:
            log.warning("session_refresh_rejected", user_id=session.user_id, error=str(e))
            return self._activate(None)
        log.info("session_refreshed", user_id=session.user_id)
        return self._activate(session_from_payload(data))

    async def sign_in_anonymously(self) -> Session:
        data = await self._post("/signup", {})
        session = session_from_payload(data)
        self._activate(session)
        return session

    async def sign_in_with_otp(self, email: str, redirect_to: str | None = None) -> None:
        target = redirect_to or self._redirect_to
        await self._post(
            "/otp",
            {"email": email, "create_user": True},
            params={"redirect_to": target} if target else None,
        )

    async def verify_otp(self, email: str, token: str) -> Session:
        data = await self._post("/verify", {"type": "email", "email": email, "token": token})
        session = session_from_payload(data)
        self._activate(session)
        return session

    async def sign_out(self) -> None:
        if self._session is None:
            return
        try:
            await self._post("/logout", {})
        finally:
            self._activate(None)
