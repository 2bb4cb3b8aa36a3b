"""会话引导测试 -- 单飞合并、失败后清除、产品模式、本地 magic link"""

import asyncio
from datetime import timedelta

import pytest
from daybook.core.exceptions import SessionError, StoreError, TaskValidationError
from daybook.core.models import Session
from daybook.core.session import LocalAuthProvider, SessionManager


class CountingProvider:
    """记录调用次数的认证实现，可设置首次调用失败"""

    def __init__(self, fail_times: int = 0) -> None:
        self.get_calls = 0
        self.anonymous_calls = 0
        self.fail_times = fail_times
        self.session: Session | None = None

    async def get_session(self) -> Session | None:
        self.get_calls += 1
        await asyncio.sleep(0.01)
        return self.session

    async def sign_in_anonymously(self) -> Session:
        self.anonymous_calls += 1
        if self.fail_times > 0:
            self.fail_times -= 1
            raise StoreError("auth non raggiungibile")
        self.session = Session(access_token="tok", user_id="u1", is_anonymous=True)
        return self.session

    async def sign_in_with_otp(self, email: str, redirect_to: str | None = None) -> None:
        return None

    async def verify_otp(self, email: str, token: str) -> Session:
        raise SessionError("non supportato")

    async def sign_out(self) -> None:
        self.session = None


class TestSingleFlight:
    async def test_concurrent_calls_share_one_request(self):
        provider = CountingProvider()
        manager = SessionManager(provider)

        results = await asyncio.gather(*(manager.ensure_session() for _ in range(5)))

        assert provider.get_calls == 1
        assert provider.anonymous_calls == 1
        assert all(s.user_id == "u1" for s in results)

    async def test_inflight_cleared_after_completion(self):
        provider = CountingProvider()
        manager = SessionManager(provider)

        await manager.ensure_session()
        await manager.ensure_session()

        # 每次调用都重新检查会话，但只在首次匿名登录
        assert provider.get_calls == 2
        assert provider.anonymous_calls == 1

    async def test_failure_does_not_poison_later_calls(self):
        provider = CountingProvider(fail_times=1)
        manager = SessionManager(provider)

        with pytest.raises(SessionError):
            await manager.ensure_session()
        session = await manager.ensure_session()

        assert session.user_id == "u1"
        assert provider.anonymous_calls == 2

    async def test_cancelled_waiter_does_not_cancel_others(self):
        provider = CountingProvider()
        manager = SessionManager(provider)

        first = asyncio.create_task(manager.ensure_session())
        second = asyncio.create_task(manager.ensure_session())
        await asyncio.sleep(0)
        first.cancel()

        session = await second
        assert session.user_id == "u1"


class TestProductMode:
    async def test_magic_link_mode_requires_login(self):
        provider = CountingProvider()
        manager = SessionManager(provider, allow_anonymous=False)

        with pytest.raises(SessionError):
            await manager.ensure_session()
        assert provider.anonymous_calls == 0

    async def test_current_session_does_not_create(self):
        provider = CountingProvider()
        manager = SessionManager(provider)

        assert await manager.current_session() is None
        assert provider.anonymous_calls == 0

    async def test_blank_email_rejected(self):
        manager = SessionManager(LocalAuthProvider())
        with pytest.raises(TaskValidationError):
            await manager.sign_in_with_otp("   ")


class TestLocalAuthProvider:
    async def test_magic_link_flow(self):
        provider = LocalAuthProvider()
        manager = SessionManager(provider, allow_anonymous=False)

        await manager.sign_in_with_otp("anna@example.com")
        token = provider._pending["anna@example.com"]
        session = await manager.verify_otp("anna@example.com", token)

        assert session.email == "anna@example.com"
        assert session.is_anonymous is False
        assert (await manager.ensure_session()).user_id == session.user_id

    async def test_wrong_token_rejected(self):
        provider = LocalAuthProvider()
        await provider.sign_in_with_otp("anna@example.com")
        with pytest.raises(SessionError):
            await provider.verify_otp("anna@example.com", "000000x")

    async def test_expired_session_dropped(self):
        provider = LocalAuthProvider(session_ttl=timedelta(seconds=-1))
        await provider.sign_in_anonymously()
        assert await provider.get_session() is None

    async def test_sign_out(self):
        provider = LocalAuthProvider()
        manager = SessionManager(provider)
        first = await manager.ensure_session()
        await manager.sign_out()
        second = await manager.ensure_session()
        assert first.user_id != second.user_id
