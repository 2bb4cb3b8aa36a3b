"""会话路由

GET  /api/auth/session: 当前会话（不自动创建）
POST /api/auth/session: 确保会话（匿名模式下自动创建）
POST /api/auth/magic-link: 发送 magic link
POST /api/auth/verify: 校验 magic link 令牌
POST /api/auth/sign-out: 注销
"""

from fastapi import APIRouter, Depends
from starlette.responses import Response

from ..backend import Backend
from ..deps import get_backend
from ..schemas import MagicLinkRequest, SessionOut, SessionResponse, VerifyRequest

router = APIRouter()


@router.get("/api/auth/session", response_model=SessionResponse)
async def get_session(backend: Backend = Depends(get_backend)):
    session = await backend.sessions.current_session()
    return SessionResponse(
        session=SessionOut.from_session(session) if session else None,
        allow_anonymous=backend.sessions.allow_anonymous,
    )


@router.post("/api/auth/session", response_model=SessionResponse)
async def ensure_session(backend: Backend = Depends(get_backend)):
    session = await backend.sessions.ensure_session()
    return SessionResponse(
        session=SessionOut.from_session(session),
        allow_anonymous=backend.sessions.allow_anonymous,
    )


@router.post("/api/auth/magic-link", status_code=202)
async def send_magic_link(
    payload: MagicLinkRequest,
    backend: Backend = Depends(get_backend),
):
    await backend.sessions.sign_in_with_otp(payload.email, redirect_to=payload.redirect_to)
    return {"status": "sent", "email": payload.email.strip()}


@router.post("/api/auth/verify", response_model=SessionResponse)
async def verify_magic_link(
    payload: VerifyRequest,
    backend: Backend = Depends(get_backend),
):
    session = await backend.sessions.verify_otp(payload.email, payload.token)
    return SessionResponse(
        session=SessionOut.from_session(session),
        allow_anonymous=backend.sessions.allow_anonymous,
    )


@router.post("/api/auth/sign-out", status_code=204)
async def sign_out(backend: Backend = Depends(get_backend)):
    await backend.sessions.sign_out()
    return Response(status_code=204)
