"""Auth API router — sign-in, sign-up, sign-out and password reset."""

import logging
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, RedirectResponse

from nester_engine.common.exceptions import RequestValidationFailed, UnauthorizedError
from nester_engine.common.handlers import guarded
from nester_engine.common.security import COOKIE_NAME, MAX_AGE, create_session_cookie
from nester_engine.identity.provider import AuthSession, Identity
from nester_engine.identity.schemas import (
    Credentials,
    IdentityResponse,
    MessageResponse,
    PasswordResetRequest,
    SessionResponse,
    SignUpResponse,
)
from nester_engine.scope import use_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _get_backend():
    from nester_engine.deps import get_backend_client
    return get_backend_client()


def _identity(identity: Optional[Identity]) -> Optional[IdentityResponse]:
    if identity is None:
        return None
    return IdentityResponse(id=identity.id, email=identity.email)


def _set_session_cookie(response, session: AuthSession) -> None:
    response.set_cookie(
        COOKIE_NAME,
        create_session_cookie(session.access_token, session.refresh_token),
        max_age=MAX_AGE,
        httponly=True,
        samesite="lax",
    )


@router.post("/login", response_model=SessionResponse)
async def login(body: Credentials, request: Request):
    async with guarded("Sign-in"):
        result = await use_session(request).sign_in(body.email, body.password)
        if not result.ok:
            raise UnauthorizedError(result.error or "Invalid login credentials")
        response = JSONResponse(
            SessionResponse(identity=_identity(result.identity)).model_dump()
        )
        _set_session_cookie(response, result.session)
        logger.info("User signed in", extra={"user_id": result.identity.id})
        return response


@router.post("/signup", response_model=SignUpResponse)
async def signup(body: Credentials, request: Request):
    async with guarded("Sign-up"):
        result = await use_session(request).sign_up(body.email, body.password)
        if not result.ok:
            raise RequestValidationFailed(result.error or "Sign-up failed")
        if result.identity is not None:
            await _get_backend().notify_signup(result.identity.id, result.identity.email)

        response = JSONResponse(
            SignUpResponse(
                identity=_identity(result.identity),
                confirmation_required=result.session is None,
            ).model_dump()
        )
        if result.session is not None:
            _set_session_cookie(response, result.session)
        return response


@router.post("/logout")
async def logout(request: Request):
    async with guarded("Sign-out"):
        redirect_to = await use_session(request).sign_out()
        response = RedirectResponse(redirect_to, status_code=303)
        response.delete_cookie(COOKIE_NAME)
        return response


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(body: PasswordResetRequest, request: Request):
    async with guarded("Password reset"):
        result = await use_session(request).reset_password(body.email, body.redirect_to)
        if not result.ok:
            raise RequestValidationFailed(result.error or "Password reset failed")
        return MessageResponse(message="Password reset email sent")


@router.get("/session", response_model=SessionResponse)
async def current_session(request: Request):
    return SessionResponse(identity=_identity(use_session(request).identity))
