"""Per-request session and brand scope.

``SessionScopeMiddleware`` builds one ``SessionStore`` and one
``BrandResolver`` for every request and hangs them on ``request.state``.
Handlers reach them through ``use_session`` / ``use_brand``, which fail fast
when no scope was set up.
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from nester_engine.brand.resolver import BrandResolver
from nester_engine.common.exceptions import ScopeError
from nester_engine.common.security import (
    COOKIE_NAME,
    MAX_AGE,
    create_session_cookie,
    extract_tokens,
)
from nester_engine.identity.session import SessionStore

logger = logging.getLogger(__name__)


def use_session(request: Request) -> SessionStore:
    store = getattr(request.state, "session_store", None)
    if store is None:
        raise ScopeError("use_session must be used inside a session scope")
    return store


def use_brand(request: Request) -> BrandResolver:
    resolver = getattr(request.state, "brand_resolver", None)
    if resolver is None:
        raise ScopeError("use_brand must be used inside a brand scope")
    return resolver


class SessionScopeMiddleware(BaseHTTPMiddleware):
    """Resolve the caller's identity once per request and tear the scope down after."""

    async def dispatch(self, request: Request, call_next) -> Response:
        from nester_engine.common.config import get_settings
        from nester_engine.deps import get_brand_service, get_db, get_identity_provider

        settings = get_settings()
        access_token, refresh_token = extract_tokens(request)
        from_cookie = access_token is not None and COOKIE_NAME in request.cookies

        store = SessionStore(
            get_identity_provider().client(access_token, refresh_token),
            login_path=settings.login_path,
        )
        await store.initialize()
        resolver = BrandResolver(store, get_brand_service(), get_db())
        request.state.session_store = store
        request.state.brand_resolver = resolver

        try:
            response = await call_next(request)
            refreshed = store.auth.access_token
            already_set = COOKIE_NAME in response.headers.get("set-cookie", "")
            if from_cookie and refreshed and refreshed != access_token and not already_set:
                logger.debug("Rewriting session cookie after token refresh")
                response.set_cookie(
                    COOKIE_NAME,
                    create_session_cookie(refreshed, store.auth.refresh_token),
                    max_age=MAX_AGE,
                    httponly=True,
                    samesite="lax",
                )
            return response
        finally:
            resolver.close()
            store.close()
