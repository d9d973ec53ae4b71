"""HTTP client for the hosted identity provider (GoTrue-compatible REST API).

``IdentityProvider`` is the process-wide transport. Each request scope gets
its own ``AuthClient`` bound to the caller's token pair; the auth client owns
the auth-state-change listeners so events never cross request boundaries.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

import httpx

from nester_engine.common.exceptions import IdentityProviderError

logger = logging.getLogger(__name__)


class AuthEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"


@dataclass(frozen=True)
class Identity:
    """The authenticated user as reported by the provider."""

    id: str
    email: str = ""


@dataclass
class AuthSession:
    access_token: str
    identity: Identity
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None


AuthListener = Callable[[AuthEvent, Optional[AuthSession]], Awaitable[None]]


class Subscription:
    """Handle returned by ``subscribe`` style calls."""

    def __init__(self, listeners: list, listener: Any):
        self._listeners = listeners
        self._listener = listener

    def unsubscribe(self) -> None:
        if self._listener in self._listeners:
            self._listeners.remove(self._listener)

    @property
    def active(self) -> bool:
        return self._listener in self._listeners


def _identity_from_user(user: Any) -> Identity:
    if not isinstance(user, dict) or not user.get("id"):
        raise IdentityProviderError("Provider returned a user without an id")
    return Identity(id=str(user["id"]), email=user.get("email") or "")


def _session_from_payload(data: dict[str, Any]) -> Optional[AuthSession]:
    if not data.get("access_token") or not isinstance(data.get("user"), dict):
        return None
    return AuthSession(
        access_token=data["access_token"],
        refresh_token=data.get("refresh_token"),
        expires_in=data.get("expires_in"),
        identity=_identity_from_user(data["user"]),
    )


class IdentityProvider:
    """Calls the provider's ``/auth/v1`` endpoints."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self._transport = transport
        self._timeout = timeout
        self._http_client: httpx.AsyncClient | None = None

    def _get_http_client(self) -> httpx.AsyncClient:
        """Lazy-init httpx.AsyncClient."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                transport=self._transport, timeout=self._timeout,
            )
        return self._http_client

    def _headers(self, access_token: str | None = None) -> dict[str, str]:
        headers = {"apikey": self.api_key, "Content-Type": "application/json"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        access_token: str | None = None,
        json: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        client = self._get_http_client()
        try:
            resp = await client.request(
                method,
                f"{self.base_url}/auth/v1{path}",
                json=json,
                params=params,
                headers=self._headers(access_token),
            )
        except httpx.HTTPError as e:
            raise IdentityProviderError(f"Identity provider unreachable: {e}") from e

        if resp.status_code >= 400:
            message = "Identity provider request failed"
            try:
                body = resp.json()
                message = (
                    body.get("error_description")
                    or body.get("msg")
                    or body.get("message")
                    or body.get("error")
                    or message
                )
            except ValueError:
                pass
            raise IdentityProviderError(message, status=resp.status_code)

        if resp.status_code == 204 or not resp.content:
            return {}
        try:
            data = resp.json()
        except ValueError as e:
            raise IdentityProviderError(
                "Identity provider returned a malformed response", status=resp.status_code,
            ) from e
        if not isinstance(data, dict):
            raise IdentityProviderError(
                "Identity provider returned a malformed response", status=resp.status_code,
            )
        return data

    # ── Raw endpoints ──

    async def password_grant(self, email: str, password: str) -> AuthSession:
        data = await self._request(
            "POST", "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        session = _session_from_payload(data)
        if session is None:
            raise IdentityProviderError("Provider returned no session")
        return session

    async def refresh_grant(self, refresh_token: str) -> AuthSession:
        data = await self._request(
            "POST", "/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": refresh_token},
        )
        session = _session_from_payload(data)
        if session is None:
            raise IdentityProviderError("Provider returned no session")
        return session

    async def sign_up(self, email: str, password: str) -> tuple[Optional[Identity], Optional[AuthSession]]:
        """Register a user. The session is ``None`` while email confirmation is pending."""
        data = await self._request(
            "POST", "/signup", json={"email": email, "password": password},
        )
        session = _session_from_payload(data)
        if session is not None:
            return session.identity, session
        user = data.get("user") if isinstance(data.get("user"), dict) else data
        if user and user.get("id"):
            return _identity_from_user(user), None
        return None, None

    async def sign_out(self, access_token: str) -> None:
        await self._request("POST", "/logout", access_token=access_token)

    async def recover(self, email: str, redirect_to: str | None = None) -> None:
        params = {"redirect_to": redirect_to} if redirect_to else None
        await self._request("POST", "/recover", json={"email": email}, params=params)

    async def get_user(self, access_token: str) -> Identity:
        data = await self._request("GET", "/user", access_token=access_token)
        return _identity_from_user(data)

    def client(
        self, access_token: str | None = None, refresh_token: str | None = None,
    ) -> "AuthClient":
        return AuthClient(self, access_token=access_token, refresh_token=refresh_token)

    async def aclose(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None


class AuthClient:
    """Per-scope auth state bound to one token pair; pushes state-change events."""

    def __init__(
        self,
        provider: IdentityProvider,
        access_token: str | None = None,
        refresh_token: str | None = None,
    ):
        self.provider = provider
        self.access_token = access_token
        self.refresh_token = refresh_token
        self._listeners: list[AuthListener] = []

    def on_auth_state_change(self, listener: AuthListener) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self._listeners, listener)

    async def _emit(self, event: AuthEvent, session: Optional[AuthSession]) -> None:
        for listener in list(self._listeners):
            await listener(event, session)

    def _store(self, session: AuthSession) -> None:
        self.access_token = session.access_token
        self.refresh_token = session.refresh_token or self.refresh_token

    async def get_session(self) -> Optional[AuthSession]:
        """Validate the bound access token and return the session, if any."""
        if not self.access_token:
            return None
        try:
            identity = await self.provider.get_user(self.access_token)
        except IdentityProviderError as e:
            if e.status in (401, 403):
                return None
            raise
        return AuthSession(
            access_token=self.access_token,
            refresh_token=self.refresh_token,
            identity=identity,
        )

    async def refresh_session(self) -> Optional[AuthSession]:
        if not self.refresh_token:
            return None
        session = await self.provider.refresh_grant(self.refresh_token)
        self._store(session)
        await self._emit(AuthEvent.TOKEN_REFRESHED, session)
        return session

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        session = await self.provider.password_grant(email, password)
        self._store(session)
        await self._emit(AuthEvent.SIGNED_IN, session)
        return session

    async def sign_up(self, email: str, password: str) -> tuple[Optional[Identity], Optional[AuthSession]]:
        identity, session = await self.provider.sign_up(email, password)
        if session is not None:
            self._store(session)
            await self._emit(AuthEvent.SIGNED_IN, session)
        return identity, session

    async def sign_out(self) -> None:
        token = self.access_token
        self.access_token = None
        self.refresh_token = None
        try:
            if token:
                await self.provider.sign_out(token)
        finally:
            await self._emit(AuthEvent.SIGNED_OUT, None)

    async def reset_password_for_email(self, email: str, redirect_to: str | None = None) -> None:
        await self.provider.recover(email, redirect_to=redirect_to)
