"""Session store — the current identity for one request scope."""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from nester_engine.common.exceptions import IdentityProviderError
from nester_engine.identity.provider import (
    AuthClient,
    AuthEvent,
    AuthSession,
    Identity,
    Subscription,
)

logger = logging.getLogger(__name__)

IdentityListener = Callable[[Optional[Identity]], Awaitable[None]]


@dataclass
class AuthResult:
    """Outcome of a sign-in/up/reset call. Provider errors land in ``error``."""

    session: Optional[AuthSession] = None
    identity: Optional[Identity] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SessionStore:
    """Holds the cached identity and republishes provider auth events.

    Absence of an identity is the only failure signal: provider errors during
    ``initialize`` are logged and leave the store signed out.
    """

    def __init__(self, auth_client: AuthClient, login_path: str = "/auth/login"):
        self.auth = auth_client
        self.login_path = login_path
        self.identity: Optional[Identity] = None
        self.loading = True
        self._listeners: list[IdentityListener] = []
        self._provider_subscription: Optional[Subscription] = None

    @property
    def session(self) -> Optional[AuthSession]:
        if self.identity is None or not self.auth.access_token:
            return None
        return AuthSession(
            access_token=self.auth.access_token,
            refresh_token=self.auth.refresh_token,
            identity=self.identity,
        )

    async def initialize(self) -> Optional[Identity]:
        try:
            session = await self.auth.get_session()
            if session is None and self.auth.refresh_token:
                logger.info("No valid session, attempting refresh")
                session = await self.auth.refresh_session()
            self.identity = session.identity if session else None
        except IdentityProviderError:
            logger.exception("Error resolving session")
            self.identity = None
        finally:
            self.loading = False

        if self._provider_subscription is None:
            self._provider_subscription = self.auth.on_auth_state_change(self._on_auth_event)
        return self.identity

    async def _on_auth_event(self, event: AuthEvent, session: Optional[AuthSession]) -> None:
        logger.debug("Auth state change: %s", event.value)
        self.identity = session.identity if session else None
        self.loading = False
        await self._publish()

    async def _publish(self) -> None:
        for listener in list(self._listeners):
            await listener(self.identity)

    def subscribe(self, listener: IdentityListener) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self._listeners, listener)

    # ── Operations ──

    async def sign_in(self, email: str, password: str) -> AuthResult:
        try:
            session = await self.auth.sign_in_with_password(email, password)
        except IdentityProviderError as e:
            return AuthResult(error=e.message)
        return AuthResult(session=session, identity=session.identity)

    async def sign_up(self, email: str, password: str) -> AuthResult:
        try:
            identity, session = await self.auth.sign_up(email, password)
        except IdentityProviderError as e:
            return AuthResult(error=e.message)
        return AuthResult(session=session, identity=identity)

    async def sign_out(self) -> str:
        """Clear the identity and return the path to redirect to."""
        try:
            await self.auth.sign_out()
        except IdentityProviderError:
            logger.exception("Provider sign-out failed")
        if self.identity is not None:
            self.identity = None
            await self._publish()
        return self.login_path

    async def reset_password(self, email: str, redirect_to: str | None = None) -> AuthResult:
        try:
            await self.auth.reset_password_for_email(email, redirect_to=redirect_to)
        except IdentityProviderError as e:
            return AuthResult(error=e.message)
        return AuthResult()

    def close(self) -> None:
        if self._provider_subscription is not None:
            self._provider_subscription.unsubscribe()
            self._provider_subscription = None
        self._listeners.clear()
