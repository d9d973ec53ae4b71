"""HTTP client for the Express backend that owns property CRUD and uploads."""

import json
import logging
from typing import Any

import httpx

from nester_engine.common.exceptions import UpstreamError

logger = logging.getLogger(__name__)

FORWARDED_HEADERS = ("authorization", "cookie", "content-type")


class BackendClient:
    """Forwards requests verbatim and hands back the backend's status and JSON body."""

    def __init__(
        self,
        base_url: str,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
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

    async def forward(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        params: list[tuple[str, str]] | None = None,
        content: bytes | None = None,
    ) -> tuple[int, Any]:
        """Send one request to the backend. Transport failures raise ``UpstreamError``."""
        outgoing = {
            k.lower(): v for k, v in (headers or {}).items() if k.lower() in FORWARDED_HEADERS
        }
        outgoing.setdefault("content-type", "application/json")

        client = self._get_http_client()
        try:
            resp = await client.request(
                method,
                f"{self.base_url}{path}",
                params=params or None,
                content=content or None,
                headers=outgoing,
            )
        except httpx.HTTPError as e:
            logger.error("Backend %s %s failed: %s", method, path, e)
            raise UpstreamError() from e

        try:
            body = resp.json()
        except ValueError:
            logger.error(
                "Backend %s %s returned non-JSON body (%d)", method, path, resp.status_code,
            )
            raise UpstreamError()
        return resp.status_code, body

    async def notify_signup(self, user_id: str, email: str) -> bool:
        """Tell the backend about a new account. Failures are logged, not raised."""
        try:
            status, _ = await self.forward(
                "POST",
                "/api/auth/signup",
                content=json.dumps({"userId": user_id, "email": email}).encode(),
            )
        except UpstreamError:
            logger.warning("Backend signup notification failed for %s", user_id)
            return False
        if status >= 400:
            logger.warning("Backend rejected signup notification for %s (%d)", user_id, status)
            return False
        return True

    async def aclose(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
