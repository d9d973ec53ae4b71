"""HTTP client for the workflow engine's webhook-triggered workflows."""

import logging
from typing import Any

import httpx

from nester_engine.common.exceptions import WorkflowEngineError

logger = logging.getLogger(__name__)


class WorkflowClient:
    """POSTs job payloads to ``{base_url}/{workflow}`` with a bearer token.

    A successful trigger must answer with ``execution_id`` or ``job_id``;
    anything else is treated as a failed dispatch.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30.0,
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

    async def trigger(self, workflow: str, payload: dict[str, Any]) -> str:
        """Start ``workflow`` and return the engine-issued job identifier."""
        client = self._get_http_client()
        try:
            resp = await client.post(
                f"{self.base_url}/{workflow}",
                json=payload,
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {self.api_key}",
                },
            )
        except httpx.HTTPError as e:
            logger.error("Workflow %s unreachable: %s", workflow, e)
            raise WorkflowEngineError(f"Workflow {workflow} unreachable") from e

        if not resp.is_success:
            logger.error(
                "Workflow %s returned %d: %s", workflow, resp.status_code, resp.text[:500],
            )
            raise WorkflowEngineError(f"Workflow {workflow} returned {resp.status_code}")

        try:
            body = resp.json()
        except ValueError as e:
            raise WorkflowEngineError(f"Workflow {workflow} returned a non-JSON body") from e

        job_id = None
        if isinstance(body, dict):
            job_id = body.get("execution_id") or body.get("job_id")
        if not job_id:
            logger.error("Workflow %s returned no job identifier: %s", workflow, body)
            raise WorkflowEngineError(f"Workflow {workflow} returned no job identifier")
        return str(job_id)

    async def aclose(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
