"""HTTP agent executor for in-house specialist endpoints.

Each iris-custom model names an endpoint path (e.g.
/api/agents/medical-assistant) that accepts:

    POST {"inputs": {"text": ...}, "taskType": ..., "priority": ...}

and answers with JSON. A response object carrying "content" is unwrapped
(with optional "confidence" and "metadata"); anything else is returned as
the content itself. Liveness is a GET on the provider's health path.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx

from switchboard.core.errors import ProviderError
from switchboard.observability.logging import get_logger
from switchboard.providers.base import ExecutionContext, ExecutionOutput, Provider
from switchboard.providers.litellm_executor import payload_to_text

if TYPE_CHECKING:
    from switchboard.routing.registry import ModelDescriptor

log = get_logger(__name__)

DEFAULT_ENDPOINT = "/api/iris/neural-synthesis"
DEFAULT_HEALTH_PATH = "/api/health/iris"
DEFAULT_CONFIDENCE = 0.9


class HTTPAgentExecutor:
    """ProviderExecutor that POSTs to per-model agent endpoints."""

    def __init__(
        self,
        base_url: str,
        *,
        health_path: str = DEFAULT_HEALTH_PATH,
        timeout: float = 15.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._health_path = health_path
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    def url_for(self, path: str) -> str:
        """Absolute URL for an endpoint path; absolute URLs pass through."""
        if path.startswith(("http://", "https://")):
            return path
        if not path.startswith("/"):
            path = f"/{path}"
        return f"{self._base_url}{path}"

    async def execute(
        self,
        model: ModelDescriptor,
        task_type: str,
        payload: Any,
        context: ExecutionContext,
    ) -> ExecutionOutput:
        """POST the task to the model's endpoint.

        Raises:
            ProviderError: On transport errors, non-2xx status, or a body
                that is not JSON.
        """
        url = self.url_for(model.endpoint or DEFAULT_ENDPOINT)
        body = {
            "inputs": {"text": payload_to_text(payload)},
            "taskType": task_type,
            "priority": context.priority.value,
        }
        headers = {"X-Request-ID": context.request_id} if context.request_id else {}

        log.debug("provider.agent.request.started", model_id=model.id, url=url)
        try:
            response = await self._get_client().post(url, json=body, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ProviderError(
                f"Agent endpoint returned HTTP {e.response.status_code}",
                provider=Provider.IRIS_CUSTOM.value,
                status_code=e.response.status_code,
                details={"url": url},
            ) from e
        except httpx.HTTPError as e:
            raise ProviderError.from_exception(e, provider=Provider.IRIS_CUSTOM.value) from e

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(
                "Agent endpoint returned a non-JSON body",
                provider=Provider.IRIS_CUSTOM.value,
                status_code=response.status_code,
                details={"url": url},
            ) from e

        return self._parse(data)

    @staticmethod
    def _parse(data: Any) -> ExecutionOutput:
        if isinstance(data, dict) and "content" in data:
            confidence = data.get("confidence")
            if not isinstance(confidence, int | float) or isinstance(confidence, bool):
                confidence = DEFAULT_CONFIDENCE
            metadata = data.get("metadata")
            return ExecutionOutput(
                content=data["content"],
                confidence=min(max(float(confidence), 0.0), 1.0),
                metadata=metadata if isinstance(metadata, dict) else {},
            )
        return ExecutionOutput(content=data, confidence=DEFAULT_CONFIDENCE)

    @property
    def ping_measures_latency(self) -> bool:
        return True

    async def ping(self, model: ModelDescriptor) -> bool:
        """GET the provider health path; healthy on any 2xx."""
        response = await self._get_client().get(self.url_for(self._health_path))
        return response.is_success

    async def aclose(self) -> None:
        """Close the underlying client if this executor created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
