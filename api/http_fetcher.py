"""HTTP GET returning parsed JSON, built on httpx."""

from typing import Any, Optional, Protocol

import httpx

from api.errors import PayloadError, TransportError
from utils.logger import get_logger

logger = get_logger(__name__)

USER_AGENT = "DeepResearchMultiApis/2.0"


class Fetcher(Protocol):
    """Capability the adapters depend on. Hosts and tests supply their own."""

    async def fetch_json(
        self,
        url: str,
        *,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        timeout_ms: int = 10000,
    ) -> Any: ...


def _status_message(response: httpx.Response) -> str:
    """Best-effort error text from a non-2xx body."""
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        message = body.get("message")
        if not message and isinstance(body.get("error"), dict):
            message = body["error"].get("message") or body["error"].get("detail")
        if not message and isinstance(body.get("results"), dict):
            message = body["results"].get("message")
        if message:
            return f"HTTP {response.status_code}: {message}"
    return f"HTTP {response.status_code}: {response.reason_phrase or 'request failed'}"


class HttpxFetcher:
    """
    Fetcher backed by ``httpx.AsyncClient``.

    A client can be injected (e.g. one built on ``httpx.MockTransport``);
    otherwise a short-lived client is opened per request.
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self._client = client

    async def fetch_json(
        self,
        url: str,
        *,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        timeout_ms: int = 10000,
    ) -> Any:
        request_headers = {"Accept": "application/json", "User-Agent": USER_AGENT}
        request_headers.update(headers or {})
        timeout = httpx.Timeout(timeout_ms / 1000)

        try:
            if self._client is not None:
                response = await self._client.get(
                    url, params=params, headers=request_headers, timeout=timeout
                )
            else:
                async with httpx.AsyncClient(timeout=timeout) as client:
                    response = await client.get(url, params=params, headers=request_headers)
        except httpx.TimeoutException as e:
            raise TransportError(f"Request timed out after {timeout_ms}ms", timed_out=True) from e
        except httpx.HTTPError as e:
            raise TransportError(f"Network error: {e}") from e

        if not response.is_success:
            logger.debug(
                "Non-2xx response",
                extra={"extra_fields": {"url": url, "status": response.status_code}},
            )
            raise TransportError(_status_message(response), status_code=response.status_code)

        if not response.content:
            raise PayloadError("Empty response body")

        try:
            return response.json()
        except ValueError as e:
            raise PayloadError(f"Response is not valid JSON: {e}") from e
