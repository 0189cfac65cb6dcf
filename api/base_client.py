import asyncio
import time
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional

from api.errors import (
    ConfigurationError,
    PayloadError,
    ValidationError,
    error_code,
    error_kind,
    user_message,
)
from api.http_fetcher import Fetcher
from config.config import SourceConfig
from config.sources import SourceSpec
from models.search_result import SearchResultItem, SourceOutcome
from orchestrator.retry import DEFAULT_JITTER_MS, with_retry
from utils.logger import get_logger

logger = get_logger(__name__)

RequestSpec = tuple[str, dict[str, Any], dict[str, str]]


class BaseSourceClient(ABC):
    """
    Abstract base class for search/news source adapters.

    Subclasses describe how to build a request for their API and how to map
    its JSON into SearchResultItem records. ``search`` owns the shared flow:
    validation, key check, retrying fetch, payload checks, normalization.

    IMPORTANT: ``search`` never raises - every failure comes back as a
    SourceOutcome with success=False.
    """

    spec: SourceSpec

    def __init__(
        self,
        config: SourceConfig,
        fetcher: Fetcher,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        jitter_ms: int = DEFAULT_JITTER_MS,
    ):
        self.config = config
        self.fetcher = fetcher
        self._sleep = sleep
        self._jitter_ms = jitter_ms

    @property
    def source_id(self) -> str:
        return self.spec.source_id

    @property
    def display_name(self) -> str:
        return self.spec.display_name

    def clamp_count(self, requested: Optional[int] = None) -> int:
        """Result count for the request, limited to the API's documented maximum."""
        count = requested or self.config.max_results
        return max(1, min(int(count), self.spec.max_page_size))

    def ensure_configured(self) -> None:
        if not self.config.api_key:
            raise ConfigurationError(f"{self.display_name} API key not configured")

    @abstractmethod
    def build_request(self, query: str, **options) -> RequestSpec:
        """Return (url, query params, headers) for this API."""

    def check_payload(self, payload: Any) -> None:
        """Raise PayloadError when a 2xx body signals failure at the application level."""
        if not isinstance(payload, dict):
            raise PayloadError(f"Unexpected {self.display_name} response type: {type(payload).__name__}")

    @abstractmethod
    def parse_items(self, payload: dict[str, Any]) -> list[SearchResultItem]:
        """Map the API's result list into normalized items, preserving API order."""

    def total_available(self, payload: dict[str, Any]) -> int:
        return 0

    def _result_list(self, container: Any, key: str) -> list[dict[str, Any]]:
        """
        Fetch ``container[key]`` as a list of dicts.

        A missing key is an empty result set; a present key of the wrong type
        is a malformed payload.
        """
        if not isinstance(container, dict) or container.get(key) is None:
            return []
        value = container[key]
        if not isinstance(value, list):
            raise PayloadError(f"{self.display_name} field '{key}' is not a list")
        return [entry for entry in value if isinstance(entry, dict)]

    async def search(self, query: str, **options) -> SourceOutcome:
        """
        Search this source.

        Args:
            query: Normalized query text
            **options: Source-specific request options (count, language, ...)

        Returns:
            SourceOutcome with normalized items, or with error details
        """
        start_time = time.time()

        try:
            if not isinstance(query, str) or not query.strip():
                raise ValidationError("Query must be a non-empty string")
            self.ensure_configured()

            url, params, headers = self.build_request(query.strip(), **options)
            params = {key: value for key, value in params.items() if value is not None}

            logger.info(
                f"{self.display_name}: searching for '{query[:80]}'",
                extra={"extra_fields": {"source_id": self.source_id, "params": sorted(params)}},
            )

            payload = await with_retry(
                lambda: self.fetcher.fetch_json(
                    url, params=params, headers=headers, timeout_ms=self.config.timeout_ms
                ),
                self.config.max_retries,
                self.config.retry_base_delay_ms,
                jitter_ms=self._jitter_ms,
                sleep=self._sleep,
                label=self.source_id,
                should_retry=lambda e: not isinstance(e, PayloadError),
            )

            self.check_payload(payload)
            items = self.parse_items(payload)[: self.config.max_results]
            latency_ms = int((time.time() - start_time) * 1000)

            logger.info(
                f"{self.display_name}: {len(items)} results",
                extra={
                    "extra_fields": {
                        "source_id": self.source_id,
                        "result_count": len(items),
                        "latency_ms": latency_ms,
                    }
                },
            )
            return SourceOutcome.succeeded(
                self.source_id,
                tuple(items),
                total_available=self.total_available(payload),
                latency_ms=latency_ms,
            )

        except Exception as e:
            latency_ms = int((time.time() - start_time) * 1000)
            message = user_message(e)

            logger.error(
                f"{self.display_name} search failed: {message}",
                extra={
                    "extra_fields": {
                        "source_id": self.source_id,
                        "error_kind": error_kind(e),
                        "error_code": error_code(e),
                        "error_type": type(e).__name__,
                        "raw_error": str(e),
                    }
                },
            )
            return SourceOutcome.failed(
                self.source_id,
                message,
                error_code=error_code(e),
                error_kind=error_kind(e),
                latency_ms=latency_ms,
            )
