from dataclasses import replace
from typing import Any, Optional

from api.errors import ConfigurationError, PayloadError
from config.sources import GOOGLE_SEARCH
from models.search_result import SearchResultItem, SourceOutcome
from utils.logger import get_logger

from .base_client import BaseSourceClient, RequestSpec

logger = get_logger(__name__)


class GoogleSearchClient(BaseSourceClient):
    """
    Google Custom Search JSON API adapter (optional source).

    Needs both an API key and a search engine id (``cx``); either missing is
    a configuration error and no request is made.
    """

    spec = GOOGLE_SEARCH

    def ensure_configured(self) -> None:
        super().ensure_configured()
        if not self.config.extra.get("cx"):
            raise ConfigurationError("Google Search engine ID (cx) not configured")

    def build_request(self, query: str, **options) -> RequestSpec:
        params = {
            "key": self.config.api_key,
            "cx": self.config.extra["cx"],
            "q": query,
            "num": self.clamp_count(options.get("count")),
            "start": options.get("start"),
            "lr": _language_restrict(options.get("language")),
            "searchType": "image" if options.get("search_type") == "image" else None,
        }
        return self.config.base_url, params, {}

    def check_payload(self, payload: Any) -> None:
        super().check_payload(payload)
        error = payload.get("error")
        if isinstance(error, dict):
            raise PayloadError(error.get("message") or "Google Search returned an error", code=error.get("code"))

    def total_available(self, payload: dict[str, Any]) -> int:
        info = payload.get("searchInformation")
        if not isinstance(info, dict):
            return 0
        try:
            return int(info.get("totalResults") or 0)
        except (TypeError, ValueError):
            return 0

    def parse_items(self, payload: dict[str, Any]) -> list[SearchResultItem]:
        items = []
        for result in self._result_list(payload, "items"):
            items.append(
                SearchResultItem.from_fields(
                    title=result.get("title"),
                    url=result.get("link"),
                    description=result.get("snippet"),
                    published_at=self._published_time(result),
                    source_name=result.get("displayLink"),
                )
            )
        return items

    @staticmethod
    def _published_time(result: dict[str, Any]) -> str:
        pagemap = result.get("pagemap")
        if not isinstance(pagemap, dict):
            return ""
        metatags = pagemap.get("metatags")
        if not isinstance(metatags, list) or not metatags or not isinstance(metatags[0], dict):
            return ""
        return metatags[0].get("article:published_time") or ""

    async def search(self, query: str, **options) -> SourceOutcome:
        """
        Web search, plus an image search pass when ``include_images`` is set.

        Image hits are appended after the web hits. A failed image pass is
        logged and leaves the web outcome as it was.
        """
        include_images = options.pop("include_images", False)
        outcome = await super().search(query, **options)
        if not include_images or not outcome.success:
            return outcome

        images = await super().search(query, **{**options, "search_type": "image"})
        if not images.success:
            logger.warning(
                f"Google image search failed: {images.error}",
                extra={"extra_fields": {"source_id": self.source_id, "error_kind": images.error_kind}},
            )
            return outcome

        return replace(
            outcome,
            items=outcome.items + images.items,
            total_available=outcome.total_available + images.total_available,
            latency_ms=outcome.latency_ms + images.latency_ms,
        )


def _language_restrict(language: Optional[str]) -> Optional[str]:
    """Custom Search expects ``lr=lang_xx``."""
    if not language:
        return None
    return language if language.startswith("lang_") else f"lang_{language}"
