from dataclasses import replace
from typing import Any

from api.errors import PayloadError
from config.sources import NEWSDATA_IO
from models.search_result import SearchResultItem, SourceOutcome
from utils.logger import get_logger

from .base_client import BaseSourceClient, RequestSpec

logger = get_logger(__name__)

SIMPLIFIED_QUERY_WORDS = 3
SIMPLIFIED_PAGE_SIZE = 5

# Failures a narrower request cannot fix
_FINAL_ERROR_KINDS = ("configuration", "validation")


def simplify_query(query: str, words: int = SIMPLIFIED_QUERY_WORDS) -> str:
    return " ".join(query.split()[:words])


class NewsdataClient(BaseSourceClient):
    """
    Newsdata.io adapter, also the secondary in the news fallback chain.

    The key travels as the ``apikey`` query parameter. Success bodies carry
    ``status: "success"``; on error ``results`` is an object with a message.
    Field names differ from NewsAPI: ``link``, ``pubDate``, ``creator`` (a list)
    and ``source_name``/``source_id``.

    When a search fails, one more request is made with the first three words
    of the query, five results and English only. That outcome carries
    ``fallback_query``; if it fails too, both messages are reported.
    """

    spec = NEWSDATA_IO

    def build_request(self, query: str, **options) -> RequestSpec:
        country = options.get("country")
        params = {
            "apikey": self.config.api_key,
            "q": query,
            "size": self.clamp_count(options.get("size") or options.get("count")),
            "language": options.get("language", "en"),
            "country": country.lower() if country else None,
            "category": options.get("category"),
            "domain": options.get("domain"),
            "page": options.get("page"),
        }
        return self.config.base_url, params, {}

    def check_payload(self, payload: Any) -> None:
        super().check_payload(payload)
        if payload.get("status") != "success":
            results = payload.get("results")
            message = results.get("message") if isinstance(results, dict) else payload.get("message")
            code = results.get("code") if isinstance(results, dict) else None
            raise PayloadError(message or "Newsdata.io returned error status", code=code)

    def total_available(self, payload: dict[str, Any]) -> int:
        total = payload.get("totalResults")
        return total if isinstance(total, int) else 0

    def parse_items(self, payload: dict[str, Any]) -> list[SearchResultItem]:
        items = []
        for article in self._result_list(payload, "results"):
            items.append(
                SearchResultItem.from_fields(
                    title=article.get("title"),
                    url=article.get("link") or article.get("url"),
                    description=article.get("description"),
                    published_at=article.get("pubDate"),
                    author=article.get("creator"),
                    source_name=article.get("source_name") or article.get("source_id"),
                )
            )
        return items

    async def search(self, query: str, **options) -> SourceOutcome:
        outcome = await super().search(query, **options)
        if outcome.success or outcome.error_kind in _FINAL_ERROR_KINDS:
            return outcome

        simplified = simplify_query(query)
        logger.info(
            "Newsdata.io failed, retrying with simplified query",
            extra={"extra_fields": {"source_id": self.source_id, "simplified_query": simplified}},
        )
        second = await super().search(simplified, size=SIMPLIFIED_PAGE_SIZE, language="en")
        if second.success:
            return replace(second, fallback_query=simplified, latency_ms=outcome.latency_ms + second.latency_ms)

        return replace(
            second,
            error=f"Newsdata.io failed: {outcome.error}, Fallback failed: {second.error}",
            latency_ms=outcome.latency_ms + second.latency_ms,
        )
