from typing import Any

from api.errors import PayloadError
from config.sources import NEWS_API
from models.search_result import SearchResultItem

from .base_client import BaseSourceClient, RequestSpec


class NewsAPIClient(BaseSourceClient):
    """
    NewsAPI /v2/everything adapter.

    The key is sent as X-Api-Key. A 2xx body still carries
    ``status: "ok" | "error"``; anything but "ok" is a payload failure.
    """

    spec = NEWS_API

    def build_request(self, query: str, **options) -> RequestSpec:
        params = {
            "q": query,
            "pageSize": self.clamp_count(options.get("page_size") or options.get("count")),
            "page": options.get("page", 1),
            "sortBy": options.get("sort_by", "publishedAt"),
            "language": options.get("language", "en"),
            "from": options.get("from_date"),
            "to": options.get("to_date"),
            "domains": options.get("domains"),
            "excludeDomains": options.get("exclude_domains"),
        }
        headers = {"X-Api-Key": self.config.api_key}
        return self.config.base_url, params, headers

    def check_payload(self, payload: Any) -> None:
        super().check_payload(payload)
        if payload.get("status") != "ok":
            raise PayloadError(
                payload.get("message") or "NewsAPI returned error status",
                code=payload.get("code"),
            )

    def total_available(self, payload: dict[str, Any]) -> int:
        total = payload.get("totalResults")
        return total if isinstance(total, int) else 0

    def parse_items(self, payload: dict[str, Any]) -> list[SearchResultItem]:
        items = []
        for article in self._result_list(payload, "articles"):
            source = article.get("source") if isinstance(article.get("source"), dict) else {}
            items.append(
                SearchResultItem.from_fields(
                    title=article.get("title"),
                    url=article.get("url"),
                    description=article.get("description"),
                    published_at=article.get("publishedAt"),
                    author=article.get("author"),
                    source_name=source.get("name"),
                )
            )
        return items
