from typing import Any, Optional

from api.errors import PayloadError
from config.sources import BRAVE_SEARCH
from models.search_result import SearchResultItem

from .base_client import BaseSourceClient, RequestSpec


class BraveSearchClient(BaseSourceClient):
    """
    Brave Web Search adapter.

    Auth goes in the X-Subscription-Token header. Results live under
    ``web.results``; the ``web`` block is omitted when nothing matched.
    """

    spec = BRAVE_SEARCH

    def build_request(self, query: str, **options) -> RequestSpec:
        params = {
            "q": query,
            "count": self.clamp_count(options.get("count")),
            "offset": options.get("offset"),
            "country": _upper(options.get("country")),
            "search_lang": options.get("language"),
            "safesearch": options.get("safesearch", "moderate"),
            "freshness": options.get("freshness"),
        }
        headers = {
            "Accept-Encoding": "gzip",
            "X-Subscription-Token": self.config.api_key,
        }
        return self.config.base_url, params, headers

    def check_payload(self, payload: Any) -> None:
        super().check_payload(payload)
        if payload.get("type") == "ErrorResponse":
            error = payload.get("error") or {}
            detail = error.get("detail") if isinstance(error, dict) else None
            code = error.get("status") if isinstance(error, dict) else None
            raise PayloadError(detail or "Brave Search returned an error response", code=code)

    def parse_items(self, payload: dict[str, Any]) -> list[SearchResultItem]:
        items = []
        for result in self._result_list(payload.get("web"), "results"):
            profile = result.get("profile") if isinstance(result.get("profile"), dict) else {}
            meta_url = result.get("meta_url") if isinstance(result.get("meta_url"), dict) else {}
            items.append(
                SearchResultItem.from_fields(
                    title=result.get("title"),
                    url=result.get("url"),
                    description=result.get("description"),
                    published_at=result.get("page_age") or result.get("age"),
                    source_name=profile.get("name") or meta_url.get("hostname"),
                )
            )
        return items


def _upper(value: Optional[str]) -> Optional[str]:
    return value.upper() if value else None
