"""
Source catalog.

Endpoints, key environment variables and documented result-count maxima for
each search/news API. Caps follow the providers' public docs:
Brave web search count <= 20, NewsAPI pageSize <= 100,
Newsdata.io size <= 50 (paid plans; free plans return at most 10),
Google Custom Search num <= 10.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class SourceSpec:
    source_id: str
    display_name: str
    base_url: str
    env_keys: tuple[str, ...]
    max_page_size: int


BRAVE_SEARCH = SourceSpec(
    source_id="brave_search",
    display_name="Brave Search",
    base_url="https://api.search.brave.com/res/v1/web/search",
    env_keys=("BRAVE_API_KEY",),
    max_page_size=20,
)

GOOGLE_SEARCH = SourceSpec(
    source_id="google_search",
    display_name="Google Search",
    base_url="https://www.googleapis.com/customsearch/v1",
    env_keys=("GOOGLE_API_KEY",),
    max_page_size=10,
)

NEWS_API = SourceSpec(
    source_id="news_api",
    display_name="NewsAPI",
    base_url="https://newsapi.org/v2/everything",
    env_keys=("NEWS_API_KEY", "NEWSAPI_API_KEY"),
    max_page_size=100,
)

NEWSDATA_IO = SourceSpec(
    source_id="newsdata_io",
    display_name="Newsdata.io",
    base_url="https://newsdata.io/api/1/latest",
    env_keys=("NEWSDATA_API_KEY",),
    max_page_size=50,
)

# Catalog order is also the sequential scheduling order.
SOURCE_CATALOG: dict[str, SourceSpec] = {
    spec.source_id: spec for spec in (BRAVE_SEARCH, GOOGLE_SEARCH, NEWS_API, NEWSDATA_IO)
}

GOOGLE_CSE_ENV_KEYS = ("GOOGLE_CSE_ID", "GOOGLE_SEARCH_ENGINE_ID")


def display_name(source_id: str) -> str:
    spec = SOURCE_CATALOG.get(source_id)
    return spec.display_name if spec else source_id
