"""Build source adapters from configuration."""

from config.config import Config
from config.sources import SOURCE_CATALOG

from .base_client import BaseSourceClient
from .brave_client import BraveSearchClient
from .google_search_client import GoogleSearchClient
from .http_fetcher import Fetcher
from .newsapi_client import NewsAPIClient
from .newsdata_client import NewsdataClient

CLIENT_CLASSES: dict[str, type[BaseSourceClient]] = {
    BraveSearchClient.spec.source_id: BraveSearchClient,
    GoogleSearchClient.spec.source_id: GoogleSearchClient,
    NewsAPIClient.spec.source_id: NewsAPIClient,
    NewsdataClient.spec.source_id: NewsdataClient,
}


def build_source_clients(config: Config, fetcher: Fetcher, **client_kwargs) -> dict[str, BaseSourceClient]:
    """
    Create one adapter per catalog source, in catalog order.

    Unconfigured sources are still built; their ``search`` reports the missing
    key without touching the network.
    """
    return {
        source_id: CLIENT_CLASSES[source_id](config.sources[source_id], fetcher, **client_kwargs)
        for source_id in SOURCE_CATALOG
    }
