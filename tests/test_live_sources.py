"""Live calls against the real APIs. Skipped unless the matching key is exported."""

import asyncio
import os

import pytest

from api.factory import CLIENT_CLASSES
from api.http_fetcher import HttpxFetcher
from config.config import SourceConfig
from config.sources import SOURCE_CATALOG

pytestmark = pytest.mark.integration

# Read at import: the autouse clean_env fixture removes keys before each test.
LIVE_KEYS = {
    source_id: next((os.environ[name] for name in spec.env_keys if os.environ.get(name)), "")
    for source_id, spec in SOURCE_CATALOG.items()
}
LIVE_CX = os.environ.get("GOOGLE_CSE_ID") or os.environ.get("GOOGLE_SEARCH_ENGINE_ID", "")


@pytest.mark.parametrize("source_id", list(SOURCE_CATALOG))
def test_live_search(source_id):
    if not LIVE_KEYS[source_id]:
        pytest.skip(f"no API key for {source_id}")

    config = SourceConfig(
        api_key=LIVE_KEYS[source_id],
        base_url=SOURCE_CATALOG[source_id].base_url,
        max_retries=2,
        max_results=3,
        extra={"cx": LIVE_CX} if source_id == "google_search" else {},
    )
    client = CLIENT_CLASSES[source_id](config, HttpxFetcher())

    outcome = asyncio.run(client.search("technology news"))

    print(f"{source_id}: success={outcome.success} results={outcome.result_count} error={outcome.error}")
    assert outcome.success, outcome.error
    assert outcome.result_count <= 3
