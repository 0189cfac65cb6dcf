import os
import tempfile

import pytest

# Keep test log files out of the working tree; must run before utils.logger is imported.
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="deep-research-logs-"))

RESEARCH_ENV_VARS = (
    "BRAVE_API_KEY",
    "NEWS_API_KEY",
    "NEWSAPI_API_KEY",
    "NEWSDATA_API_KEY",
    "GOOGLE_API_KEY",
    "GOOGLE_CSE_ID",
    "GOOGLE_SEARCH_ENGINE_ID",
    "RESEARCH_PROFILE",
    "RESEARCH_TIMEOUT_MS",
    "RESEARCH_MAX_RETRIES",
    "RESEARCH_RETRY_BASE_DELAY_MS",
    "RESEARCH_MAX_RESULTS_PER_SOURCE",
    "RESEARCH_SCHEDULING_MODE",
    "RESEARCH_ENABLED_SOURCES",
    "RESEARCH_COPY_TO_CLIPBOARD",
    "RESEARCH_SHOW_NOTIFICATIONS",
    "RESEARCH_LANGUAGE",
    "RESEARCH_COUNTRY",
    "RESEARCH_SORT_BY",
    "RESEARCH_CATEGORY",
    "RESEARCH_FRESHNESS",
    "RESEARCH_INCLUDE_IMAGES",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Start every test without API keys or research settings from the shell."""
    for name in RESEARCH_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def mock_env(monkeypatch):
    """Fixture providing fake keys for every source."""
    env_vars = {
        "BRAVE_API_KEY": "test-brave-key",
        "NEWS_API_KEY": "test-newsapi-key",
        "NEWSDATA_API_KEY": "test-newsdata-key",
        "GOOGLE_API_KEY": "test-google-key",
        "GOOGLE_CSE_ID": "test-cx",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars
