"""Pydantic model for the parameter object an automation trigger (e.g. iOS Shortcuts) passes in."""

import json
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def _aliases(*names: str) -> AliasChoices:
    return AliasChoices(*names)


class ShortcutParameters(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    query: Optional[str] = Field(None, validation_alias=_aliases("query", "q", "QUERY"))

    brave_api_key: Optional[str] = Field(
        None, validation_alias=_aliases("brave_api_key", "BRAVE_API_KEY", "braveApiKey")
    )
    news_api_key: Optional[str] = Field(
        None, validation_alias=_aliases("news_api_key", "NEWS_API_KEY", "NEWSAPI_API_KEY", "newsApiKey")
    )
    newsdata_api_key: Optional[str] = Field(
        None, validation_alias=_aliases("newsdata_api_key", "NEWSDATA_API_KEY", "newsdataApiKey")
    )
    google_api_key: Optional[str] = Field(
        None, validation_alias=_aliases("google_api_key", "GOOGLE_API_KEY", "googleApiKey")
    )
    google_cse_id: Optional[str] = Field(
        None,
        validation_alias=_aliases("google_cse_id", "GOOGLE_CSE_ID", "GOOGLE_SEARCH_ENGINE_ID", "searchEngineId"),
    )

    timeout_ms: Optional[int] = Field(None, gt=0, validation_alias=_aliases("timeout_ms", "TIMEOUT_MS", "timeoutMs"))
    retry_count: Optional[int] = Field(
        None, ge=1, le=10, validation_alias=_aliases("retry_count", "RETRY_COUNT", "maxRetries", "retryCount")
    )
    max_results_per_source: Optional[int] = Field(
        None, gt=0, validation_alias=_aliases("max_results_per_source", "MAX_RESULTS", "maxResultsPerSource")
    )
    enabled_sources: Optional[list[str]] = Field(
        None, validation_alias=_aliases("enabled_sources", "ENABLED_SOURCES", "enabledSources")
    )
    scheduling_mode: Optional[str] = Field(
        None,
        pattern="^(parallel|sequential)$",
        validation_alias=_aliases("scheduling_mode", "SCHEDULING_MODE", "schedulingMode"),
    )
    copy_result_to_clipboard: Optional[bool] = Field(
        None, validation_alias=_aliases("copy_result_to_clipboard", "COPY_TO_CLIPBOARD", "copyResultToClipboard")
    )
    show_notifications: Optional[bool] = Field(
        None, validation_alias=_aliases("show_notifications", "SHOW_NOTIFICATIONS", "showNotifications")
    )

    # Request options forwarded to the sources that support them
    language: Optional[str] = Field(
        None, min_length=2, max_length=5, validation_alias=_aliases("language", "LANGUAGE")
    )
    country: Optional[str] = Field(
        None, min_length=2, max_length=2, validation_alias=_aliases("country", "COUNTRY")
    )
    sort_by: Optional[str] = Field(
        None,
        pattern="^(publishedAt|relevancy|popularity)$",
        validation_alias=_aliases("sort_by", "SORT_BY", "sortBy"),
    )
    category: Optional[str] = Field(None, validation_alias=_aliases("category", "CATEGORY"))
    freshness: Optional[str] = Field(None, validation_alias=_aliases("freshness", "FRESHNESS"))
    include_images: Optional[bool] = Field(
        None, validation_alias=_aliases("include_images", "INCLUDE_IMAGES", "includeImages")
    )

    @field_validator("enabled_sources", mode="before")
    @classmethod
    def split_sources(cls, value: Any):
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value

    def api_key_overrides(self) -> dict[str, str]:
        """Per-run key overrides keyed by source id; only non-empty values."""
        overrides = {
            "brave_search": self.brave_api_key,
            "news_api": self.news_api_key,
            "newsdata_io": self.newsdata_api_key,
            "google_search": self.google_api_key,
        }
        return {source_id: key.strip() for source_id, key in overrides.items() if key and key.strip()}

    @classmethod
    def parse(cls, raw: Any) -> "ShortcutParameters":
        """
        Build parameters from whatever the trigger supplied.

        A dict or JSON object string is validated as parameters; any other
        non-empty string is taken as the query itself.
        """
        if raw is None:
            return cls()
        if isinstance(raw, dict):
            return cls.model_validate(raw)

        text = str(raw).strip()
        if not text:
            return cls()
        try:
            decoded = json.loads(text)
        except json.JSONDecodeError:
            return cls(query=text)
        if isinstance(decoded, dict):
            return cls.model_validate(decoded)
        return cls(query=text)
