import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional

from dotenv import load_dotenv

from config.sources import GOOGLE_CSE_ENV_KEYS, SOURCE_CATALOG
from models.shortcut_params import ShortcutParameters
from utils.logger import get_logger

logger = get_logger(__name__)

CredentialLookup = Callable[[str], Optional[str]]


class SchedulingMode(Enum):
    """How the aggregator schedules source calls."""

    PARALLEL = "parallel"
    SEQUENTIAL = "sequential"


class Profile(Enum):
    """Host profile; only changes defaults."""

    DESKTOP = "desktop"
    MOBILE = "mobile"


PROFILE_DEFAULTS = {
    Profile.DESKTOP: {"timeout_ms": 10000, "max_retries": 3, "scheduling_mode": SchedulingMode.PARALLEL},
    Profile.MOBILE: {"timeout_ms": 15000, "max_retries": 2, "scheduling_mode": SchedulingMode.SEQUENTIAL},
}


@dataclass(frozen=True)
class SourceConfig:
    """Per-source settings. An empty api_key means the source is unavailable."""

    api_key: str = ""
    base_url: str = ""
    timeout_ms: int = 10000
    max_retries: int = 3
    retry_base_delay_ms: int = 1000
    max_results: int = 5
    extra: dict[str, str] = field(default_factory=dict)

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


@dataclass(frozen=True)
class ResearchSettings:
    timeout_ms: int = 10000
    max_retries: int = 3
    retry_base_delay_ms: int = 1000
    max_results_per_source: int = 5
    scheduling_mode: SchedulingMode = SchedulingMode.PARALLEL
    enabled_sources: Optional[tuple[str, ...]] = None
    copy_result_to_clipboard: bool = True
    show_notifications: bool = True
    language: str = "en"
    country: Optional[str] = None
    news_sort_by: str = "publishedAt"
    news_category: Optional[str] = None
    freshness: Optional[str] = None
    include_images: bool = False


def _env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer {name}={raw!r}, using {default}")
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _mask(secret: str) -> str:
    if not secret:
        return ""
    if len(secret) <= 8:
        return "****"
    return f"{secret[:4]}****{secret[-2:]}"


class Config:
    """
    Effective configuration for one research run.

    API keys are resolved per source with this precedence (first non-empty wins):
    explicit per-run parameter, credential store, environment variable.
    A source with no key stays in the catalog but is reported as not configured.
    """

    def __init__(
        self,
        overrides: Optional[ShortcutParameters] = None,
        credential_lookup: Optional[CredentialLookup] = None,
        env_file: Optional[Path] = None,
    ):
        if env_file is not None:
            if env_file.exists():
                load_dotenv(dotenv_path=env_file)
        else:
            load_dotenv()

        self.overrides = overrides or ShortcutParameters()
        self._credential_lookup = credential_lookup

        profile_name = os.getenv("RESEARCH_PROFILE", Profile.DESKTOP.value).lower()
        try:
            self.profile = Profile(profile_name)
        except ValueError:
            logger.warning(f"Unknown RESEARCH_PROFILE '{profile_name}', using desktop defaults")
            self.profile = Profile.DESKTOP

        self.settings = self._load_settings()
        self.sources = {source_id: self._load_source(source_id) for source_id in SOURCE_CATALOG}

    def _load_settings(self) -> ResearchSettings:
        defaults = PROFILE_DEFAULTS[self.profile]
        params = self.overrides

        mode_name = params.scheduling_mode or os.getenv(
            "RESEARCH_SCHEDULING_MODE", defaults["scheduling_mode"].value
        )
        try:
            mode = SchedulingMode(mode_name.lower())
        except ValueError:
            logger.warning(f"Unknown scheduling mode '{mode_name}', using {defaults['scheduling_mode'].value}")
            mode = defaults["scheduling_mode"]

        enabled = params.enabled_sources
        if enabled is None:
            raw = os.getenv("RESEARCH_ENABLED_SOURCES", "")
            enabled = [part.strip() for part in raw.split(",") if part.strip()] or None

        return ResearchSettings(
            timeout_ms=params.timeout_ms or _env_int("RESEARCH_TIMEOUT_MS", defaults["timeout_ms"]),
            max_retries=params.retry_count or _env_int("RESEARCH_MAX_RETRIES", defaults["max_retries"]),
            retry_base_delay_ms=_env_int("RESEARCH_RETRY_BASE_DELAY_MS", 1000),
            max_results_per_source=params.max_results_per_source
            or _env_int("RESEARCH_MAX_RESULTS_PER_SOURCE", 5),
            scheduling_mode=mode,
            enabled_sources=tuple(enabled) if enabled else None,
            copy_result_to_clipboard=(
                params.copy_result_to_clipboard
                if params.copy_result_to_clipboard is not None
                else _env_bool("RESEARCH_COPY_TO_CLIPBOARD", True)
            ),
            show_notifications=(
                params.show_notifications
                if params.show_notifications is not None
                else _env_bool("RESEARCH_SHOW_NOTIFICATIONS", True)
            ),
            language=params.language or _env_str("RESEARCH_LANGUAGE", "en"),
            country=params.country or _env_str("RESEARCH_COUNTRY"),
            news_sort_by=params.sort_by or _env_str("RESEARCH_SORT_BY", "publishedAt"),
            news_category=params.category or _env_str("RESEARCH_CATEGORY"),
            freshness=params.freshness or _env_str("RESEARCH_FRESHNESS"),
            include_images=(
                params.include_images
                if params.include_images is not None
                else _env_bool("RESEARCH_INCLUDE_IMAGES", False)
            ),
        )

    def _lookup_credential(self, name: str) -> str:
        if self._credential_lookup is None:
            return ""
        try:
            return (self._credential_lookup(name) or "").strip()
        except Exception as e:
            logger.warning(
                f"Credential store lookup failed for {name}",
                extra={"extra_fields": {"error": str(e), "error_type": type(e).__name__}},
            )
            return ""

    def _resolve(self, names: tuple[str, ...], override: Optional[str]) -> str:
        if override and override.strip():
            return override.strip()
        for name in names:
            value = self._lookup_credential(name)
            if value:
                return value
        for name in names:
            value = (os.getenv(name) or "").strip()
            if value:
                return value
        return ""

    def resolve_api_key(self, source_id: str) -> str:
        spec = SOURCE_CATALOG[source_id]
        return self._resolve(spec.env_keys, self.overrides.api_key_overrides().get(source_id))

    def _load_source(self, source_id: str) -> SourceConfig:
        spec = SOURCE_CATALOG[source_id]
        api_key = self.resolve_api_key(source_id)
        if not api_key:
            logger.warning(
                f"API key not found for {spec.display_name}. Set {spec.env_keys[0]} to enable it.",
                extra={"extra_fields": {"source_id": source_id}},
            )

        extra: dict[str, str] = {}
        if source_id == "google_search":
            extra["cx"] = self._resolve(GOOGLE_CSE_ENV_KEYS, self.overrides.google_cse_id)

        return SourceConfig(
            api_key=api_key,
            base_url=os.getenv(f"{source_id.upper()}_BASE_URL", spec.base_url),
            timeout_ms=self.settings.timeout_ms,
            max_retries=self.settings.max_retries,
            retry_base_delay_ms=self.settings.retry_base_delay_ms,
            max_results=self.settings.max_results_per_source,
            extra=extra,
        )

    def is_source_ready(self, source_id: str) -> bool:
        source = self.sources[source_id]
        if source_id == "google_search":
            return source.is_configured and bool(source.extra.get("cx"))
        return source.is_configured

    @property
    def enabled_sources(self) -> list[str]:
        """
        Sources to attempt this run.

        Explicit selection wins. Otherwise every ready source; when none is
        ready, every catalog source so the report explains what is missing.
        """
        if self.settings.enabled_sources:
            return list(self.settings.enabled_sources)
        ready = [source_id for source_id in SOURCE_CATALOG if self.is_source_ready(source_id)]
        return ready or list(SOURCE_CATALOG)

    def validate(self) -> list[str]:
        """Return the source ids that lack a usable key, logging each one."""
        missing = [source_id for source_id in SOURCE_CATALOG if not self.is_source_ready(source_id)]
        if missing:
            logger.warning(f"Sources without configuration: {', '.join(missing)}")
        return missing

    def search_options(self) -> dict[str, dict[str, Any]]:
        """
        Per-source request options for ``ResearchAggregator``.

        Each adapter maps these onto its own query parameters; ``None`` values
        are dropped before the request is sent.
        """
        settings = self.settings
        return {
            "brave_search": {
                "language": settings.language,
                "country": settings.country,
                "freshness": settings.freshness,
            },
            "google_search": {
                "language": settings.language,
                "include_images": settings.include_images,
            },
            "news_api": {
                "language": settings.language,
                "sort_by": settings.news_sort_by,
            },
            "newsdata_io": {
                "language": settings.language,
                "country": settings.country,
                "category": settings.news_category,
            },
        }

    def to_dict(self, redact: bool = True) -> dict[str, Any]:
        settings = self.settings
        return {
            "profile": self.profile.value,
            "timeout_ms": settings.timeout_ms,
            "max_retries": settings.max_retries,
            "retry_base_delay_ms": settings.retry_base_delay_ms,
            "max_results_per_source": settings.max_results_per_source,
            "scheduling_mode": settings.scheduling_mode.value,
            "enabled_sources": self.enabled_sources,
            "copy_result_to_clipboard": settings.copy_result_to_clipboard,
            "show_notifications": settings.show_notifications,
            "search_options": self.search_options(),
            "sources": {
                source_id: {
                    "api_key": _mask(source.api_key) if redact else source.api_key,
                    "configured": self.is_source_ready(source_id),
                    "base_url": source.base_url,
                    "timeout_ms": source.timeout_ms,
                    "max_retries": source.max_retries,
                    "max_results": source.max_results,
                    **(
                        {key: (_mask(value) if redact else value) for key, value in source.extra.items()}
                    ),
                }
                for source_id, source in self.sources.items()
            },
        }
