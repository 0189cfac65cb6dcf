from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Union

DEFAULT_TITLE = "No title"
DEFAULT_DESCRIPTION = "No description"


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _text(value: Any, default: str = "") -> str:
    """Coerce a payload field to a stripped string, falling back to ``default``."""
    if value is None:
        return default
    if isinstance(value, (list, tuple)):
        value = ", ".join(str(v) for v in value if v)
    text = str(value).strip()
    return text or default


@dataclass(frozen=True)
class SearchResultItem:
    """
    One normalized search/news hit.

    Missing fields hold sentinels ("No title", "No description", "") so
    renderers never deal with None.
    """

    title: str = DEFAULT_TITLE
    url: str = ""
    description: str = DEFAULT_DESCRIPTION
    published_at: str = ""
    author: str = ""
    source_name: str = ""

    @classmethod
    def from_fields(
        cls,
        *,
        title: Any = None,
        url: Any = None,
        description: Any = None,
        published_at: Any = None,
        author: Any = None,
        source_name: Any = None,
    ) -> "SearchResultItem":
        return cls(
            title=_text(title, DEFAULT_TITLE),
            url=_text(url),
            description=_text(description, DEFAULT_DESCRIPTION),
            published_at=_text(published_at),
            author=_text(author),
            source_name=_text(source_name),
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "title": self.title,
            "url": self.url,
            "description": self.description,
            "published_at": self.published_at,
            "author": self.author,
            "source_name": self.source_name,
        }


@dataclass(frozen=True)
class SourceOutcome:
    """Result of one source for one run: items on success, an error otherwise."""

    source_id: str
    success: bool
    items: tuple[SearchResultItem, ...] = field(default_factory=tuple)
    total_available: int = 0
    error: Optional[str] = None
    error_code: Optional[Union[int, str]] = None
    error_kind: Optional[str] = None
    latency_ms: int = 0
    timestamp: str = field(default_factory=utc_timestamp)
    # set when the items came from a narrowed retry of the query
    fallback_query: Optional[str] = None

    @property
    def result_count(self) -> int:
        return len(self.items)

    @property
    def is_empty(self) -> bool:
        return self.success and not self.items

    @classmethod
    def succeeded(
        cls,
        source_id: str,
        items: tuple[SearchResultItem, ...],
        total_available: int = 0,
        latency_ms: int = 0,
    ) -> "SourceOutcome":
        return cls(
            source_id=source_id,
            success=True,
            items=tuple(items),
            total_available=max(total_available, len(items)),
            latency_ms=latency_ms,
        )

    @classmethod
    def failed(
        cls,
        source_id: str,
        error: str,
        error_code: Optional[Union[int, str]] = None,
        error_kind: Optional[str] = None,
        latency_ms: int = 0,
    ) -> "SourceOutcome":
        return cls(
            source_id=source_id,
            success=False,
            error=error,
            error_code=error_code,
            error_kind=error_kind,
            latency_ms=latency_ms,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_id": self.source_id,
            "success": self.success,
            "result_count": self.result_count,
            "total_available": self.total_available,
            "items": [item.to_dict() for item in self.items],
            "error": self.error,
            "error_code": self.error_code,
            "error_kind": self.error_kind,
            "latency_ms": self.latency_ms,
            "timestamp": self.timestamp,
            "fallback_query": self.fallback_query,
        }
