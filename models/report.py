"""
Report - merged result of one aggregator run.

Built incrementally while sources settle. Successful outcomes are kept in
``outcomes`` (keyed by source id, in settle order); failures become
``ReportError`` entries.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from models.search_result import SourceOutcome, utc_timestamp


@dataclass(frozen=True)
class ReportError:
    source_id: str
    message: str
    error_code: Optional[Union[int, str]] = None
    error_kind: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_id": self.source_id,
            "message": self.message,
            "error_code": self.error_code,
            "error_kind": self.error_kind,
        }


@dataclass
class Report:
    query: str
    timestamp: str = field(default_factory=utc_timestamp)
    outcomes: dict[str, SourceOutcome] = field(default_factory=dict)
    errors: list[ReportError] = field(default_factory=list)
    total_results: int = 0
    scheduling_mode: str = "parallel"
    attempted_sources: list[str] = field(default_factory=list)

    def add_outcome(self, outcome: SourceOutcome) -> None:
        """Fold one settled source into the report."""
        if outcome.source_id not in self.attempted_sources:
            self.attempted_sources.append(outcome.source_id)

        if outcome.success:
            self.outcomes[outcome.source_id] = outcome
            self.total_results += outcome.result_count
        else:
            self.add_error(
                outcome.source_id,
                outcome.error or "Unknown error",
                error_code=outcome.error_code,
                error_kind=outcome.error_kind,
            )

    def add_error(
        self,
        source_id: str,
        message: str,
        error_code: Optional[Union[int, str]] = None,
        error_kind: Optional[str] = None,
    ) -> None:
        self.errors.append(
            ReportError(
                source_id=source_id,
                message=message,
                error_code=error_code,
                error_kind=error_kind,
            )
        )

    @property
    def success_count(self) -> int:
        return len(self.outcomes)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def all_failed(self) -> bool:
        return not self.outcomes

    def to_dict(self) -> dict[str, Any]:
        return {
            "query": self.query,
            "timestamp": self.timestamp,
            "scheduling_mode": self.scheduling_mode,
            "attempted_sources": list(self.attempted_sources),
            "total_results": self.total_results,
            "success_count": self.success_count,
            "error_count": self.error_count,
            "outcomes": {source_id: o.to_dict() for source_id, o in self.outcomes.items()},
            "errors": [e.to_dict() for e in self.errors],
        }
