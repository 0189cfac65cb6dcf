from dataclasses import dataclass, field

from models.search_result import SourceOutcome
from orchestrator.routing_types import FallbackDecision, NextAction


def _default_chains() -> dict[str, str]:
    return {"news_api": "newsdata_io"}


@dataclass(frozen=True)
class FallbackPolicy:
    """Primary source id -> secondary source id tried when the primary yields nothing."""

    chains: dict[str, str] = field(default_factory=_default_chains)
    fallback_on_empty: bool = True

    def secondary_for(self, source_id: str) -> str | None:
        return self.chains.get(source_id)


class FallbackManager:
    def decide(self, *, outcome: SourceOutcome, policy: FallbackPolicy) -> FallbackDecision:
        next_source = policy.secondary_for(outcome.source_id)
        if next_source is None:
            return FallbackDecision(action=NextAction.STOP, next_source=None, reason="no_chain")

        if not outcome.success:
            return FallbackDecision(
                action=NextAction.USE_FALLBACK, next_source=next_source, reason="primary_failed"
            )

        if outcome.is_empty and policy.fallback_on_empty:
            return FallbackDecision(
                action=NextAction.USE_FALLBACK, next_source=next_source, reason="primary_empty"
            )

        return FallbackDecision(action=NextAction.STOP, next_source=None, reason="primary_ok")
