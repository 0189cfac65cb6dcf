"""
ResearchAggregator - fan a query out to every enabled source and merge the outcomes.

Sources run either concurrently (parallel) or one at a time in catalog order
(sequential). A primary source with a fallback chain runs as one unit: when
the primary fails or comes back empty, its secondary is tried with the same
query. One source failing never stops the others; ``run`` always returns a
Report.
"""

import asyncio
import concurrent.futures
import uuid
from typing import Any, Iterable, Mapping, Optional, Protocol

from api.errors import ValidationError, user_message
from config.config import SchedulingMode
from models.report import Report
from models.search_result import SourceOutcome
from orchestrator.fallback_manager import FallbackManager, FallbackPolicy
from orchestrator.routing_types import NextAction
from utils.logger import get_logger
from utils.query import normalize_query

logger = get_logger(__name__)


class SourceAdapter(Protocol):
    source_id: str

    async def search(self, query: str, **options) -> SourceOutcome: ...


class ResearchAggregator:
    """
    Orchestrates calls to the configured source adapters.

    Example usage:
        aggregator = ResearchAggregator(build_source_clients(config, HttpxFetcher()))
        report = aggregator.run_sync("quantum computing news")
        print(render_report(report))
    """

    def __init__(
        self,
        clients: Mapping[str, SourceAdapter],
        *,
        scheduling_mode: SchedulingMode = SchedulingMode.PARALLEL,
        fallback_policy: Optional[FallbackPolicy] = None,
        fallback_manager: Optional[FallbackManager] = None,
        search_options: Optional[Mapping[str, dict[str, Any]]] = None,
    ):
        """
        Args:
            clients: source id -> adapter; iteration order is the sequential order
            scheduling_mode: PARALLEL or SEQUENTIAL
            fallback_policy: primary -> secondary chains (default NewsAPI -> Newsdata.io)
            fallback_manager: decides when a secondary is needed
            search_options: per-source keyword options passed to ``search``
        """
        self.clients = dict(clients)
        self.scheduling_mode = scheduling_mode
        self.fallback_policy = fallback_policy or FallbackPolicy()
        self.fallback_manager = fallback_manager or FallbackManager()
        self.search_options = dict(search_options or {})

    def _plan(self, enabled: list[str], report: Report) -> list[tuple[str, Optional[str]]]:
        """
        Turn enabled source ids into (primary, secondary) units.

        A secondary that is itself enabled and chained behind an enabled
        primary does not get a unit of its own.
        """
        known = [source_id for source_id in enabled if source_id in self.clients]
        for source_id in enabled:
            if source_id not in self.clients:
                report.attempted_sources.append(source_id)
                report.add_error(
                    source_id, f"Unknown source '{source_id}'", error_kind="configuration"
                )

        chained: dict[str, str] = {}
        for source_id in known:
            secondary = self.fallback_policy.secondary_for(source_id)
            if secondary and secondary in known and secondary != source_id:
                chained[source_id] = secondary

        secondaries = set(chained.values())
        order = list(self.clients)
        units = [
            (source_id, chained.get(source_id))
            for source_id in sorted(known, key=order.index)
            if source_id not in secondaries or source_id in chained
        ]
        return units

    async def _safe_search(self, source_id: str, query: str) -> SourceOutcome:
        """Call one adapter; anything it raises becomes a failed outcome."""
        client = self.clients[source_id]
        try:
            return await client.search(query, **self.search_options.get(source_id, {}))
        except Exception as e:
            logger.error(
                f"Unexpected error from {source_id}: {e}",
                extra={"extra_fields": {"source_id": source_id, "error_type": type(e).__name__}},
            )
            return SourceOutcome.failed(source_id, user_message(e), error_kind="unknown")

    async def _run_unit(self, primary: str, secondary: Optional[str], query: str) -> list[SourceOutcome]:
        outcome = await self._safe_search(primary, query)
        outcomes = [outcome]
        if secondary is None:
            return outcomes

        decision = self.fallback_manager.decide(outcome=outcome, policy=self.fallback_policy)
        if decision.action == NextAction.USE_FALLBACK and decision.next_source == secondary:
            logger.info(
                f"Falling back from {primary} to {secondary}",
                extra={"extra_fields": {"primary": primary, "secondary": secondary, "reason": decision.reason}},
            )
            outcomes.append(await self._safe_search(secondary, query))
        return outcomes

    async def run(self, query: str, enabled_sources: Optional[Iterable[str]] = None) -> Report:
        """
        Search every enabled source and merge the results.

        Args:
            query: Raw query text; normalized before use
            enabled_sources: Source ids to attempt (default: every client)

        Returns:
            Report; never raises for source or query problems
        """
        run_id = str(uuid.uuid4())
        enabled = list(dict.fromkeys(enabled_sources if enabled_sources is not None else self.clients))
        report = Report(query=str(query or "").strip(), scheduling_mode=self.scheduling_mode.value)

        try:
            normalized = normalize_query(query)
        except ValidationError as e:
            logger.warning(
                f"Rejected query: {e.message}",
                extra={"extra_fields": {"run_id": run_id, "query_length": len(str(query or ""))}},
            )
            for source_id in enabled:
                report.attempted_sources.append(source_id)
                report.add_error(source_id, e.message, error_kind=e.kind)
            return report

        report.query = normalized
        units = self._plan(enabled, report)

        logger.info(
            f"Starting research with {len(units)} source units",
            extra={
                "extra_fields": {
                    "run_id": run_id,
                    "scheduling_mode": self.scheduling_mode.value,
                    "units": [[primary, secondary] for primary, secondary in units],
                }
            },
        )

        if self.scheduling_mode == SchedulingMode.SEQUENTIAL:
            for primary, secondary in units:
                for outcome in await self._run_unit(primary, secondary, normalized):
                    report.add_outcome(outcome)
        else:
            settled = await asyncio.gather(
                *(self._run_unit(primary, secondary, normalized) for primary, secondary in units)
            )
            for outcomes in settled:
                for outcome in outcomes:
                    report.add_outcome(outcome)

        log = logger.warning if report.all_failed else logger.info
        log(
            f"Research complete: {report.success_count} success, {report.error_count} errors",
            extra={
                "extra_fields": {
                    "run_id": run_id,
                    "success_count": report.success_count,
                    "error_count": report.error_count,
                    "total_results": report.total_results,
                }
            },
        )
        return report

    def run_sync(self, query: str, enabled_sources: Optional[Iterable[str]] = None) -> Report:
        """
        Synchronous wrapper for ``run``.

        When an event loop is already running, the run happens in a separate
        thread with its own loop.
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(self.run(query, enabled_sources))

        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as executor:
            future = executor.submit(asyncio.run, self.run(query, enabled_sources))
            return future.result()
