"""
Tests for ResearchAggregator: partial/total failure, the NewsAPI -> Newsdata.io
fallback chain, and both scheduling modes. Adapters are in-memory fakes.
"""

import asyncio

import pytest

from api.brave_client import BraveSearchClient
from api.newsapi_client import NewsAPIClient
from config.config import SchedulingMode, SourceConfig
from models.search_result import SearchResultItem, SourceOutcome
from orchestrator.aggregator import ResearchAggregator
from orchestrator.fallback_manager import FallbackPolicy


class FakeAdapter:
    """Adapter stand-in: returns a scripted outcome, or raises."""

    def __init__(self, source_id, count=0, error=None, delay=0.0, log=None):
        self.source_id = source_id
        self.count = count
        self.error = error
        self.delay = delay
        self.log = log if log is not None else []
        self.queries = []

    async def search(self, query, **options):
        self.queries.append(query)
        self.log.append(("start", self.source_id))
        if self.delay:
            await asyncio.sleep(self.delay)
        self.log.append(("end", self.source_id))
        if self.error is not None:
            raise self.error
        items = tuple(
            SearchResultItem(title=f"{self.source_id} {i}", url=f"https://{self.source_id}.test/{i}")
            for i in range(self.count)
        )
        return SourceOutcome.succeeded(self.source_id, items)


class FailingAdapter(FakeAdapter):
    """Adapter that reports failure through its outcome instead of raising."""

    def __init__(self, source_id, message="Invalid API key", code=401, **kwargs):
        super().__init__(source_id, **kwargs)
        self.message = message
        self.code = code

    async def search(self, query, **options):
        self.queries.append(query)
        return SourceOutcome.failed(self.source_id, self.message, error_code=self.code, error_kind="transport")


def _aggregator(*adapters, mode=SchedulingMode.PARALLEL, **kwargs):
    return ResearchAggregator({a.source_id: a for a in adapters}, scheduling_mode=mode, **kwargs)


def _run(aggregator, query="ai news", enabled=None):
    return asyncio.run(aggregator.run(query, enabled))


class TestFailureTolerance:
    def test_partial_failure(self):
        brave = FakeAdapter("brave_search", error=RuntimeError("socket closed"))
        news = FakeAdapter("news_api", count=3)

        report = _run(_aggregator(brave, news), enabled=["brave_search", "news_api"])

        assert len(report.errors) == 1
        assert report.errors[0].source_id == "brave_search"
        assert report.errors[0].message == "socket closed"
        assert report.errors[0].error_kind == "unknown"
        assert report.total_results == 3
        assert list(report.outcomes) == ["news_api"]

    def test_total_failure(self):
        adapters = [
            FakeAdapter("brave_search", error=RuntimeError("a")),
            FakeAdapter("news_api", error=RuntimeError("b")),
            FakeAdapter("newsdata_io", error=RuntimeError("c")),
        ]
        enabled = [a.source_id for a in adapters]

        report = _run(_aggregator(*adapters), enabled=enabled)

        assert report.total_results == 0
        assert len(report.errors) == len(enabled)
        assert report.all_failed

    def test_failed_outcome_carries_code_into_errors(self):
        report = _run(_aggregator(FailingAdapter("brave_search", "Rate limit exceeded", 429)))

        error = report.errors[0]
        assert error.message == "Rate limit exceeded"
        assert error.error_code == 429
        assert error.error_kind == "transport"


class TestFallbackChain:
    def test_empty_primary_falls_back_to_secondary(self):
        news = FakeAdapter("news_api", count=0)
        newsdata = FakeAdapter("newsdata_io", count=2)

        report = _run(_aggregator(news, newsdata))

        assert report.total_results == 2
        assert "newsdata_io" in report.outcomes
        assert report.outcomes["newsdata_io"].result_count == 2
        assert report.outcomes["news_api"].result_count == 0
        assert newsdata.queries == ["ai news"]

    def test_failed_primary_falls_back(self):
        news = FailingAdapter("news_api")
        newsdata = FakeAdapter("newsdata_io", count=1)

        report = _run(_aggregator(news, newsdata))

        assert report.total_results == 1
        assert [e.source_id for e in report.errors] == ["news_api"]

    def test_successful_primary_skips_secondary(self):
        news = FakeAdapter("news_api", count=4)
        newsdata = FakeAdapter("newsdata_io", count=2)

        report = _run(_aggregator(news, newsdata))

        assert newsdata.queries == []
        assert report.total_results == 4
        assert "newsdata_io" not in report.outcomes

    def test_both_chain_members_failing_are_both_reported(self):
        report = _run(_aggregator(FailingAdapter("news_api"), FailingAdapter("newsdata_io", "quota", 429)))

        assert [e.source_id for e in report.errors] == ["news_api", "newsdata_io"]
        assert report.total_results == 0

    def test_secondary_runs_alone_when_primary_not_enabled(self):
        news = FakeAdapter("news_api", count=4)
        newsdata = FakeAdapter("newsdata_io", count=2)

        report = _run(_aggregator(news, newsdata), enabled=["newsdata_io"])

        assert news.queries == []
        assert newsdata.queries == ["ai news"]
        assert report.total_results == 2

    def test_no_fallback_when_secondary_not_enabled(self):
        news = FakeAdapter("news_api", count=0)
        newsdata = FakeAdapter("newsdata_io", count=2)

        report = _run(_aggregator(news, newsdata), enabled=["news_api"])

        assert newsdata.queries == []
        assert report.total_results == 0

    def test_chain_can_be_disabled(self):
        news = FakeAdapter("news_api", count=0)
        newsdata = FakeAdapter("newsdata_io", count=2)
        aggregator = _aggregator(news, newsdata, fallback_policy=FallbackPolicy(chains={}))

        report = _run(aggregator)

        assert newsdata.queries == ["ai news"]
        assert report.total_results == 2


class TestScheduling:
    def test_sequential_runs_one_source_at_a_time_in_catalog_order(self):
        log = []
        adapters = [
            FakeAdapter("brave_search", count=1, delay=0.01, log=log),
            FakeAdapter("news_api", count=1, delay=0.01, log=log),
            FakeAdapter("google_search", count=1, delay=0.01, log=log),
        ]
        aggregator = _aggregator(*adapters, mode=SchedulingMode.SEQUENTIAL)

        report = _run(aggregator, enabled=["google_search", "news_api", "brave_search"])

        assert log == [
            ("start", "brave_search"),
            ("end", "brave_search"),
            ("start", "news_api"),
            ("end", "news_api"),
            ("start", "google_search"),
            ("end", "google_search"),
        ]
        assert list(report.outcomes) == ["brave_search", "news_api", "google_search"]
        assert report.scheduling_mode == "sequential"

    def test_parallel_starts_every_source_before_any_finishes(self):
        log = []
        adapters = [
            FakeAdapter("brave_search", count=1, delay=0.05, log=log),
            FakeAdapter("news_api", count=1, delay=0.01, log=log),
        ]

        report = _run(_aggregator(*adapters))

        starts = [i for i, entry in enumerate(log) if entry[0] == "start"]
        first_end = min(i for i, entry in enumerate(log) if entry[0] == "end")
        assert max(starts) < first_end
        assert list(report.outcomes) == ["brave_search", "news_api"]
        assert report.total_results == 2


class TestInputHandling:
    def test_unknown_source_is_reported_not_raised(self):
        report = _run(_aggregator(FakeAdapter("brave_search", count=1)), enabled=["brave_search", "bing"])

        assert report.total_results == 1
        assert report.errors[0].source_id == "bing"
        assert report.errors[0].error_kind == "configuration"

    @pytest.mark.parametrize("query", ["", "   ", "x"])
    def test_invalid_query_fails_every_enabled_source_without_calls(self, query):
        brave = FakeAdapter("brave_search", count=1)
        news = FakeAdapter("news_api", count=1)

        report = _run(_aggregator(brave, news), query=query)

        assert brave.queries == [] and news.queries == []
        assert [e.source_id for e in report.errors] == ["brave_search", "news_api"]
        assert all(e.error_kind == "validation" for e in report.errors)
        assert report.total_results == 0

    def test_query_is_normalized_before_dispatch(self):
        brave = FakeAdapter("brave_search", count=1)

        report = _run(_aggregator(brave), query="  quantum\n  computing ")

        assert brave.queries == ["quantum computing"]
        assert report.query == "quantum computing"

    def test_missing_key_source_makes_no_request(self):
        class CountingFetcher:
            calls = 0

            async def fetch_json(self, url, **kwargs):
                CountingFetcher.calls += 1
                return {"status": "ok", "articles": []}

        fetcher = CountingFetcher()
        clients = {
            "brave_search": BraveSearchClient(SourceConfig(api_key=""), fetcher),
            "news_api": NewsAPIClient(SourceConfig(api_key="k", max_retries=1), fetcher),
        }

        report = asyncio.run(ResearchAggregator(clients).run("ai news", ["brave_search", "news_api"]))

        assert CountingFetcher.calls == 1
        assert report.errors[0].message == "Brave Search API key not configured"
        assert report.errors[0].error_kind == "configuration"


class TestRunSync:
    def test_run_sync_without_loop(self):
        report = _aggregator(FakeAdapter("brave_search", count=2)).run_sync("ai news")
        assert report.total_results == 2

    def test_run_sync_inside_running_loop(self):
        aggregator = _aggregator(FakeAdapter("brave_search", count=2))

        async def caller():
            return aggregator.run_sync("ai news")

        report = asyncio.run(caller())
        assert report.total_results == 2
