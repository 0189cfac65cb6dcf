"""
End-to-end CLI tests with an in-memory host (no network, clipboard or keychain).
"""

import json

import pytest

import main
from host.capabilities import HostError

RESPONSES = {
    "search.brave.com": {
        "type": "search",
        "web": {"results": [{"title": "Brave hit", "url": "https://b.test/1", "description": "From Brave"}]},
    },
    "newsapi.org": {
        "status": "ok",
        "totalResults": 1,
        "articles": [{"title": "News hit", "url": "https://n.test/1", "source": {"name": "Wire"}}],
    },
    "newsdata.io": {"status": "success", "results": [{"title": "Newsdata hit", "link": "https://nd.test/1"}]},
    "googleapis.com": {"items": [{"title": "Google hit", "link": "https://g.test/1", "displayLink": "g.test"}]},
}


class FakeHost:
    def __init__(self, clipboard="", clipboard_error=None, credentials=None):
        self.clipboard = clipboard
        self.clipboard_error = clipboard_error
        self.credentials = credentials or {}
        self.written = []
        self.notifications = []
        self.requested_urls = []
        self.requested_params = []

    async def fetch_json(self, url, *, params=None, headers=None, timeout_ms=10000):
        self.requested_urls.append(url)
        self.requested_params.append(dict(params or {}))
        for host, payload in RESPONSES.items():
            if host in url:
                return payload
        raise AssertionError(f"unexpected url {url}")

    def read_clipboard(self):
        if self.clipboard_error:
            raise HostError(self.clipboard_error)
        return self.clipboard

    def write_clipboard(self, text):
        self.written.append(text)

    def notify(self, title, message):
        self.notifications.append((title, message))

    def get_credential(self, name):
        return self.credentials.get(name)


@pytest.mark.usefixtures("mock_env")
class TestResearchRun:
    def test_query_from_arguments(self, capsys):
        host = FakeHost()

        exit_code = main.main(["ai", "news"], host=host)

        out = capsys.readouterr().out
        assert exit_code == 0
        assert 'Deep Research Results for: "ai news"' in out
        assert "Total Results: 3" in out
        assert "Brave hit" in out and "News hit" in out and "Google hit" in out
        assert "Newsdata hit" not in out
        assert host.written == [out.rstrip("\n") + "\n"]
        assert host.notifications[0][0] == "Research Complete"
        assert "copied to clipboard" in host.notifications[0][1]

    def test_query_from_clipboard(self, capsys):
        host = FakeHost(clipboard="  fusion\n energy ")

        assert main.main([], host=host) == 0
        assert 'for: "fusion energy"' in capsys.readouterr().out

    def test_query_from_shortcut_parameter(self, capsys):
        host = FakeHost(clipboard="ignored")

        exit_code = main.main(["--shortcut-parameter", '{"query": "solar storms"}'], host=host)

        assert exit_code == 0
        assert 'for: "solar storms"' in capsys.readouterr().out

    def test_sources_flag_limits_requests(self):
        host = FakeHost()

        main.main(["--sources", "brave_search", "ai news"], host=host)

        assert len(host.requested_urls) == 1
        assert "search.brave.com" in host.requested_urls[0]

    def test_json_output(self, capsys):
        assert main.main(["--json", "--no-notify", "ai news"], host=FakeHost()) == 0
        report = json.loads(capsys.readouterr().out)
        assert report["query"] == "ai news"
        assert report["total_results"] == 3

    def test_request_options_reach_source_params(self):
        host = FakeHost()

        main.main(
            [
                "--no-clipboard",
                "--no-notify",
                "--sources",
                "brave_search,news_api,google_search",
                "--language",
                "de",
                "--country",
                "de",
                "--sort-by",
                "relevancy",
                "--freshness",
                "pw",
                "--images",
                "ai news",
            ],
            host=host,
        )

        sent = list(zip(host.requested_urls, host.requested_params))
        brave = next(p for u, p in sent if "search.brave.com" in u)
        news = next(p for u, p in sent if "newsapi.org" in u)
        assert brave["search_lang"] == "de"
        assert brave["country"] == "DE"
        assert brave["freshness"] == "pw"
        assert news["language"] == "de"
        assert news["sortBy"] == "relevancy"
        google_calls = [p for u, p in sent if "googleapis.com" in u]
        assert [p.get("searchType") for p in google_calls] == [None, "image"]
        assert all(p["lr"] == "lang_de" for p in google_calls)

    def test_options_from_shortcut_parameter(self):
        host = FakeHost()

        main.main(
            ["--no-notify", "--shortcut-parameter", '{"query": "ai news", "sortBy": "popularity"}'],
            host=host,
        )

        news = [p for u, p in zip(host.requested_urls, host.requested_params) if "newsapi.org" in u]
        assert news[0]["sortBy"] == "popularity"

    def test_no_clipboard_and_no_notify(self):
        host = FakeHost()

        main.main(["--no-clipboard", "--no-notify", "ai news"], host=host)

        assert host.written == []
        assert host.notifications == []


class TestSetupAndFailure:
    def test_config_prints_redacted_json(self, capsys, monkeypatch):
        monkeypatch.setenv("BRAVE_API_KEY", "abcd1234efgh")

        exit_code = main.main(["--config"], host=FakeHost())

        data = json.loads(capsys.readouterr().out)
        assert exit_code == 0
        assert data["sources"]["brave_search"]["api_key"] == "abcd****gh"

    def test_empty_clipboard_is_setup_error(self, capsys):
        host = FakeHost(clipboard="   ")

        assert main.main([], host=host) == 1
        assert "Clipboard is empty" in capsys.readouterr().err
        assert host.notifications[0][0] == "Research Error"

    def test_clipboard_unavailable_is_setup_error(self):
        host = FakeHost(clipboard_error="no clipboard on this system")
        assert main.main(["--no-notify"], host=host) == 1
        assert host.notifications == []

    def test_invalid_shortcut_parameter(self, capsys):
        exit_code = main.main(["--shortcut-parameter", '{"schedulingMode": "random"}', "q q"], host=FakeHost())
        assert exit_code == 1
        assert "invalid parameters" in capsys.readouterr().err

    def test_total_failure_still_exits_zero_and_copies_error_text(self, capsys):
        host = FakeHost()

        exit_code = main.main(["ai news"], host=host)

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "=== ERRORS ===" in out
        assert "brave_search: Brave Search API key not configured" in out
        assert host.requested_urls == []
        assert host.written[0].startswith('Research failed for "ai news".')
        assert host.notifications[0][0] == "Research Failed"

    def test_key_from_credential_store(self, capsys):
        host = FakeHost(credentials={"BRAVE_API_KEY": "stored"})

        main.main(["--sources", "brave_search", "ai news"], host=host)

        assert "Brave hit" in capsys.readouterr().out
