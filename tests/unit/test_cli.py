"""
Tests for the command-line interface.
"""

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from novelscrape import __version__
from novelscrape.cli import cli
from novelscrape.errors import NetworkError, NetworkErrorKind
from novelscrape.extractor.models import ExtractedDocument
from novelscrape.pipeline import ScrapeResult

URL = "https://www.69shuba.com/txt/85122/39443144"


@pytest.fixture
def result():
    document = ExtractedDocument(
        title="第3章 风起云涌",
        content="第3章 风起云涌\n少年站在山巅。",
        url=URL,
        word_count=2,
        extracted_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
    )
    return ScrapeResult(document=document, encoding="gbk", processing_time_ms=8.0, attempts=2, strategy="selector:.txtnav")


@pytest.mark.unit
class TestCli:
    def test_version(self):
        outcome = CliRunner().invoke(cli, ["--version"])

        assert outcome.exit_code == 0
        assert __version__ in outcome.output

    def test_scrape_json(self, result):
        with patch("novelscrape.cli._scrape_once", AsyncMock(return_value=result)) as scrape_once:
            outcome = CliRunner().invoke(cli, ["scrape", URL, "--json"])

        assert outcome.exit_code == 0
        body = json.loads(outcome.stdout)
        assert body["success"] is True
        assert body["data"]["title"] == "第3章 风起云涌"
        assert body["meta"]["encoding"] == "gbk"
        assert scrape_once.await_args.args[1] == URL

    def test_scrape_pretty_output(self, result):
        with patch("novelscrape.cli._scrape_once", AsyncMock(return_value=result)):
            outcome = CliRunner().invoke(cli, ["scrape", URL])

        assert outcome.exit_code == 0
        assert "少年站在山巅。" in outcome.output
        assert "selector:.txtnav" in outcome.output

    def test_scrape_failure_exits_non_zero(self):
        error = NetworkError(NetworkErrorKind.FORBIDDEN, status=403, attempts=1)

        with patch("novelscrape.cli._scrape_once", AsyncMock(side_effect=error)):
            outcome = CliRunner().invoke(cli, ["scrape", URL, "--json"])

        assert outcome.exit_code == 1
        assert json.loads(outcome.stdout)["error"] == "Access forbidden"

    def test_invalid_url_exits_non_zero_without_fetching(self):
        with patch("novelscrape.crawler.http_client.HttpClient.fetch", AsyncMock()) as fetch:
            outcome = CliRunner().invoke(cli, ["scrape", "ftp://example.com/a", "--json"])

        assert outcome.exit_code == 1
        assert json.loads(outcome.stdout)["error"] == "Invalid protocol: Only HTTP and HTTPS URLs are allowed"
        fetch.assert_not_awaited()

    def test_config_file_option(self, tmp_path, result):
        config_path = tmp_path / "novelscrape.yaml"
        config_path.write_text("fetcher:\n  max_attempts: 7\n", encoding="utf-8")

        with patch("novelscrape.cli._scrape_once", AsyncMock(return_value=result)) as scrape_once:
            outcome = CliRunner().invoke(cli, ["--config", str(config_path), "scrape", URL, "--json"])

        assert outcome.exit_code == 0
        assert scrape_once.await_args.args[0].fetcher.max_attempts == 7

    def test_serve_uses_configured_address(self):
        with patch("novelscrape.cli.uvicorn.run") as run:
            outcome = CliRunner().invoke(cli, ["serve", "--port", "9100"])

        assert outcome.exit_code == 0
        assert run.call_args.kwargs["host"] == "127.0.0.1"
        assert run.call_args.kwargs["port"] == 9100
