"""
Test configuration for novelscrape.

Provides deterministic jitter, a recording sleep so retry tests never
wait on the wall clock, and HTML fixtures shaped like real novel pages.
"""

from __future__ import annotations

import logging
from typing import List
from unittest.mock import patch

import pytest
import pytest_asyncio
import structlog

from novelscrape.config.config import Config, FetcherConfig
from novelscrape.crawler.http_client import HttpClient
from tests.helpers.pages import chapter_page, chapter_text


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests across modules")


class SleepRecorder:
    """Async stand-in for ``asyncio.sleep`` that records requested delays."""

    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def deterministic_jitter():
    """Make every jitter draw return 1.0."""
    with patch("random.uniform", return_value=1.0):
        yield


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo logging configuration done by CLI tests."""
    root_logger = logging.getLogger()
    handlers, level = list(root_logger.handlers), root_logger.level
    yield
    structlog.reset_defaults()
    root_logger.handlers = handlers
    root_logger.setLevel(level)


@pytest.fixture
def fetcher_config() -> FetcherConfig:
    return FetcherConfig(user_agent="TestBot/1.0")


@pytest.fixture
def config(fetcher_config) -> Config:
    return Config(fetcher=fetcher_config)


@pytest_asyncio.fixture
async def http_client(fetcher_config, sleep_recorder):
    """HTTP client whose sleeps are recorded instead of awaited."""
    async with HttpClient(fetcher_config, sleep=sleep_recorder) as client:
        yield client


@pytest.fixture
def chapter_html() -> str:
    return chapter_page(chapter_text())
