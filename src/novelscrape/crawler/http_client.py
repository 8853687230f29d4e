"""
HTTP fetcher with browser-like headers, jittered linear backoff and typed failures.
"""

from __future__ import annotations

import asyncio
import random
import socket
import time
from dataclasses import dataclass, field
from typing import Dict, Optional

import aiohttp
import structlog

from novelscrape.config.config import FetcherConfig
from novelscrape.errors import EmptyUpstreamResponseError, NetworkError, NetworkErrorKind
from novelscrape.observability.metrics import increment, observe

from .retry import RetryPolicy, RetryState, SleepFunc, linear_backoff, retry_async
from .user_agents import BrowserHeaderProfile

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RawResponse:
    """Undecoded response as received on the wire."""

    body: bytes
    headers: Dict[str, str]
    status: int
    url: str
    final_url: str
    attempts: int = 1
    backoff_delays: tuple[float, ...] = field(default_factory=tuple)


def classify_status(status: int) -> NetworkErrorKind:
    if status in (404, 410):
        return NetworkErrorKind.NOT_FOUND
    if status == 403:
        return NetworkErrorKind.FORBIDDEN
    if status in (408, 504):
        return NetworkErrorKind.TIMEOUT
    if status >= 500:
        return NetworkErrorKind.SERVER_ERROR
    return NetworkErrorKind.UNKNOWN


def classify_exception(exc: BaseException) -> NetworkErrorKind:
    """Map a transport exception to a NetworkErrorKind."""
    if isinstance(exc, NetworkError):
        return exc.kind
    if isinstance(exc, (asyncio.TimeoutError, aiohttp.ServerTimeoutError)):
        return NetworkErrorKind.TIMEOUT
    if isinstance(exc, aiohttp.ClientConnectorError):
        # DNS failures and refused connections mean the site is not there
        if isinstance(exc.os_error, (socket.gaierror, ConnectionRefusedError)):
            return NetworkErrorKind.NOT_FOUND
        return NetworkErrorKind.OFFLINE
    if isinstance(exc, (aiohttp.ClientConnectionError, ConnectionError)):
        return NetworkErrorKind.OFFLINE
    if isinstance(exc, aiohttp.ClientResponseError) and exc.status:
        return classify_status(exc.status)
    return NetworkErrorKind.UNKNOWN


class HttpClient:
    """Fetches raw page bytes for the extraction pipeline."""

    def __init__(
        self,
        config: Optional[FetcherConfig] = None,
        *,
        sleep: SleepFunc = asyncio.sleep,
        headers: Optional[BrowserHeaderProfile] = None,
    ):
        self.config = config or FetcherConfig()
        self._sleep = sleep
        self.header_profile = headers or BrowserHeaderProfile(
            user_agent=self.config.user_agent,
            accept_language=self.config.accept_language,
        )
        self.session: Optional[aiohttp.ClientSession] = None
        self._is_initialized = False

        logger.debug(
            "HTTP client created",
            max_attempts=self.config.max_attempts,
            timeout=self.config.timeout,
            max_redirects=self.config.max_redirects,
        )

    async def initialize(self) -> None:
        if self.session is None:
            self.session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.config.timeout))
            self._is_initialized = True

    async def close(self) -> None:
        if self.session:
            await self.session.close()
            self.session = None
        self._is_initialized = False

    async def __aenter__(self) -> "HttpClient":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _is_retryable(self, exc: BaseException) -> bool:
        if isinstance(exc, NetworkError) and exc.status in self.config.non_retryable_statuses:
            return False
        return True

    def _policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.config.max_attempts,
            attempt_timeout=self.config.timeout,
            backoff=linear_backoff(self.config.backoff_base_seconds, self.config.backoff_jitter_seconds),
            is_retryable=self._is_retryable,
        )

    async def _attempt(self, url: str, attempt: int) -> RawResponse:
        assert self.session is not None
        logger.info("Fetching", url=url, attempt=attempt, max_attempts=self.config.max_attempts)

        async with self.session.get(
            url,
            headers=self.header_profile.build(),
            allow_redirects=True,
            max_redirects=self.config.max_redirects,
        ) as response:
            if not 200 <= response.status < 400:
                increment("fetch_attempts_total", labels={"result": f"{response.status // 100}xx"})
                raise NetworkError(
                    classify_status(response.status),
                    status=response.status,
                    details={"status": response.status, "url": url},
                )
            body = await response.read()
            increment("fetch_attempts_total", labels={"result": "ok"})
            return RawResponse(
                body=body,
                headers={key: value for key, value in response.headers.items()},
                status=response.status,
                url=url,
                final_url=str(response.url),
                attempts=attempt,
            )

    async def fetch(self, url: str) -> RawResponse:
        """
        Fetch ``url`` and return the undecoded body.

        Raises:
            NetworkError: classified failure of the last attempt
            EmptyUpstreamResponseError: the site answered with an empty body
        """
        if not self._is_initialized:
            raise RuntimeError("HTTP client not initialized. Call initialize() first.")

        start_time = time.monotonic()
        pre_delay = random.uniform(self.config.pre_request_delay_min, self.config.pre_request_delay_max)
        logger.debug("Pre-request delay", url=url, delay=round(pre_delay, 3))
        await self._sleep(pre_delay)

        state = RetryState()
        try:
            response = await retry_async(
                lambda attempt: self._attempt(url, attempt),
                self._policy(),
                sleep=self._sleep,
                state=state,
            )
        except NetworkError as e:
            e.attempts = state.attempts
            logger.warning("Fetch failed", url=url, kind=e.kind.value, status=e.status, attempts=state.attempts)
            raise
        except (asyncio.TimeoutError, aiohttp.ClientError, OSError) as e:
            kind = classify_exception(e)
            logger.warning("Fetch failed", url=url, kind=kind.value, attempts=state.attempts, error=str(e))
            increment("fetch_attempts_total", labels={"result": kind.value})
            raise NetworkError(kind, attempts=state.attempts, details={"url": url}) from e
        finally:
            observe("fetch_latency_seconds", time.monotonic() - start_time)

        if not response.body:
            raise EmptyUpstreamResponseError(details={"url": url})

        logger.info(
            "Fetched",
            url=url,
            status=response.status,
            bytes=len(response.body),
            attempts=state.attempts,
        )
        return RawResponse(
            body=response.body,
            headers=response.headers,
            status=response.status,
            url=response.url,
            final_url=response.final_url,
            attempts=state.attempts,
            backoff_delays=tuple(state.delays),
        )
