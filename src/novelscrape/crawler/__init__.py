"""
Fetcher for novel pages.

Issues browser-like GET requests, retries transient failures with
jittered linear backoff and returns the undecoded body so the encoding
detector sees the exact wire bytes.
"""

from .http_client import HttpClient, RawResponse, classify_exception, classify_status
from .retry import RetryPolicy, RetryState, linear_backoff, retry_async
from .user_agents import BrowserHeaderProfile

__all__ = [
    "BrowserHeaderProfile",
    "HttpClient",
    "RawResponse",
    "RetryPolicy",
    "RetryState",
    "classify_exception",
    "classify_status",
    "linear_backoff",
    "retry_async",
]
