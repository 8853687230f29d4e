"""
Defines Prometheus metrics for the scrape pipeline.
"""

from __future__ import annotations

from typing import Any, Dict

from prometheus_client import REGISTRY as _PROM_REGISTRY
from prometheus_client import Counter as _OrigCounter
from prometheus_client import Histogram as _OrigHistogram


def _duplicate_safe_factory(metric_cls):
    """Return a factory that reuses an existing collector if already present."""

    def _factory(name: str, documentation: str, *args, **kwargs):  # type: ignore[override]
        # prometheus_client registers counters without the _total suffix
        registered_name = name[: -len("_total")] if name.endswith("_total") else name
        existing = _PROM_REGISTRY._names_to_collectors.get(registered_name) or _PROM_REGISTRY._names_to_collectors.get(
            name
        )
        if existing is not None:
            return existing  # type: ignore[return-value]

        try:
            return metric_cls(name, documentation, *args, **kwargs)  # type: ignore[call-arg]
        except ValueError:
            # Registration lost the race, fall back to the now-existing collector.
            return _PROM_REGISTRY._names_to_collectors[name]  # type: ignore[return-value]

    return _factory


Counter = _duplicate_safe_factory(_OrigCounter)  # type: ignore[assignment]
Histogram = _duplicate_safe_factory(_OrigHistogram)  # type: ignore[assignment]


def _create_metrics() -> Dict[str, Any]:
    return {
        "scrape_requests_total": Counter(
            "novelscrape_scrape_requests_total",
            "Scrape requests by outcome",
            ["outcome"],
        ),
        "fetch_attempts_total": Counter(
            "novelscrape_fetch_attempts_total",
            "HTTP fetch attempts by result",
            ["result"],
        ),
        "fetch_latency_seconds": Histogram(
            "novelscrape_fetch_latency_seconds",
            "Time taken to fetch a URL including retries",
            buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0, 180.0],
        ),
        "extraction_strategy_total": Counter(
            "novelscrape_extraction_strategy_total",
            "Extraction results by winning strategy",
            ["strategy"],
        ),
        "detected_encoding_total": Counter(
            "novelscrape_detected_encoding_total",
            "Encoding decisions by label",
            ["encoding"],
        ),
    }


METRICS: Dict[str, Any] = _create_metrics()


def increment(name: str, value: float = 1.0, labels: Dict[str, Any] | None = None) -> None:
    """Increment a counter metric."""
    if name in METRICS:
        metric = METRICS[name]
        if labels is not None:
            metric.labels(**labels).inc(value)
        else:
            metric.inc(value)


def observe(name: str, value: float, labels: Dict[str, Any] | None = None) -> None:
    """Observe a histogram metric."""
    if name in METRICS:
        metric = METRICS[name]
        if labels is not None:
            metric.labels(**labels).observe(value)
        else:
            metric.observe(value)


def export_prometheus() -> bytes:
    """Export metrics in Prometheus text format."""
    from prometheus_client import generate_latest

    return generate_latest()
