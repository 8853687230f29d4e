"""
novelscrape - chapter text extraction for Chinese web-novel sites.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .config import Config
from .errors import ScrapeError
from .pipeline import ScrapePipeline, ScrapeResult

__all__ = ["__version__", "Config", "ScrapeError", "ScrapePipeline", "ScrapeResult"]
