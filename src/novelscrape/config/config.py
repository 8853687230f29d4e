"""
Configuration management for novelscrape using Pydantic.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, ClassVar, List, Optional, cast

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Setup Logging ---
log = logging.getLogger(__name__)

# Sites that routinely omit or misdeclare their charset and wrap chapters in reader chrome.
DEFAULT_KNOWN_NOVEL_DOMAINS = ["69shuba", "qidian", "zongheng", "17k", "jjwxc", "hongxiu"]

# --- Nested Configuration Models ---


class FetcherConfig(BaseModel):
    """HTTP fetch configuration."""

    timeout: float = Field(default=45.0, description="Per-attempt request timeout in seconds.")
    max_attempts: int = Field(default=3, ge=1, description="Total fetch attempts including the first one.")
    max_redirects: int = Field(default=10, ge=0, description="Maximum redirects followed per attempt.")
    pre_request_delay_min: float = Field(default=1.0, ge=0, description="Lower bound of the initial jitter delay.")
    pre_request_delay_max: float = Field(default=3.0, ge=0, description="Upper bound of the initial jitter delay.")
    backoff_base_seconds: float = Field(default=2.0, ge=0, description="Backoff grows by this much per attempt.")
    backoff_jitter_seconds: float = Field(default=3.0, ge=0, description="Maximum random jitter added to backoff.")
    non_retryable_statuses: List[int] = Field(default=[403, 404])
    user_agent: str = Field(
        default=(
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
        ),
        description="User-Agent string for HTTP requests.",
    )
    accept_language: str = Field(default="zh-CN,zh;q=0.9,en;q=0.8")

    @field_validator("pre_request_delay_max")
    @classmethod
    def validate_delay_window(cls, v: float, info: Any) -> float:
        lower = info.data.get("pre_request_delay_min", 0.0)
        if v < lower:
            raise ValueError("pre_request_delay_max must not be lower than pre_request_delay_min")
        return v


class ExtractionSettings(BaseModel):
    """Thresholds and site lists for the extraction cascade and content gate."""

    selector_min_length: int = Field(default=500, description="Tier 1 minimum cleaned length.")
    chapter_match_min_length: int = Field(default=1000, description="Tier 2 minimum raw chapter match length.")
    chapter_min_length: int = Field(default=800, description="Tier 2 minimum cleaned chapter length.")
    candidate_min_length: int = Field(default=50, description="Tier 3 minimum cleaned candidate length.")
    max_leaf_fragments: int = Field(default=20, description="Tier 3 leaf fallback fragment cap.")
    title_min_length: int = Field(default=5, description="Title candidates must be longer than this.")
    min_content_length: int = Field(default=20, description="Final content must be at least this long.")
    quality_ratio_threshold: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Maximum share of UI keywords in content from known novel domains.",
    )
    known_novel_domains: List[str] = Field(default_factory=lambda: list(DEFAULT_KNOWN_NOVEL_DOMAINS))
    high_byte_ratio: float = Field(default=0.3, ge=0.0, le=1.0, description="High-byte density implying GBK.")
    high_byte_sample_size: int = Field(default=1000, description="Bytes sampled for the high-byte heuristic.")
    meta_scan_bytes: int = Field(default=2048, description="Bytes scanned for a meta charset declaration.")

    @field_validator("known_novel_domains")
    @classmethod
    def normalize_domains(cls, v: List[str]) -> List[str]:
        return [domain.strip().lower() for domain in v if domain.strip()]


class WebConfig(BaseModel):
    """Configuration for the HTTP API."""

    host: str = Field(default="127.0.0.1", description="Host for the web server.")
    port: int = Field(default=8000, description="Port for the web server.")
    cors_origins: List[str] = Field(default_factory=lambda: ["http://localhost:3000"])
    request_timeout: float = Field(default=120.0, gt=0, description="Ceiling on one scrape request in seconds.")


class MonitoringConfig(BaseModel):
    """Configuration for logging and metrics."""

    log_level: str = Field(default="INFO", description="Logging level (e.g., DEBUG, INFO, WARNING).")
    log_file: str | None = Field(default=None, description="Path to log file. If None, logs to console.")
    metrics_enabled: bool = True

    @field_validator("log_file", mode="before")
    @classmethod
    def create_parent_dir(cls, v: str | Path | None) -> str | None:
        if v is None:
            return None
        path = Path(v)
        path.parent.mkdir(parents=True, exist_ok=True)
        return str(path)


# --- Main Configuration Class ---


class Config(BaseSettings):
    project_name: str = "novelscrape"
    version: str = "0.1.0"
    fetcher: FetcherConfig = Field(default_factory=FetcherConfig)
    extraction: ExtractionSettings = Field(default_factory=ExtractionSettings)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)
    web: WebConfig = Field(default_factory=WebConfig)

    model_config = SettingsConfigDict(env_prefix="NOVELSCRAPE_", env_nested_delimiter="__", case_sensitive=False)

    @classmethod
    def from_yaml(cls, path: Path) -> Config:
        log.debug("Loading configuration from YAML file: %s", path)
        if not path.is_file():
            raise FileNotFoundError(f"Configuration file not found or is not a file: {path}")
        with open(path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f)
        if not yaml_data:
            log.warning("Configuration file is empty: %s. Using default settings.", path)
            return cls.model_validate({})
        return cls.model_validate(yaml_data)


def find_config_file() -> Path | None:
    current_dir = Path.cwd()
    for name in ("novelscrape.yaml", "novelscrape.yml", "config.yaml", "config.yml"):
        path = current_dir / name
        if path.exists():
            return path
    return None


def load_config(path: Optional[Path] = None) -> Config:
    """Load configuration from an explicit path, a discovered file, or defaults."""
    config_path = path or find_config_file()
    if config_path is None:
        return Config()
    return Config.from_yaml(config_path)


# --- Lazy Configuration Loader ---


class LazyConfig:
    """
    A proxy for the Config object that delays its loading and validation
    until an attribute is first accessed.
    """

    _config: ClassVar[Config | None] = None
    _lock: ClassVar[threading.Lock] = threading.Lock()

    def __getattr__(self, name: str) -> Any:
        if self.__class__._config is None:
            with self.__class__._lock:
                if self.__class__._config is None:
                    self.__class__._config = self._load_config_with_fallback()
        return getattr(self.__class__._config, name)

    def _load_config_with_fallback(self) -> Config:
        config_path = find_config_file()
        if config_path:
            try:
                log.info("Lazy loading configuration from: %s", config_path)
                return Config.from_yaml(config_path)
            except (ValidationError, FileNotFoundError, yaml.YAMLError) as e:
                log.error(
                    "Failed to load or validate configuration from '%s': %s. Falling back to default settings.",
                    config_path,
                    e,
                )
        else:
            log.info("No config file found. Using default settings for lazy load.")

        try:
            return Config()
        except ValidationError as e:
            log.critical("FATAL: Default configuration is invalid: %s", e, exc_info=True)
            raise RuntimeError(f"Default configuration is invalid, cannot start: {e}") from e


settings: "Config" = cast("Config", LazyConfig())
