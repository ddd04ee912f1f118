from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    """Stripped value of an environment variable; unset or blank gives default."""
    v = os.getenv(key, "").strip()
    return v or default


def _env_int(key: str, default: int) -> int:
    raw = _env(key)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{key} must be an integer, got: {raw!r}") from e


def _env_float(key: str, default: float) -> float:
    raw = _env(key)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{key} must be a number, got: {raw!r}") from e


@dataclass(frozen=True)
class ProjectPaths:
    root: Path
    reports_dir: Path
    filings_dir: Path


def get_paths() -> ProjectPaths:
    """
    Output locations for rate filings.

    The repo root is two levels above this file (<root>/premium_engine/utils/).
    PREMIUM_ENGINE_REPORTS_DIR moves reports (and filings under it) elsewhere.
    """
    root = Path(__file__).resolve().parents[2]
    reports_dir = Path(_env("PREMIUM_ENGINE_REPORTS_DIR") or root / "reports")
    return ProjectPaths(root=root, reports_dir=reports_dir, filings_dir=reports_dir / "filings")


@dataclass(frozen=True)
class EngineSettings:
    # Cap on concurrent risk-assessment fetches for a group request
    max_concurrency: int = 8

    # Per-fetch timeout; a timeout fails soft into the neutral path
    fetch_timeout_seconds: float = 5.0

    calculation_version: str = "2.0.0"
    standard_calculation_version: str = "1.0.0"
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got: {self.max_concurrency}")
        if self.fetch_timeout_seconds <= 0:
            raise ValueError(f"fetch_timeout_seconds must be > 0, got: {self.fetch_timeout_seconds}")


def get_engine_settings() -> EngineSettings:
    """
    Runtime settings via environment variables.

    Env:
      PREMIUM_ENGINE_MAX_CONCURRENCY (default: 8)
      PREMIUM_ENGINE_FETCH_TIMEOUT   (default: 5.0 seconds)
      PREMIUM_ENGINE_CALC_VERSION    (default: 2.0.0)
      PREMIUM_ENGINE_LOG_LEVEL       (default: INFO)
    """
    return EngineSettings(
        max_concurrency=_env_int("PREMIUM_ENGINE_MAX_CONCURRENCY", 8),
        fetch_timeout_seconds=_env_float("PREMIUM_ENGINE_FETCH_TIMEOUT", 5.0),
        calculation_version=_env("PREMIUM_ENGINE_CALC_VERSION", "2.0.0") or "2.0.0",
        log_level=(_env("PREMIUM_ENGINE_LOG_LEVEL", "INFO") or "INFO").upper(),
    )


def configure_logging(settings: Optional[EngineSettings] = None) -> None:
    """
    Basic logging setup for scripts and notebooks.
    The library itself never installs handlers.
    """
    settings = settings or get_engine_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@dataclass(frozen=True)
class AwsConfig:
    region: str
    s3_bucket: Optional[str]
    s3_prefix: str

    @property
    def enabled(self) -> bool:
        return self.s3_bucket is not None

    @property
    def filings_prefix(self) -> str:
        return f"{self.s3_prefix.rstrip('/')}/filings"


def get_aws_config() -> AwsConfig:
    """
    S3 target for rate filing uploads. Uploads stay off unless a bucket is set.

    Env:
      AWS_REGION (default: us-east-1)
      S3_BUCKET  (optional)
      S3_PREFIX  (default: premium-engine)
    """
    return AwsConfig(
        region=_env("AWS_REGION", "us-east-1") or "us-east-1",
        s3_bucket=_env("S3_BUCKET"),
        s3_prefix=_env("S3_PREFIX", "premium-engine") or "premium-engine",
    )
