"""
Unified Configuration Module

Process settings come from the environment (optionally a .env file loaded by
main.py). Per-platform run settings come from a YAML file:

    platforms:
      liepin:
        keywords: ["python", "backend"]
        city_code: "020"
        max_page: 5
      job51:
        keywords: ["python"]

Import from this module: from core.config import config
"""

import os
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field

import yaml

from .models import DeviceProfile, PlatformType

logger = logging.getLogger(__name__)


@dataclass
class AppConfig:
    """Process-wide settings."""

    # === Browser ===
    HEADLESS: bool = os.getenv("HEADLESS", "false").lower() == "true"
    SLOW_MO_MS: int = int(os.getenv("SLOW_MO_MS", "50"))
    BROWSER_TIMEOUT_MS: int = int(os.getenv("BROWSER_TIMEOUT_MS", "30000"))

    # === Authentication ===
    QR_LOGIN_TIMEOUT_SECONDS: float = float(os.getenv("QR_LOGIN_TIMEOUT_SECONDS", "1200"))
    QR_POLL_INTERVAL_SECONDS: float = float(os.getenv("QR_POLL_INTERVAL_SECONDS", "2"))

    # === Pagination ===
    DEFAULT_MAX_PAGE: int = int(os.getenv("DEFAULT_MAX_PAGE", "5"))
    MAX_RETRIES_PER_PAGE: int = int(os.getenv("MAX_RETRIES_PER_PAGE", "3"))
    PAGE_READY_TIMEOUT_SECONDS: float = float(os.getenv("PAGE_READY_TIMEOUT_SECONDS", "10"))
    PAGE_RETRY_BACKOFF_SECONDS: float = float(os.getenv("PAGE_RETRY_BACKOFF_SECONDS", "2"))

    # === Submission ===
    SUBMIT_MAX_ATTEMPTS: int = int(os.getenv("SUBMIT_MAX_ATTEMPTS", "10"))
    SUBMIT_RELOAD_EVERY: int = int(os.getenv("SUBMIT_RELOAD_EVERY", "3"))
    SUBMIT_RETRY_DELAY_SECONDS: float = float(os.getenv("SUBMIT_RETRY_DELAY_SECONDS", "1"))

    # === Human-like Delays ===
    MIN_HUMAN_DELAY: float = float(os.getenv("MIN_HUMAN_DELAY", "0.5"))
    MAX_HUMAN_DELAY: float = float(os.getenv("MAX_HUMAN_DELAY", "1.5"))

    # === Diagnostics ===
    SNAPSHOT_ON_FAILURE: bool = os.getenv("SNAPSHOT_ON_FAILURE", "true").lower() == "true"
    MAX_SNAPSHOTS: int = int(os.getenv("MAX_SNAPSHOTS", "50"))

    # === Paths ===
    DATA_DIR: str = os.getenv("DATA_DIR", "./data")
    LOG_DIR: str = os.getenv("LOG_DIR", "./logs")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    RUN_CONFIG_PATH: str = os.getenv("RUN_CONFIG_PATH", "./config.yaml")

    def validate(self) -> List[str]:
        """Validate configuration and return a list of problems."""
        problems = []

        if self.QR_POLL_INTERVAL_SECONDS <= 0:
            problems.append("QR_POLL_INTERVAL_SECONDS must be positive")
        if self.QR_LOGIN_TIMEOUT_SECONDS < self.QR_POLL_INTERVAL_SECONDS:
            problems.append("QR_LOGIN_TIMEOUT_SECONDS must be at least one poll interval")
        if self.DEFAULT_MAX_PAGE < 1:
            problems.append("DEFAULT_MAX_PAGE must be >= 1")
        if self.MAX_RETRIES_PER_PAGE < 1:
            problems.append("MAX_RETRIES_PER_PAGE must be >= 1")
        if self.SUBMIT_MAX_ATTEMPTS < 1:
            problems.append("SUBMIT_MAX_ATTEMPTS must be >= 1")
        if self.MAX_SNAPSHOTS < 0:
            problems.append("MAX_SNAPSHOTS must be >= 0")
        if self.SUBMIT_RELOAD_EVERY < 1:
            problems.append("SUBMIT_RELOAD_EVERY must be >= 1")
        if self.LOG_LEVEL not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            problems.append(f"Unknown LOG_LEVEL: {self.LOG_LEVEL}")

        return problems


# Global config instance
config = AppConfig()


def get_config() -> AppConfig:
    """Get the application configuration."""
    return config


@dataclass
class PlatformConfig:
    """Settings for one platform run."""
    platform: PlatformType
    keywords: List[str] = field(default_factory=list)
    city_code: str = ""
    salary: str = ""
    pub_time: str = ""
    max_page: int = 5
    max_retries_per_page: int = 3
    device_profile: DeviceProfile = DeviceProfile.DESKTOP
    greeting: Optional[str] = None
    credential_path: Optional[Path] = None
    blacklist_path: Optional[Path] = None
    enabled: bool = True

    @classmethod
    def from_dict(
        cls,
        platform: PlatformType,
        data: Optional[Dict[str, Any]] = None,
        app_config: Optional[AppConfig] = None,
    ) -> "PlatformConfig":
        app_config = app_config or config
        data = dict(data or {})
        platform_dir = Path(app_config.DATA_DIR) / platform.value

        keywords = data.get("keywords") or []
        if isinstance(keywords, str):
            keywords = [keywords]

        max_page = int(data.get("max_page", app_config.DEFAULT_MAX_PAGE))
        max_retries = int(data.get("max_retries_per_page", app_config.MAX_RETRIES_PER_PAGE))
        if max_page < 1 or max_retries < 1:
            raise ValueError(f"{platform.value}: max_page and max_retries_per_page must be >= 1")

        return cls(
            platform=platform,
            keywords=[str(k).strip() for k in keywords if str(k).strip()],
            city_code=str(data.get("city_code", "") or ""),
            salary=str(data.get("salary", "") or ""),
            pub_time=str(data.get("pub_time", "") or ""),
            max_page=max_page,
            max_retries_per_page=max_retries,
            device_profile=DeviceProfile(data.get("device_profile", DeviceProfile.DESKTOP.value)),
            greeting=data.get("greeting"),
            credential_path=Path(data.get("credential_path") or platform_dir / "cookie.json"),
            blacklist_path=Path(data.get("blacklist_path") or platform_dir / "blacklist.json"),
            enabled=bool(data.get("enabled", True)),
        )


def load_run_config(path, app_config: Optional[AppConfig] = None) -> Dict[str, PlatformConfig]:
    """
    Load per-platform run settings from a YAML file.

    Args:
        path: YAML file path
        app_config: Settings that supply defaults (default: module config)

    Returns:
        Mapping of platform id to PlatformConfig, in file order
    """
    path = Path(path)
    if not path.exists():
        logger.warning(f"Run config not found: {path}")
        return {}

    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    platforms = raw.get("platforms") or {}
    if not isinstance(platforms, dict):
        raise ValueError(f"'platforms' must be a mapping in {path}")

    known = {p.value for p in PlatformType}
    result: Dict[str, PlatformConfig] = {}
    for name, data in platforms.items():
        platform_id = str(name).lower()
        if platform_id not in known:
            raise ValueError(f"Unknown platform '{name}' in {path}")
        result[platform_id] = PlatformConfig.from_dict(PlatformType(platform_id), data, app_config)

    logger.info(f"Loaded run config for {len(result)} platform(s) from {path}")
    return result
