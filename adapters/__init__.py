"""
Recruiting Platform Adapters
Each adapter describes one platform for the shared submission engine.
Supports: Liepin, 51job, Zhaopin.
"""

from typing import Dict, Optional, Type

from core.config import PlatformConfig
from core.models import PlatformType

from .base import PlatformAdapter, cascade, clean_text
from .liepin import LiepinAdapter
from .job51 import Job51Adapter
from .zhilian import ZhilianAdapter


# Explicit platform id -> adapter registry
ADAPTERS: Dict[str, Type[PlatformAdapter]] = {
    PlatformType.LIEPIN.value: LiepinAdapter,
    PlatformType.JOB51.value: Job51Adapter,
    PlatformType.ZHILIAN.value: ZhilianAdapter,
}


def get_adapter(platform_id: str, config: Optional[PlatformConfig] = None) -> PlatformAdapter:
    """
    Instantiate the adapter registered for a platform id.

    Raises:
        KeyError: unknown platform id
    """
    key = platform_id.lower()
    if key not in ADAPTERS:
        raise KeyError(f"Unknown platform '{platform_id}'. Available: {', '.join(ADAPTERS)}")
    return ADAPTERS[key](config)


__all__ = [
    "ADAPTERS",
    "get_adapter",
    "PlatformAdapter",
    "LiepinAdapter",
    "Job51Adapter",
    "ZhilianAdapter",
    "cascade",
    "clean_text",
]
