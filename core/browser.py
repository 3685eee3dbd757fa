#!/usr/bin/env python3
"""
Platform Session Registry

Owns the Playwright resources (driver, browser, context, page) of every
platform session, keyed by platform id. There is at most one live session
per platform; sessions are opened and closed explicitly and a close always
releases every resource, even when some of the releases fail.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple
from dataclasses import dataclass, field
from datetime import datetime

from playwright.async_api import async_playwright

from .error_handler import ResourceError
from .models import DeviceProfile

logger = logging.getLogger(__name__)


DEVICE_CONTEXT_OPTIONS: Dict[DeviceProfile, Dict[str, Any]] = {
    DeviceProfile.DESKTOP: {
        "viewport": {"width": 1920, "height": 1080},
        "user_agent": (
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/135.0.0.0 Safari/537.36"
        ),
        "locale": "zh-CN",
    },
    DeviceProfile.MOBILE: {
        "viewport": {"width": 375, "height": 812},
        "device_scale_factor": 3,
        "is_mobile": True,
        "has_touch": True,
        "user_agent": (
            "Mozilla/5.0 (iPhone; CPU iPhone OS 13_2_3 like Mac OS X) AppleWebKit/605.1.15 "
            "(KHTML, like Gecko) Version/13.0.3 Mobile/15E148 Safari/604.1"
        ),
        "locale": "zh-CN",
    },
}

DEVICE_HEADERS: Dict[DeviceProfile, Dict[str, str]] = {
    DeviceProfile.DESKTOP: {
        "sec-ch-ua": '"Google Chrome";v="135", "Not-A.Brand";v="8", "Chromium";v="135"',
        "sec-ch-ua-mobile": "?0",
        "sec-ch-ua-platform": '"macOS"',
        "accept-language": "zh-CN,zh;q=0.9",
    },
    DeviceProfile.MOBILE: {
        "sec-ch-ua": '"Chromium";v="135", "Not A(Brand";v="99"',
        "sec-ch-ua-mobile": "?1",
        "sec-ch-ua-platform": '"iOS"',
        "accept-language": "zh-CN,zh;q=0.9",
    },
}

STEALTH_SCRIPT = """
Object.defineProperty(navigator, 'webdriver', {get: () => undefined});
window.navigator.chrome = { runtime: {} };
Object.defineProperty(navigator, 'languages', {get: () => ['zh-CN', 'zh']});
Object.defineProperty(navigator, 'plugins', {get: () => [1, 2, 3]});
"""


@dataclass
class PlatformSession:
    """Live browser resources bound to one platform."""
    platform_id: str
    playwright: Any
    browser: Any
    context: Any
    page: Any
    device_profile: DeviceProfile = DeviceProfile.DESKTOP
    created_at: datetime = field(default_factory=datetime.now)


class SessionRegistry:
    """
    Per-platform browser session registry.

    Example:
        async with SessionRegistry(headless=True) as registry:
            session = await registry.open("liepin")
            await session.page.goto("https://www.liepin.com/")
            ...
            await registry.close("liepin")
    """

    def __init__(
        self,
        headless: bool = False,
        slow_mo_ms: int = 50,
        default_timeout_ms: int = 30000,
        playwright_factory: Optional[Callable[[], Any]] = None,
    ):
        """
        Args:
            headless: Launch Chromium without a window
            slow_mo_ms: Delay Playwright inserts between operations
            default_timeout_ms: Default timeout for page operations
            playwright_factory: Replacement for async_playwright (tests)
        """
        self.headless = headless
        self.slow_mo_ms = slow_mo_ms
        self.default_timeout_ms = default_timeout_ms
        self._playwright_factory = playwright_factory or async_playwright
        self._sessions: Dict[str, PlatformSession] = {}

    async def open(
        self,
        platform_id: str,
        device_profile: DeviceProfile = DeviceProfile.DESKTOP,
    ) -> PlatformSession:
        """
        Create and register the browser resources of a platform.

        Raises:
            ResourceError: a session for `platform_id` is already open
        """
        if platform_id in self._sessions:
            raise ResourceError(f"Session for '{platform_id}' is already open; close it first")

        logger.info(f"Opening browser session for [{platform_id}] ({device_profile.value})")
        created: List[Tuple[str, Any]] = []
        try:
            playwright = await self._playwright_factory().start()
            created.append(("playwright", playwright))

            browser = await playwright.chromium.launch(
                headless=self.headless,
                slow_mo=self.slow_mo_ms,
            )
            created.append(("browser", browser))

            context = await browser.new_context(**DEVICE_CONTEXT_OPTIONS[device_profile])
            created.append(("context", context))
            await context.set_extra_http_headers(DEVICE_HEADERS[device_profile])
            await context.add_init_script(STEALTH_SCRIPT)

            page = await context.new_page()
            created.append(("page", page))
            page.set_default_timeout(self.default_timeout_ms)
        except Exception:
            logger.error(f"Failed to open session for [{platform_id}]; releasing partial resources")
            await self._release(platform_id, list(reversed(created)))
            raise

        session = PlatformSession(
            platform_id=platform_id,
            playwright=playwright,
            browser=browser,
            context=context,
            page=page,
            device_profile=device_profile,
        )
        self._sessions[platform_id] = session
        logger.info(f"[{platform_id}] browser session ready")
        return session

    def get(self, platform_id: str) -> PlatformSession:
        session = self._sessions.get(platform_id)
        if session is None:
            raise ResourceError(f"No open session for '{platform_id}'")
        return session

    def __contains__(self, platform_id: str) -> bool:
        return platform_id in self._sessions

    async def close(self, platform_id: str):
        """Release all resources of a platform. Unknown ids are ignored."""
        # Unregister first so nothing can reach the handles while they are released
        session = self._sessions.pop(platform_id, None)
        if session is None:
            return

        await self._release(platform_id, [
            ("page", session.page),
            ("context", session.context),
            ("browser", session.browser),
            ("playwright", session.playwright),
        ])
        logger.info(f"[{platform_id}] browser session closed")

    async def close_all(self):
        """Close all active sessions."""
        for platform_id in list(self._sessions.keys()):
            await self.close(platform_id)
        logger.info("All browser sessions closed")

    async def _release(self, platform_id: str, resources: List[Tuple[str, Any]]):
        # Each release is attempted independently; failures are logged only
        for kind, resource in resources:
            if resource is None:
                continue
            try:
                if kind == "playwright":
                    await resource.stop()
                else:
                    await resource.close()
            except Exception as e:
                logger.warning(f"[{platform_id}] error closing {kind}: {e}")

    def get_stats(self) -> Dict[str, Any]:
        """Get registry statistics."""
        return {
            "active_sessions": len(self._sessions),
            "platforms": list(self._sessions.keys()),
            "headless": self.headless,
        }

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close_all()
