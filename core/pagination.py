"""
Pagination walker.

Walks the result pages of one keyword and yields a PageReady event for each
page whose listings have rendered. The consumer processes the page and the
walk resumes with the next one. Every page gets a bounded number of attempts,
so a walk never performs more than max_page * max_retries_per_page attempts.
An anti-bot verification page ends the walk with VerificationRequired.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, List, Optional

from playwright.async_api import Error as PlaywrightError

from .browser import PlatformSession
from .diagnostics import PageSnapshotter
from .error_handler import NavigationError, VerificationRequired, is_retryable
from .models import PaginationMode, StopReason
from .selectors import SelectorResolver
from .waits import backoff_delay, poll_until

logger = logging.getLogger(__name__)


@dataclass
class PageReady:
    """A result page whose listings are ready to be processed."""
    keyword: str
    page_index: int
    attempts: int


@dataclass
class WalkStats:
    """Counters of the most recent walk."""
    keyword: str = ""
    max_page: int = 0
    attempts: int = 0
    pages_ready: int = 0
    skipped_pages: List[int] = field(default_factory=list)
    stop_reason: Optional[StopReason] = None


class PaginationWalker:
    """
    Bounded page walk for one platform session.

    Usage:
        walker = PaginationWalker(session, adapter, resolver)
        async for ready in walker.walk("python", max_page=5):
            await pipeline.process()
        print(walker.stats.stop_reason)
    """

    def __init__(
        self,
        session: PlatformSession,
        adapter: Any,
        resolver: Optional[SelectorResolver] = None,
        max_retries_per_page: int = 3,
        ready_timeout: float = 10.0,
        poll_interval: float = 0.5,
        backoff_base: float = 2.0,
        backoff_cap: float = 30.0,
        snapshots: Optional[PageSnapshotter] = None,
    ):
        if max_retries_per_page < 1:
            raise ValueError("max_retries_per_page must be >= 1")
        self.session = session
        self.adapter = adapter
        self.resolver = resolver or SelectorResolver()
        self.max_retries_per_page = max_retries_per_page
        self.ready_timeout = ready_timeout
        self.poll_interval = poll_interval
        self.backoff_base = backoff_base
        self.backoff_cap = backoff_cap
        self.snapshots = snapshots
        self._arrived = False
        self.stats = WalkStats()

    @property
    def page(self):
        return self.session.page

    @property
    def platform_id(self) -> str:
        return self.adapter.platform_id

    async def walk(self, keyword: str, max_page: int) -> AsyncIterator[PageReady]:
        """
        Yield each ready result page of `keyword`, starting at page 1.

        The walk ends when max_page is reached, when the site offers no way
        to the next page, or when the daily submission limit shows up.

        Raises:
            VerificationRequired: The site shows an anti-bot challenge
        """
        if max_page < 1:
            raise ValueError("max_page must be >= 1")
        self.stats = WalkStats(keyword=keyword, max_page=max_page)
        logger.info(f"[{self.platform_id}] walking '{keyword}' (max {max_page} page(s))")

        page_index = 1
        while page_index <= self.stats.max_page:
            if await self._limit_reached():
                self._stop(StopReason.DAILY_LIMIT)
                return

            ready = False
            attempts = 0
            # True once the transition to page_index went through
            self._arrived = False
            for attempt in range(1, self.max_retries_per_page + 1):
                attempts = attempt
                self.stats.attempts += 1
                try:
                    if attempt == 1:
                        if not await self._advance(keyword, page_index):
                            self._stop(StopReason.NO_NEXT_PAGE)
                            return
                    else:
                        delay = backoff_delay(attempt - 1, self.backoff_base, self.backoff_cap)
                        logger.info(
                            f"[{self.platform_id}] page {page_index} not ready, "
                            f"retry {attempt}/{self.max_retries_per_page} in {delay:.1f}s"
                        )
                        await asyncio.sleep(delay)
                        await self._retry_navigation(keyword, page_index)
                    await self._close_overlays()
                    ready = await poll_until(
                        self._cards_present,
                        timeout=self.ready_timeout,
                        interval=self.poll_interval,
                        description=f"{self.platform_id} page {page_index} listings",
                    )
                except Exception as e:
                    if not is_retryable(e):
                        raise
                    logger.warning(f"[{self.platform_id}] page {page_index} attempt {attempt} failed: {e}")
                    ready = False
                if ready:
                    break
                await self._check_verification()

            if not ready:
                logger.warning(
                    f"[{self.platform_id}] page {page_index} skipped after {attempts} attempt(s)"
                )
                self.stats.skipped_pages.append(page_index)
                if self.snapshots is not None:
                    await self.snapshots.capture(
                        self.page, self.platform_id, f"{keyword}_page{page_index}_skipped"
                    )
                page_index += 1
                continue

            if page_index == 1:
                await self._apply_page_count()

            self.stats.pages_ready += 1
            yield PageReady(keyword=keyword, page_index=page_index, attempts=attempts)

            if await self._limit_reached():
                self._stop(StopReason.DAILY_LIMIT)
                return
            page_index += 1

        self._stop(StopReason.MAX_PAGE)

    async def _check_verification(self):
        if await self.adapter.verification_required(self.page, self.resolver):
            raise VerificationRequired(f"{self.platform_id} is showing an anti-bot verification")

    async def _limit_reached(self) -> bool:
        await self._check_verification()
        return await self.adapter.daily_limit_reached(self.page, self.resolver)

    def _stop(self, reason: StopReason):
        self.stats.stop_reason = reason
        logger.info(
            f"[{self.platform_id}] walk of '{self.stats.keyword}' stopped: {reason.value} "
            f"({self.stats.pages_ready} page(s) ready, {self.stats.attempts} attempt(s), "
            f"skipped {self.stats.skipped_pages or 'none'})"
        )

    # === Navigation ===

    async def _advance(self, keyword: str, page_index: int) -> bool:
        """Move to `page_index`. Returns False when no affordance exists."""
        mode = self.adapter.pagination_mode
        if page_index == 1 or mode is PaginationMode.URL:
            await self.page.goto(self.adapter.search_url(keyword, page_index))
        elif mode is PaginationMode.JUMP:
            if not await self._jump(page_index):
                return False
        elif not await self._click_next():
            return False
        self._arrived = True
        return True

    async def _retry_navigation(self, keyword: str, page_index: int):
        """
        Load `page_index` again.

        NEXT mode repeats the click only when the first one never went
        through, otherwise the reload already shows the target page.
        """
        mode = self.adapter.pagination_mode
        if page_index == 1 or mode is PaginationMode.URL:
            await self.page.goto(self.adapter.search_url(keyword, page_index))
            self._arrived = True
            return
        await self.page.reload()
        if mode is PaginationMode.JUMP:
            moved = await self._jump(page_index)
        elif not self._arrived:
            moved = await self._click_next()
        else:
            moved = True
        if not moved:
            raise NavigationError(f"cannot get back to page {page_index}")
        self._arrived = True

    async def _jump(self, page_index: int) -> bool:
        field_cascade = self.adapter.cascade("jump_input")
        button_cascade = self.adapter.cascade("jump_button")
        if field_cascade is None or button_cascade is None:
            return False
        field_match = await self.resolver.resolve(field_cascade, self.page)
        button_match = await self.resolver.resolve(button_cascade, self.page)
        if not field_match or not button_match:
            logger.info(f"[{self.platform_id}] no jump-to-page control")
            return False
        await field_match.locator.first.fill(str(page_index))
        await button_match.locator.first.click()
        logger.debug(f"[{self.platform_id}] jumped to page {page_index}")
        return True

    async def _click_next(self) -> bool:
        next_cascade = self.adapter.cascade("next_page")
        if next_cascade is None:
            return False
        match = await self.resolver.resolve(next_cascade, self.page)
        if not match:
            logger.info(f"[{self.platform_id}] no next-page control")
            return False
        control = match.locator.first
        if await self._is_disabled(control):
            logger.info(f"[{self.platform_id}] next-page control is disabled")
            return False
        await control.click()
        return True

    @staticmethod
    async def _is_disabled(control: Any) -> bool:
        if await control.get_attribute("disabled") is not None:
            return True
        if (await control.get_attribute("aria-disabled") or "").lower() == "true":
            return True
        return "disabled" in (await control.get_attribute("class") or "")

    # === Readiness ===

    async def _close_overlays(self):
        overlay = self.adapter.cascade("overlay_close")
        if overlay is None:
            return
        match = await self.resolver.resolve(overlay, self.page)
        if not match:
            return
        try:
            await match.locator.first.click()
            logger.debug(f"[{self.platform_id}] closed overlay ({match.selector})")
        except PlaywrightError as e:
            logger.debug(f"[{self.platform_id}] overlay close failed: {e}")

    async def _cards_present(self) -> bool:
        return await self.resolver.resolve(self.adapter.require_cascade("job_card"), self.page) is not None

    async def _apply_page_count(self):
        count = await self.adapter.read_page_count(self.page, self.resolver)
        if count and 0 < count < self.stats.max_page:
            logger.info(f"[{self.platform_id}] site shows {count} page(s), lowering max_page")
            self.stats.max_page = count
