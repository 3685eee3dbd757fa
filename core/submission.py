"""
Submission pipeline.

Processes the listings of one ready result page: blacklist filter, duplicate
check, then either ticking the listing for a batch submit or sending a
greeting to the recruiter. Every listing yields exactly one SubmissionRecord.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional, Set, Tuple

from playwright.async_api import Error as PlaywrightError

from .auth import AuthController
from .browser import PlatformSession
from .diagnostics import PageSnapshotter
from .error_handler import DailyLimitReached, TransientUIError, is_retryable
from .filters import FilterEngine
from .models import BlacklistSet, Listing, SubmissionOutcome, SubmissionRecord
from .report import ReportAggregator
from .selectors import SelectorResolver
from .waits import human_delay, poll_until

logger = logging.getLogger(__name__)

CLICK_EVENTS = ("mousedown", "mouseup", "click")


async def layered_click(locator: Any) -> Optional[str]:
    """
    Click an element, escalating when the page swallows the click.

    Tries a native click, then a scripted el.click(), then synthetic
    mousedown/mouseup/click events.

    Returns:
        Name of the strategy that worked, or None if all failed
    """
    try:
        await locator.click()
        return "native"
    except PlaywrightError as e:
        logger.debug(f"Native click failed: {e}")

    try:
        await locator.evaluate("el => el.click()")
        return "script"
    except PlaywrightError as e:
        logger.debug(f"Scripted click failed: {e}")

    try:
        for event in CLICK_EVENTS:
            await locator.dispatch_event(event)
        return "dispatch"
    except PlaywrightError as e:
        logger.debug(f"Dispatched click failed: {e}")

    return None


class SubmissionPipeline:
    """
    Per-page submission for one platform.

    The `seen` set is shared across pages and keywords of a run so a
    (company, title) pair is submitted at most once.
    """

    def __init__(
        self,
        session: PlatformSession,
        adapter: Any,
        resolver: SelectorResolver,
        *,
        auth: AuthController,
        blacklist: Optional[BlacklistSet] = None,
        filter_engine: Optional[FilterEngine] = None,
        report: Optional[ReportAggregator] = None,
        seen: Optional[Set[Tuple[str, str]]] = None,
        max_attempts: int = 10,
        reload_every: int = 3,
        retry_delay: float = 1.0,
        greeting: Optional[str] = None,
        ui_timeout: float = 10.0,
        poll_interval: float = 0.5,
        min_delay: float = 0.0,
        max_delay: float = 0.0,
        snapshots: Optional[PageSnapshotter] = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.session = session
        self.adapter = adapter
        self.resolver = resolver
        self.auth = auth
        self.blacklist = blacklist or BlacklistSet()
        self.filter_engine = filter_engine or FilterEngine()
        self.report = report if report is not None else ReportAggregator()
        self.seen = seen if seen is not None else set()
        self.max_attempts = max_attempts
        self.reload_every = max(reload_every, 1)
        self.retry_delay = retry_delay
        self.greeting = greeting or adapter.greeting
        self.ui_timeout = ui_timeout
        self.poll_interval = poll_interval
        self.min_delay = min_delay
        self.max_delay = max_delay
        self.snapshots = snapshots
        self._selected: List[Listing] = []

    @property
    def page(self):
        return self.session.page

    @property
    def platform_id(self) -> str:
        return self.adapter.platform_id

    async def process(self) -> List[SubmissionRecord]:
        """
        Process every listing on the current page in display order.

        Raises:
            DailyLimitReached: The cap notice showed up after the batch submit;
                the page's records are reported first
        """
        self.auth.require_authenticated()

        listings = await self.adapter.extract_listings(self.page, self.resolver)
        logger.info(f"[{self.platform_id}] {len(listings)} listing(s) on page")

        records: List[SubmissionRecord] = []
        self._selected = []

        for listing in listings:
            reason = self.filter_engine.match_reason(listing, self.blacklist)
            if reason:
                logger.info(f"[{self.platform_id}] skip {listing.describe()}: {reason}")
                records.append(SubmissionRecord(listing, SubmissionOutcome.SKIPPED, reason))
                continue
            if listing.dedupe_key in self.seen:
                logger.info(f"[{self.platform_id}] skip {listing.describe()}: duplicate")
                records.append(SubmissionRecord(listing, SubmissionOutcome.SKIPPED, "duplicate"))
                continue
            self.seen.add(listing.dedupe_key)

            if self.adapter.batch_submit:
                ok, error = await self._with_retries(listing.describe(), lambda item=listing: self._select(item))
                if ok:
                    self._selected.append(listing)
                else:
                    records.append(SubmissionRecord(listing, SubmissionOutcome.FAILED, error))
                    await self._snapshot(f"select_failed_{listing.company}")
            else:
                ok, error = await self._with_retries(listing.describe(), lambda item=listing: self._greet(item))
                if ok:
                    logger.info(f"[{self.platform_id}] greeted {listing.describe()}")
                    records.append(SubmissionRecord(listing, SubmissionOutcome.SUBMITTED))
                else:
                    records.append(SubmissionRecord(listing, SubmissionOutcome.FAILED, error))
                    await self._snapshot(f"greet_failed_{listing.company}")
            await human_delay(self.min_delay, self.max_delay)

        limit = None
        if self._selected:
            try:
                records.extend(await self._submit_selected())
            except DailyLimitReached as e:
                limit = e
                records.extend(
                    SubmissionRecord(item, SubmissionOutcome.FAILED, str(e)) for item in self._selected
                )
                self._selected = []

        self.report.extend(records)
        if limit is not None:
            raise limit
        return records

    async def _snapshot(self, label: str):
        if self.snapshots is not None:
            await self.snapshots.capture(self.page, self.platform_id, label)

    # === Retry loop ===

    async def _with_retries(self, label: str, action: Callable[[], Awaitable[None]]) -> Tuple[bool, Optional[str]]:
        last_error = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                await action()
                return True, None
            except Exception as e:
                if not is_retryable(e):
                    raise
                last_error = str(e) or type(e).__name__
                logger.debug(f"[{self.platform_id}] {label} attempt {attempt}/{self.max_attempts}: {last_error}")

            if attempt == self.max_attempts:
                break
            if attempt % self.reload_every == 0:
                await self._reload()
            else:
                await asyncio.sleep(self.retry_delay)

        logger.warning(f"[{self.platform_id}] {label} failed after {self.max_attempts} attempt(s): {last_error}")
        return False, last_error

    async def _reload(self):
        """Reload the page and redo the selection it discarded."""
        logger.info(f"[{self.platform_id}] reloading page")
        try:
            await self.page.reload()
            await poll_until(
                self._cards_present,
                timeout=self.ui_timeout,
                interval=self.poll_interval,
                description=f"{self.platform_id} listings after reload",
            )
        except PlaywrightError as e:
            logger.warning(f"[{self.platform_id}] reload failed: {e}")
            return

        for listing in self._selected:
            try:
                await self._select(listing)
            except (PlaywrightError, TransientUIError) as e:
                logger.warning(f"[{self.platform_id}] could not reselect {listing.describe()}: {e}")

    async def _cards_present(self) -> bool:
        return await self.resolver.resolve(self.adapter.require_cascade("job_card"), self.page) is not None

    # === Batch mode ===

    async def _select(self, listing: Listing):
        match = await self.resolver.resolve(self.adapter.require_cascade("select"), listing.card_ref)
        if not match:
            raise TransientUIError("selection control not found")
        target = match.locator.first
        await target.scroll_into_view_if_needed()
        if not await layered_click(target):
            raise TransientUIError("selection control did not accept a click")

    async def _submit_selected(self) -> List[SubmissionRecord]:
        selected = list(self._selected)
        ok, error = await self._with_retries(f"batch submit of {len(selected)}", self._click_batch_submit)
        self._selected = []
        if not ok:
            await self._snapshot("batch_submit_failed")
            return [SubmissionRecord(item, SubmissionOutcome.FAILED, error) for item in selected]

        logger.info(f"[{self.platform_id}] batch submitted {len(selected)} listing(s)")
        await self._close_dialog()
        return [SubmissionRecord(item, SubmissionOutcome.SUBMITTED) for item in selected]

    async def _click_batch_submit(self):
        """
        Click the batch submit control.

        Raises TransientUIError only while the click has not been accepted,
        so a retry never submits the same selection twice.
        """
        match = await self.resolver.resolve(self.adapter.require_cascade("batch_submit"), self.page)
        if not match:
            raise TransientUIError("batch submit control not found")
        button = match.locator.first

        if not self.adapter.submit_opens_tab:
            if not await layered_click(button):
                raise TransientUIError("batch submit did not accept a click")
            await self._check_daily_limit()
            return

        accepted = False
        try:
            async with self.session.context.expect_page(timeout=self.ui_timeout * 1000) as tab_info:
                if not await layered_click(button):
                    raise TransientUIError("batch submit did not accept a click")
                accepted = True
                await self._check_daily_limit()
            tab = await tab_info.value
        except PlaywrightError as e:
            if not accepted:
                raise
            logger.warning(f"[{self.platform_id}] batch submit opened no tab: {e}")
            return
        await self._greet_in_tab(tab)

    async def _check_daily_limit(self):
        if await self.adapter.daily_limit_reached(self.page, self.resolver):
            raise DailyLimitReached(f"{self.platform_id} daily submission limit reached")

    async def _greet_in_tab(self, tab: Any):
        """Send the greeting from the tab the submit opened; the submit already counts."""
        try:
            await tab.wait_for_load_state()
            contact = self.adapter.cascade("contact_button")
            if contact is not None:
                match = await self.resolver.resolve(contact, tab)
                if match:
                    await layered_click(match.locator.first)
            if self.greeting:
                await self._type_greeting(tab, "tab_chat_input", "send_button")
        except (PlaywrightError, TransientUIError) as e:
            logger.warning(f"[{self.platform_id}] greeting in new tab failed: {e}")
        finally:
            try:
                await tab.close()
                await self.page.bring_to_front()
            except PlaywrightError as e:
                logger.warning(f"[{self.platform_id}] could not close result tab: {e}")

    async def _close_dialog(self):
        dialog = self.adapter.cascade("dialog_close")
        if dialog is None:
            return
        match = await self.resolver.resolve(dialog, self.page)
        if match:
            await layered_click(match.locator.first)

    # === Individual mode ===

    async def _greet(self, listing: Listing):
        card = listing.card_ref
        hover = self.adapter.cascade("hover_area")
        if hover is not None:
            match = await self.resolver.resolve(hover, card)
            if match:
                await match.locator.first.hover()

        button = await self.resolver.resolve(
            self.adapter.require_cascade("chat_button"), card, has_text=self.adapter.chat_button_text
        )
        if not button:
            raise TransientUIError("chat button not found")
        if not await layered_click(button.locator.first):
            raise TransientUIError("chat button did not accept a click")

        surface = self.adapter.require_cascade("chat_surface")

        async def surface_open() -> bool:
            return await self.resolver.resolve(surface, self.page) is not None

        if not await poll_until(surface_open, self.ui_timeout, self.poll_interval, f"{self.platform_id} chat"):
            raise TransientUIError("chat dialog did not open")

        if self.greeting:
            await self._type_greeting(self.page, "chat_input", None)

        # Once sent, a failed close does not undo the greeting
        close = self.adapter.cascade("chat_close")
        if close is not None:
            match = await self.resolver.resolve(close, self.page)
            if not match or not await layered_click(match.locator.first):
                logger.warning(f"[{self.platform_id}] chat dialog left open")

    async def _type_greeting(self, scope: Any, input_name: str, send_name: Optional[str]):
        input_cascade = self.adapter.require_cascade(input_name)
        holder = {}

        async def input_ready() -> bool:
            holder["match"] = await self.resolver.resolve(input_cascade, scope)
            return holder["match"] is not None

        if not await poll_until(input_ready, self.ui_timeout, self.poll_interval, f"{self.platform_id} chat input"):
            raise TransientUIError("chat input not found")
        field = holder["match"].locator.first
        await field.fill(self.greeting)

        send = self.adapter.cascade(send_name) if send_name else None
        if send is not None:
            match = await self.resolver.resolve(send, scope)
            if match and await layered_click(match.locator.first):
                return
        await field.press("Enter")
