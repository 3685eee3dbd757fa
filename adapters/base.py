"""
Base adapter interface for recruiting platforms.
All platform-specific adapters inherit from this.

An adapter only describes a platform: its URLs, how it paginates, how a
listing is submitted, and the selector cascades for every UI target the
engine touches. The engine (auth, pagination, submission) is shared.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from playwright.async_api import Error as PlaywrightError

from core.config import PlatformConfig
from core.models import Listing, PaginationMode, PlatformType, SelectorCascade
from core.selectors import SelectorResolver

logger = logging.getLogger(__name__)


def cascade(name: str, *candidates: str) -> SelectorCascade:
    return SelectorCascade(name=name, candidates=tuple(candidates))


def clean_text(text: Optional[str]) -> str:
    """Collapse whitespace and normalize full-width brackets."""
    text = " ".join((text or "").split())
    text = re.sub(r"【\s*", "[", text)
    return re.sub(r"\s*】", "]", text)


class PlatformAdapter(ABC):
    """
    Abstract base class for platform adapters.

    Cascade names the engine looks up (only `job_card`, `title` and
    `company` are required):
        job_card, title, company, recruiter, salary  - listing extraction
        overlay_close                                 - popups covering results
        next_page, jump_input, jump_button            - pagination controls
        page_numbers                                  - pagination widget items
        select, batch_submit                          - batch submission
        hover_area, chat_button, chat_surface,
        chat_input, chat_close                        - per-listing greeting
        contact_button, tab_chat_input, send_button   - greeting in a new tab
        dialog_close                                  - result dialog
        daily_limit                                   - daily cap notice
        verification                                  - anti-bot challenge
        logged_in, login_prompt, qr_switch            - authentication
    """

    platform: PlatformType
    home_url: str = ""
    login_url: str = ""
    pagination_mode: PaginationMode = PaginationMode.URL
    batch_submit: bool = False
    submit_opens_tab: bool = False
    chat_button_text: Optional[str] = None
    daily_limit_text: Optional[str] = None
    verification_text: Optional[str] = None
    default_greeting: Optional[str] = None

    cascades: Dict[str, SelectorCascade] = {}

    def __init__(self, config: Optional[PlatformConfig] = None):
        self.config = config or PlatformConfig(platform=self.platform)
        self.greeting = self.config.greeting or self.default_greeting

    @property
    def platform_id(self) -> str:
        return self.platform.value

    def cascade(self, name: str) -> Optional[SelectorCascade]:
        return self.cascades.get(name)

    def require_cascade(self, name: str) -> SelectorCascade:
        found = self.cascades.get(name)
        if found is None:
            raise KeyError(f"{self.platform_id} adapter defines no '{name}' cascade")
        return found

    # === Platform specifics ===

    @abstractmethod
    def search_url(self, keyword: str, page_index: int) -> str:
        """URL of result page `page_index` (1-based) for `keyword`."""
        pass

    @abstractmethod
    async def is_logged_in(self, page: Any, resolver: SelectorResolver) -> bool:
        """Probe whether the current page belongs to a logged-in session."""
        pass

    async def open_qr_login(self, page: Any, resolver: SelectorResolver):
        """Bring up the QR-code login surface."""
        if self.login_url:
            await page.goto(self.login_url)
        switch = self.cascade("qr_switch")
        if switch is None:
            return
        match = await resolver.resolve(switch, page)
        if match:
            await match.locator.first.click()
            logger.info(f"[{self.platform_id}] switched to QR login ({match.selector})")
        else:
            logger.info(f"[{self.platform_id}] QR login control not found, waiting on current page")

    # === Shared behaviour ===

    async def extract_listings(self, page: Any, resolver: SelectorResolver) -> List[Listing]:
        """Scrape the listings of the current result page in display order."""
        cards = await resolver.resolve(self.require_cascade("job_card"), page)
        if not cards:
            return []

        listings = []
        for i in range(cards.count):
            card = cards.locator.nth(i)
            title = clean_text(await resolver.first_text(self.require_cascade("title"), card))
            company = clean_text(await resolver.first_text(self.require_cascade("company"), card))
            if not title or not company:
                logger.debug(f"[{self.platform_id}] card {i} has no title/company, ignored")
                continue
            listings.append(Listing(
                title=title,
                company=company,
                recruiter=await self._optional_text("recruiter", card, resolver),
                salary=await self._optional_text("salary", card, resolver),
                card_ref=card,
            ))
        return listings

    async def _optional_text(self, name: str, scope: Any, resolver: SelectorResolver) -> Optional[str]:
        found = self.cascade(name)
        if found is None:
            return None
        return clean_text(await resolver.first_text(found, scope)) or None

    async def daily_limit_reached(self, page: Any, resolver: SelectorResolver) -> bool:
        notice = self.cascade("daily_limit")
        if notice is None:
            return False
        match = await resolver.resolve(notice, page, has_text=self.daily_limit_text)
        if match:
            logger.info(f"[{self.platform_id}] daily submission limit reached")
            return True
        return False

    async def verification_required(self, page: Any, resolver: SelectorResolver) -> bool:
        challenge = self.cascade("verification")
        if challenge is None:
            return False
        match = await resolver.resolve(challenge, page, has_text=self.verification_text)
        if match:
            logger.error(f"[{self.platform_id}] site is asking for a human verification")
            return True
        return False

    async def read_page_count(self, page: Any, resolver: SelectorResolver) -> Optional[int]:
        """
        Last page number shown by the pagination widget, if readable.

        The widget ends with [..., last page, next]; the second-to-last item
        holds the page count.
        """
        items = self.cascade("page_numbers")
        if items is None:
            return None
        match = await resolver.resolve(items, page)
        if not match or match.count < 2:
            return None
        try:
            text = await match.locator.nth(match.count - 2).text_content()
        except PlaywrightError as e:
            logger.debug(f"[{self.platform_id}] page count unreadable: {e}")
            return None
        digits = re.sub(r"\D", "", text or "")
        return int(digits) if digits else None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} platform={self.platform_id}>"
