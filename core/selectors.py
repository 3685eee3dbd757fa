"""
Selector cascades.

Target pages change their markup without notice, so every logical UI target
(next-page control, selection checkbox, chat input, ...) is described by an
ordered list of alternative selectors. The resolver tries them in order and
returns the first one that matches anything; no match is a normal result,
not an error.
"""

import logging
from collections import Counter, defaultdict
from typing import Any, Dict, Optional

from playwright.async_api import Error as PlaywrightError

from .models import Match, SelectorCascade

logger = logging.getLogger(__name__)


class SelectorResolver:
    """
    Resolves SelectorCascades against a page or an element locator.

    Usage:
        resolver = SelectorResolver()
        match = await resolver.resolve(NEXT_PAGE, page)
        if match:
            await match.locator.first.click()
    """

    def __init__(self):
        self.hits: Dict[str, Counter] = defaultdict(Counter)
        self.misses: Counter = Counter()

    async def resolve(
        self,
        cascade: SelectorCascade,
        scope: Any,
        has_text: Optional[str] = None,
    ) -> Optional[Match]:
        """
        Try each candidate of `cascade` in order within `scope`.

        Args:
            cascade: Candidates for one UI target
            scope: Playwright Page or Locator to search in
            has_text: Only count elements containing this text

        Returns:
            Match for the first candidate with at least one element, else None
        """
        for index, selector in enumerate(cascade.candidates):
            try:
                locator = scope.locator(selector)
                if has_text:
                    locator = locator.filter(has_text=has_text)
                count = await locator.count()
            except PlaywrightError as e:
                # Invalid selector or detached scope: same as no match
                logger.debug(f"[{cascade.name}] candidate {index} '{selector}' errored: {e}")
                continue

            if count > 0:
                self.hits[cascade.name][index] += 1
                if index > 0:
                    logger.debug(f"[{cascade.name}] matched fallback {index} '{selector}' ({count})")
                return Match(
                    cascade=cascade.name,
                    index=index,
                    selector=selector,
                    count=count,
                    locator=locator,
                )

        self.misses[cascade.name] += 1
        logger.debug(f"[{cascade.name}] no candidate matched ({len(cascade)} tried)")
        return None

    async def first_text(self, cascade: SelectorCascade, scope: Any) -> Optional[str]:
        """Stripped text of the first element matched by `cascade`, or None."""
        match = await self.resolve(cascade, scope)
        if not match:
            return None
        try:
            text = await match.locator.first.text_content()
        except PlaywrightError as e:
            logger.debug(f"[{cascade.name}] text read failed: {e}")
            return None
        text = " ".join((text or "").split())
        return text or None

    def get_stats(self) -> Dict[str, Any]:
        """Which candidate index matched per cascade, and how often nothing matched."""
        return {
            "hits": {name: dict(counter) for name, counter in self.hits.items()},
            "misses": dict(self.misses),
        }
