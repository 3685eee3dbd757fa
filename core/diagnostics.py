"""
Failure Snapshots

Saves a screenshot and the HTML source of the current page when a result
page is skipped or a listing fails, so selector drift can be diagnosed
after the run.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional

from playwright.async_api import Error as PlaywrightError

logger = logging.getLogger(__name__)


@dataclass
class Snapshot:
    """Files captured for one failure."""
    platform: str
    label: str
    screenshot_path: Optional[Path]
    html_path: Optional[Path]
    page_url: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)


class PageSnapshotter:
    """
    Capture failure snapshots under one directory.

    Usage:
        snapshots = PageSnapshotter(Path("./logs/page_sources"))
        await snapshots.capture(page, "liepin", "python_page2_skipped")
    """

    naming_template = "{platform}_{label}_{timestamp}"

    def __init__(self, base_dir: Path, max_snapshots: int = 50, full_page: bool = True):
        self.base_dir = Path(base_dir)
        self.max_snapshots = max_snapshots
        self.full_page = full_page
        self.captured: List[Snapshot] = []

    @staticmethod
    def _sanitize(label: str) -> str:
        return re.sub(r"[^\w-]+", "_", label).strip("_")[:60] or "page"

    def _stem(self, platform: str, label: str, when: datetime) -> str:
        return self.naming_template.format(
            platform=platform,
            label=self._sanitize(label),
            timestamp=when.strftime("%Y%m%d_%H%M%S_%f"),
        )

    async def capture(self, page: Any, platform: str, label: str) -> Optional[Snapshot]:
        """
        Save screenshot and HTML of `page`.

        A failing capture only logs: diagnostics never end a run.

        Returns:
            The Snapshot, or None when the cap is reached or nothing was written
        """
        if len(self.captured) >= self.max_snapshots:
            logger.debug(f"[{platform}] snapshot cap ({self.max_snapshots}) reached, '{label}' not saved")
            return None

        when = datetime.now()
        stem = self._stem(platform, label, when)
        screenshot_path: Optional[Path] = self.base_dir / f"{stem}.png"
        html_path: Optional[Path] = self.base_dir / f"{stem}.html"

        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning(f"[{platform}] cannot create snapshot dir {self.base_dir}: {e}")
            return None

        try:
            await page.screenshot(path=str(screenshot_path), full_page=self.full_page)
        except PlaywrightError as e:
            logger.warning(f"[{platform}] screenshot for '{label}' failed: {e}")
            screenshot_path = None

        try:
            html_path.write_text(await page.content(), encoding="utf-8")
        except (PlaywrightError, OSError) as e:
            logger.warning(f"[{platform}] page source for '{label}' failed: {e}")
            html_path = None

        if screenshot_path is None and html_path is None:
            return None

        snapshot = Snapshot(
            platform=platform,
            label=label,
            screenshot_path=screenshot_path,
            html_path=html_path,
            page_url=getattr(page, "url", None),
            timestamp=when,
        )
        self.captured.append(snapshot)
        logger.info(f"[{platform}] saved snapshot '{label}' to {self.base_dir}")
        return snapshot
