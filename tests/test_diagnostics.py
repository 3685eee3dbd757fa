"""
Tests for failure snapshots.
"""

import pytest
from playwright.async_api import Error as PlaywrightError
from unittest.mock import AsyncMock

from core.diagnostics import PageSnapshotter
from fakes import FakeElement, FakePage


class TestPageSnapshotter:

    @pytest.mark.asyncio
    async def test_screenshot_and_source_written(self, tmp_path):
        page = FakePage("https://www.liepin.com/zhaopin/")
        page.set(".card", FakeElement("Python 工程师"))
        snapshots = PageSnapshotter(tmp_path / "page_sources")

        saved = await snapshots.capture(page, "liepin", "python page 2/skipped")

        assert saved.screenshot_path.exists()
        assert "Python 工程师" in saved.html_path.read_text(encoding="utf-8")
        assert saved.page_url == "https://www.liepin.com/zhaopin/"
        assert saved.html_path.name.startswith("liepin_python_page_2_skipped_")

    @pytest.mark.asyncio
    async def test_cap_respected(self, tmp_path):
        snapshots = PageSnapshotter(tmp_path, max_snapshots=1)
        page = FakePage()

        assert await snapshots.capture(page, "job51", "first")
        assert await snapshots.capture(page, "job51", "second") is None
        assert len(snapshots.captured) == 1

    @pytest.mark.asyncio
    async def test_screenshot_failure_keeps_source(self, tmp_path):
        page = FakePage()
        page.screenshot = AsyncMock(side_effect=PlaywrightError("Target page has been closed"))

        saved = await PageSnapshotter(tmp_path).capture(page, "zhilian", "tab")

        assert saved.screenshot_path is None
        assert saved.html_path.exists()

    @pytest.mark.asyncio
    async def test_nothing_captured_returns_none(self, tmp_path):
        page = FakePage()
        page.screenshot = AsyncMock(side_effect=PlaywrightError("closed"))
        page.content = AsyncMock(side_effect=PlaywrightError("closed"))
        snapshots = PageSnapshotter(tmp_path)

        assert await snapshots.capture(page, "zhilian", "tab") is None
        assert snapshots.captured == []
