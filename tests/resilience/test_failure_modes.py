"""
Resilience Tests - Failure Mode Testing
Graceful degradation when pages drift, clicks are swallowed or resources fail.
"""

import asyncio

import pytest
from playwright.async_api import Error as PlaywrightError
from unittest.mock import AsyncMock

from core.browser import SessionRegistry
from core.config import PlatformConfig
from core.error_handler import (
    ABORT,
    RETRY,
    SKIP,
    AuthenticationError,
    DailyLimitReached,
    ErrorCategory,
    NavigationError,
    TransientUIError,
    VerificationRequired,
    classify_error,
    handle_error,
    is_retryable,
)
from core.models import PlatformType, SubmissionOutcome
from core.pagination import PaginationWalker
from core.runner import PlatformRunner
from core.selectors import SelectorResolver
from core.submission import SubmissionPipeline
from fakes import FakeElement, FakePage, SearchSite, fake_playwright_factory, make_adapter, make_card, make_session


@pytest.mark.resilience
class TestErrorClassification:

    @pytest.mark.parametrize("error,category", [
        (PlaywrightError("net::ERR_NAME_NOT_RESOLVED at https://www.liepin.com/"), ErrorCategory.NAVIGATION),
        (PlaywrightError("Element is not visible"), ErrorCategory.TRANSIENT_UI),
        (TransientUIError("chat dialog did not open"), ErrorCategory.TRANSIENT_UI),
        (NavigationError("search page unreachable"), ErrorCategory.NAVIGATION),
        (ConnectionResetError("reset"), ErrorCategory.NAVIGATION),
        (AuthenticationError("not logged in"), ErrorCategory.AUTH),
        (DailyLimitReached("cap"), ErrorCategory.RATE_LIMIT),
        (VerificationRequired("waf"), ErrorCategory.BLOCKED),
        (RuntimeError("rate limit exceeded"), ErrorCategory.RATE_LIMIT),
        (KeyError("bug"), ErrorCategory.UNKNOWN),
    ])
    def test_classify(self, error, category):
        assert classify_error(error) is category

    def test_actions(self):
        assert handle_error(TransientUIError("x")) == RETRY
        assert handle_error(DailyLimitReached("x")) == SKIP
        assert handle_error(AuthenticationError("x")) == ABORT
        assert handle_error(VerificationRequired("x")) == ABORT
        assert is_retryable(NavigationError("cannot get back to page 2"))
        assert is_retryable(PlaywrightError("net::ERR_ABORTED"))
        assert not is_retryable(ValueError("bad config"))


@pytest.mark.resilience
class TestPlatformChanges:
    """Site markup drifting away from the primary selectors."""

    @pytest.mark.asyncio
    async def test_fallback_card_selector_end_to_end(self, authenticated_auth):
        page = FakePage()
        page.set(".card-alt", make_card("Engineer", "Acme"))
        page.set(".batch-submit", FakeElement("投递"))
        resolver = SelectorResolver()
        pipeline = SubmissionPipeline(
            make_session(page), make_adapter(batch_submit=True), resolver,
            auth=authenticated_auth, retry_delay=0, ui_timeout=0,
        )

        records = await pipeline.process()

        assert records[0].outcome is SubmissionOutcome.SUBMITTED
        assert resolver.get_stats()["hits"]["job_card"] == {1: 1}

    @pytest.mark.asyncio
    async def test_overlay_swallowing_clicks(self, authenticated_auth):
        # Native clicks land on an overlay; scripted clicks still reach the control
        page = FakePage()
        card = make_card("Engineer", "Acme", select={"fail_strategies": {"native"}})
        page.set(".card", card)
        submit = FakeElement("投递", fail_strategies={"native", "script"})
        page.set(".batch-submit", submit)
        pipeline = SubmissionPipeline(
            make_session(page), make_adapter(batch_submit=True), SelectorResolver(),
            auth=authenticated_auth, retry_delay=0, ui_timeout=0,
        )

        records = await pipeline.process()

        assert records[0].outcome is SubmissionOutcome.SUBMITTED
        assert card.children[".select"][0].clicks == ["script"]
        assert submit.clicks == ["dispatch"]


@pytest.mark.resilience
class TestSlowPages:

    @pytest.mark.asyncio
    async def test_listings_rendering_late_are_awaited(self):
        page = FakePage()

        def render_late(url):
            asyncio.get_running_loop().call_later(0.05, page.set, ".card", make_card("Engineer", "Acme"))

        page.on_goto = render_late
        walker = PaginationWalker(
            make_session(page), make_adapter(), max_retries_per_page=1,
            ready_timeout=1, poll_interval=0.01, backoff_base=0,
        )

        ready = [r async for r in walker.walk("python", 1)]

        assert len(ready) == 1
        assert walker.stats.attempts == 1


@pytest.mark.resilience
class TestResourceCleanup:

    @pytest.mark.asyncio
    async def test_release_failures_do_not_mask_result(self, tmp_path, app_config, notifier):
        page = FakePage()
        page.set(".user", FakeElement("me"))
        page.set(".batch-submit", FakeElement("投递"))
        SearchSite(page, {1: [make_card("Engineer", "Acme")]})
        page.close = AsyncMock(side_effect=PlaywrightError("Target closed"))
        page.context.close = AsyncMock(side_effect=PlaywrightError("Browser has been closed"))

        registry = SessionRegistry(playwright_factory=fake_playwright_factory(page))
        runner = PlatformRunner(
            make_adapter(platform=PlatformType.JOB51, batch_submit=True), registry, app_config, notifier
        )
        config = PlatformConfig(
            platform=PlatformType.JOB51,
            keywords=["python"],
            max_page=1,
            credential_path=tmp_path / "cookie.json",
            blacklist_path=tmp_path / "blacklist.json",
        )

        result = await runner.run(config)

        assert result.success
        assert result.submitted == 1
        assert "job51" not in registry
        page.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_notifier_outage_does_not_fail_run(self, tmp_path, app_config, notifier):
        notifier.notify_summary = AsyncMock(side_effect=ConnectionError("webhook unreachable"))
        page = FakePage()
        page.set(".user", FakeElement("me"))
        SearchSite(page, {1: []})

        registry = SessionRegistry(playwright_factory=fake_playwright_factory(page))
        runner = PlatformRunner(make_adapter(platform=PlatformType.JOB51), registry, app_config, notifier)
        config = PlatformConfig(
            platform=PlatformType.JOB51,
            keywords=["python"],
            max_page=1,
            credential_path=tmp_path / "cookie.json",
            blacklist_path=tmp_path / "blacklist.json",
        )

        result = await runner.run(config)

        assert result.success
        assert result.summary.startswith("job51 finished: 0 submitted")
