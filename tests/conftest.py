"""
Pytest fixtures and configuration for the job submitter test suite.
"""

import pytest
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

# Add project root and this directory to path
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from fakes import DemoAdapter, FakePage, FakeElement, make_session


# === Fake Browser Fixtures ===

@pytest.fixture
def fake_page():
    """Blank in-memory page."""
    return FakePage()


@pytest.fixture
def logged_in_page():
    """Page whose header shows the logged-in user menu."""
    page = FakePage()
    page.set(".user", FakeElement("me"))
    return page


@pytest.fixture
def demo_adapter():
    return DemoAdapter()


@pytest.fixture
def fake_session(fake_page):
    return make_session(fake_page)


@pytest.fixture
def authenticated_auth():
    """Auth controller stub that lets the pipeline through."""
    auth = MagicMock()
    auth.require_authenticated = MagicMock(return_value=None)
    return auth


@pytest.fixture
def notifier():
    notifier = MagicMock()
    notifier.notify_summary = AsyncMock(return_value=True)
    return notifier


@pytest.fixture
def app_config(tmp_path):
    """Settings pointing at a temp dir with no waiting."""
    from core.config import AppConfig
    return AppConfig(
        QR_LOGIN_TIMEOUT_SECONDS=0,
        QR_POLL_INTERVAL_SECONDS=0.01,
        PAGE_READY_TIMEOUT_SECONDS=0,
        PAGE_RETRY_BACKOFF_SECONDS=0,
        SUBMIT_MAX_ATTEMPTS=3,
        SUBMIT_RELOAD_EVERY=2,
        SUBMIT_RETRY_DELAY_SECONDS=0,
        MIN_HUMAN_DELAY=0,
        MAX_HUMAN_DELAY=0,
        DATA_DIR=str(tmp_path / "data"),
        LOG_DIR=str(tmp_path / "logs"),
    )


@pytest.fixture
def mock_playwright_factory():
    """
    Replacement for async_playwright() returning MagicMock resources.

    The created mocks are exposed as attributes of the returned factory.
    """
    page = MagicMock()
    page.close = AsyncMock()
    page.set_default_timeout = MagicMock()

    context = MagicMock()
    context.new_page = AsyncMock(return_value=page)
    context.set_extra_http_headers = AsyncMock()
    context.add_init_script = AsyncMock()
    context.close = AsyncMock()

    browser = MagicMock()
    browser.new_context = AsyncMock(return_value=context)
    browser.close = AsyncMock()

    playwright = MagicMock()
    playwright.chromium.launch = AsyncMock(return_value=browser)
    playwright.stop = AsyncMock()

    manager = MagicMock()
    manager.start = AsyncMock(return_value=playwright)

    factory = MagicMock(return_value=manager)
    factory.page = page
    factory.context = context
    factory.browser = browser
    factory.playwright = playwright
    return factory


# === Pytest Configuration ===

def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "resilience: Failure mode and recovery tests")
    config.addinivalue_line("markers", "scenario: End-to-end platform scenarios over fake pages")
