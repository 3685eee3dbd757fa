import logging
from enum import Enum

from playwright.async_api import Error as PlaywrightError

logger = logging.getLogger(__name__)


class ErrorCategory(str, Enum):
    TRANSIENT_UI = "transient_ui"
    NAVIGATION = "navigation"
    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    BLOCKED = "blocked"
    UNKNOWN = "unknown"


# Define actions
RETRY = 'RETRY'
SKIP = 'SKIP'
ABORT = 'ABORT'


class AutomationError(Exception):
    """Base class for engine errors."""


class ResourceError(AutomationError):
    """Session resources are missing or already registered."""


class AuthenticationError(AutomationError):
    """A guarded step ran before the platform was authenticated."""


class AuthStateError(AuthenticationError):
    """Illegal authentication state transition."""


class NavigationError(AutomationError):
    """A page failed to load or transition."""


class TransientUIError(AutomationError):
    """Element missing, detached, not clickable, or a dialog did not show up."""


class DailyLimitReached(AutomationError):
    """The platform reports its daily submission cap."""


class VerificationRequired(AutomationError):
    """The platform put an anti-bot verification in front of the results."""


_NAVIGATION_MARKERS = ("net::", "navigation", "page.goto", "page.reload", "err_")


def classify_error(error: BaseException) -> ErrorCategory:
    if isinstance(error, DailyLimitReached):
        return ErrorCategory.RATE_LIMIT
    if isinstance(error, VerificationRequired):
        return ErrorCategory.BLOCKED
    if isinstance(error, AuthenticationError):
        return ErrorCategory.AUTH
    if isinstance(error, (NavigationError, ConnectionError)):
        return ErrorCategory.NAVIGATION
    if isinstance(error, TransientUIError):
        return ErrorCategory.TRANSIENT_UI
    if isinstance(error, PlaywrightError):
        message = str(error).lower()
        if any(marker in message for marker in _NAVIGATION_MARKERS):
            return ErrorCategory.NAVIGATION
        return ErrorCategory.TRANSIENT_UI
    if 'rate limit' in str(error).lower():
        return ErrorCategory.RATE_LIMIT
    return ErrorCategory.UNKNOWN


def handle_error(error: BaseException) -> str:
    category = classify_error(error)
    logger.debug(f"{type(error).__name__} classified as {category.value}")
    if category in (ErrorCategory.TRANSIENT_UI, ErrorCategory.NAVIGATION):
        return RETRY
    if category is ErrorCategory.RATE_LIMIT:
        return SKIP
    return ABORT


def is_retryable(error: BaseException) -> bool:
    return handle_error(error) == RETRY
