"""
Core components of the multi-platform submission engine.

Modules:
- browser: Per-platform Playwright session registry
- auth: Cookie reuse and QR-code login state machine
- selectors: Ordered selector cascades
- pagination: Bounded result-page walk
- filters: Blacklist filtering
- submission: Per-page submission pipeline
- report: End-of-run summary
- diagnostics: Screenshot and HTML capture of failed pages
- runner: Platform runs and the sequential orchestrator (import directly)
"""

from .models import (
    AuthState,
    BlacklistSet,
    Credential,
    DeviceProfile,
    Listing,
    PaginationMode,
    PlatformType,
    RunResult,
    SelectorCascade,
    StopReason,
    SubmissionOutcome,
    SubmissionRecord,
)
from .error_handler import (
    AuthenticationError,
    AuthStateError,
    AutomationError,
    DailyLimitReached,
    ErrorCategory,
    NavigationError,
    ResourceError,
    TransientUIError,
    VerificationRequired,
    classify_error,
    is_retryable,
)
from .browser import PlatformSession, SessionRegistry
from .selectors import SelectorResolver
from .auth import AuthController, CredentialStore
from .filters import BlacklistStore, FilterEngine
from .pagination import PageReady, PaginationWalker
from .report import ReportAggregator
from .diagnostics import PageSnapshotter
from .submission import SubmissionPipeline, layered_click

__all__ = [
    "AuthState",
    "BlacklistSet",
    "Credential",
    "DeviceProfile",
    "Listing",
    "PaginationMode",
    "PlatformType",
    "RunResult",
    "SelectorCascade",
    "StopReason",
    "SubmissionOutcome",
    "SubmissionRecord",
    "AuthenticationError",
    "AuthStateError",
    "AutomationError",
    "DailyLimitReached",
    "ErrorCategory",
    "NavigationError",
    "ResourceError",
    "TransientUIError",
    "VerificationRequired",
    "classify_error",
    "is_retryable",
    "PlatformSession",
    "SessionRegistry",
    "SelectorResolver",
    "AuthController",
    "CredentialStore",
    "BlacklistStore",
    "FilterEngine",
    "PageReady",
    "PaginationWalker",
    "ReportAggregator",
    "PageSnapshotter",
    "SubmissionPipeline",
    "layered_click",
]
