#!/usr/bin/env python3
"""
Shared Data Models for the Submission Engine

All records that cross module boundaries are defined here: platform and
device identifiers, the authentication states, persisted cookies and
blacklists, scraped listings and the submission records of a run.
"""

from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple
from dataclasses import dataclass, field
from enum import Enum
from datetime import datetime


# ============== Enums ==============

class PlatformType(str, Enum):
    """Supported recruiting platforms."""
    LIEPIN = "liepin"
    JOB51 = "job51"
    ZHILIAN = "zhilian"


class DeviceProfile(str, Enum):
    """Browser context profile a platform session is opened with."""
    DESKTOP = "desktop"
    MOBILE = "mobile"


class AuthState(str, Enum):
    """Authentication state of one platform session."""
    UNAUTHENTICATED = "unauthenticated"
    COOKIE_LOADED = "cookie_loaded"
    AUTHENTICATED = "authenticated"
    EXPIRED = "expired"
    TIMED_OUT = "timed_out"


class PaginationMode(str, Enum):
    """How a platform moves from one result page to the next."""
    URL = "url"      # every page addressed by URL
    JUMP = "jump"    # page number typed into a jump-to-page control
    NEXT = "next"    # next-page control clicked


class StopReason(str, Enum):
    """Why a pagination walk ended."""
    MAX_PAGE = "max_page"
    NO_NEXT_PAGE = "no_next_page"
    DAILY_LIMIT = "daily_limit"


class SubmissionOutcome(str, Enum):
    """Outcome recorded for every listing the pipeline looks at."""
    SUBMITTED = "submitted"
    SKIPPED = "skipped"
    FAILED = "failed"


# ============== Persisted Data ==============

@dataclass
class Credential:
    """One persisted cookie."""
    name: str
    value: str
    domain: str
    path: str = "/"
    expires: Optional[float] = None
    secure: Optional[bool] = None
    http_only: Optional[bool] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Credential":
        """Build from the credential file shape (or a Playwright cookie dict)."""
        expires = data.get("expires")
        return cls(
            name=data["name"],
            value=data["value"],
            domain=data.get("domain", ""),
            path=data.get("path", "/"),
            # Playwright reports session cookies with expires == -1
            expires=float(expires) if expires is not None and float(expires) >= 0 else None,
            secure=data.get("secure"),
            http_only=data.get("httpOnly"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "value": self.value,
            "domain": self.domain,
            "path": self.path,
        }
        if self.expires is not None:
            data["expires"] = self.expires
        if self.secure is not None:
            data["secure"] = self.secure
        if self.http_only is not None:
            data["httpOnly"] = self.http_only
        return data

    def to_playwright(self) -> Dict[str, Any]:
        """Cookie dict accepted by BrowserContext.add_cookies()."""
        return self.to_dict()


def _normalize(values: Optional[Iterable[str]]) -> FrozenSet[str]:
    # Blank entries would match every listing, so they are dropped.
    return frozenset(
        str(v).strip().lower() for v in (values or []) if v is not None and str(v).strip()
    )


@dataclass(frozen=True)
class BlacklistSet:
    """Excluded companies, job titles and recruiters (lowercase)."""
    companies: FrozenSet[str] = frozenset()
    job_titles: FrozenSet[str] = frozenset()
    recruiters: FrozenSet[str] = frozenset()

    def __post_init__(self):
        object.__setattr__(self, "companies", _normalize(self.companies))
        object.__setattr__(self, "job_titles", _normalize(self.job_titles))
        object.__setattr__(self, "recruiters", _normalize(self.recruiters))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BlacklistSet":
        return cls(
            companies=data.get("blackCompanies") or [],
            job_titles=data.get("blackJobs") or [],
            recruiters=data.get("blackRecruiters") or [],
        )

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            "blackCompanies": sorted(self.companies),
            "blackJobs": sorted(self.job_titles),
            "blackRecruiters": sorted(self.recruiters),
        }

    def __len__(self) -> int:
        return len(self.companies) + len(self.job_titles) + len(self.recruiters)


# ============== Run Records ==============

@dataclass
class Listing:
    """A job posting scraped from the current result page."""
    title: str
    company: str
    recruiter: Optional[str] = None
    salary: Optional[str] = None
    card_ref: Any = None  # Playwright locator of the listing card

    @property
    def dedupe_key(self) -> Tuple[str, str]:
        return (self.company.strip().lower(), self.title.strip().lower())

    def describe(self) -> str:
        return f"{self.company} | {self.title}"


@dataclass
class SubmissionRecord:
    """Outcome of processing one listing."""
    listing: Listing
    outcome: SubmissionOutcome
    reason: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class SelectorCascade:
    """Ordered alternative selectors for one logical UI target."""
    name: str
    candidates: Tuple[str, ...]

    def __post_init__(self):
        candidates = tuple(self.candidates)
        if not candidates:
            raise ValueError(f"Selector cascade '{self.name}' has no candidates")
        object.__setattr__(self, "candidates", candidates)

    def __len__(self) -> int:
        return len(self.candidates)


@dataclass
class Match:
    """First cascade candidate that matched in a scope."""
    cascade: str
    index: int
    selector: str
    count: int
    locator: Any


@dataclass
class RunResult:
    """Exit signal of one platform run."""
    platform: str
    success: bool
    submitted: int = 0
    skipped: int = 0
    failed: int = 0
    auth_state: AuthState = AuthState.UNAUTHENTICATED
    stop_reason: Optional[str] = None
    summary: str = ""
    error: Optional[str] = None
