"""
Blacklist filtering.

A listing is skipped when its company, title or recruiter contains any
blacklisted entry of the matching kind (case-insensitive substring match).
"""

import json
import logging
from pathlib import Path
from typing import Iterable, Optional

from .models import BlacklistSet, Listing

logger = logging.getLogger(__name__)


def _first_contained(value: Optional[str], entries: Iterable[str]) -> Optional[str]:
    if not value:
        return None
    value = value.lower()
    for entry in entries:
        if entry in value:
            return entry
    return None


class FilterEngine:
    """Pure blacklist checks; no state, no I/O."""

    @staticmethod
    def match_reason(listing: Listing, blacklist: BlacklistSet) -> Optional[str]:
        """Describe the first blacklist rule `listing` hits, or None."""
        entry = _first_contained(listing.company, blacklist.companies)
        if entry:
            return f"blacklisted company: {entry}"
        entry = _first_contained(listing.title, blacklist.job_titles)
        if entry:
            return f"blacklisted job title: {entry}"
        entry = _first_contained(listing.recruiter, blacklist.recruiters)
        if entry:
            return f"blacklisted recruiter: {entry}"
        return None

    @classmethod
    def should_skip(cls, listing: Listing, blacklist: BlacklistSet) -> bool:
        return cls.match_reason(listing, blacklist) is not None


class BlacklistStore:
    """Blacklist file: {"blackCompanies": [], "blackJobs": [], "blackRecruiters": []}."""

    def __init__(self, path):
        self.path = Path(path)

    def load(self) -> BlacklistSet:
        if not self.path.exists():
            logger.info(f"Blacklist file not found, creating {self.path}")
            blacklist = BlacklistSet()
            self.save(blacklist)
            return blacklist

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f) or {}
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read blacklist {self.path}: {e}")
            return BlacklistSet()

        blacklist = BlacklistSet.from_dict(data)
        logger.info(
            f"Loaded blacklist - companies: {len(blacklist.companies)}, "
            f"job titles: {len(blacklist.job_titles)}, recruiters: {len(blacklist.recruiters)}"
        )
        return blacklist

    def save(self, blacklist: BlacklistSet):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(blacklist.to_dict(), f, ensure_ascii=False, indent=4)
        logger.debug(f"Blacklist saved to {self.path}")
