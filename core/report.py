"""
Run report: collects submission records and produces the end-of-run summary.
"""

import logging
from collections import Counter
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from .models import SubmissionOutcome, SubmissionRecord

logger = logging.getLogger(__name__)


def format_duration(start: datetime, end: Optional[datetime] = None) -> str:
    """Format elapsed time as '0h 01m 05s'."""
    end = end or datetime.now()
    total = max(int((end - start).total_seconds()), 0)
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours}h {minutes:02d}m {seconds:02d}s"


class ReportAggregator:
    """
    Accumulates SubmissionRecords of one platform run.

    Usage:
        report = ReportAggregator(notifier)
        report.extend(records)
        summary = await report.finalize("liepin", report.records, start_time)
    """

    def __init__(self, notifier: Any = None):
        self.notifier = notifier
        self.records: List[SubmissionRecord] = []
        self.summary: Optional[str] = None

    def add(self, record: SubmissionRecord):
        self.records.append(record)

    def extend(self, records: Iterable[SubmissionRecord]):
        self.records.extend(records)

    def counts(self, records: Optional[Iterable[SubmissionRecord]] = None) -> Dict[str, int]:
        tally = Counter(r.outcome for r in (self.records if records is None else records))
        return {outcome.value: tally.get(outcome, 0) for outcome in SubmissionOutcome}

    def build_summary(self, platform_id: str, records: List[SubmissionRecord], start_time: datetime,
                      end_time: Optional[datetime] = None) -> str:
        counts = self.counts(records)
        lines = [
            f"{platform_id} finished: {counts['submitted']} submitted, {counts['skipped']} skipped, "
            f"{counts['failed']} failed, elapsed {format_duration(start_time, end_time)}"
        ]
        lines.extend(
            f"  {r.listing.describe()}" for r in records if r.outcome is SubmissionOutcome.SUBMITTED
        )
        return "\n".join(lines)

    async def finalize(self, platform_id: str, records: Optional[List[SubmissionRecord]] = None,
                       start_time: Optional[datetime] = None) -> str:
        """
        Summarize the run, hand the summary to the notifier and clear records.

        Returns:
            The summary text
        """
        records = list(self.records if records is None else records)
        summary = self.build_summary(platform_id, records, start_time or datetime.now())
        logger.info(summary)

        if self.notifier is not None:
            try:
                await self.notifier.notify_summary(summary)
            except Exception as e:
                logger.warning(f"[{platform_id}] summary notification failed: {e}")

        self.records.clear()
        self.summary = summary
        return summary
