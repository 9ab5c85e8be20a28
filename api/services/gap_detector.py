"""
Employment and residency gap detection.

Walks applicant-supplied history from the most recent entry backwards and
reports the months nobody accounted for, plus the total number of months
covered. Everything here is a pure function of its arguments; callers pass
"today" explicitly so results are reproducible.

All arithmetic is on month indexes (``year * 12 + month - 1``). An interval
covers its whole first and last month.
"""

import logging
from datetime import date
from typing import List, Optional, Sequence

from config import settings
from models.interval import (
    Address,
    GapDetectionResult,
    GapPeriod,
    Interval,
    Job,
    OverlapPeriod,
    YearMonth,
)

logger = logging.getLogger(__name__)


def _period(start: int, end: int, model=GapPeriod):
    return model(**{"from": YearMonth.from_index(start), "to": YearMonth.from_index(end)})


def find_overlaps(intervals: Sequence[Interval]) -> List[OverlapPeriod]:
    """Report overlaps between neighbours of a list sorted most recent first."""
    overlaps = []
    for current, following in zip(intervals, intervals[1:]):
        if current.start.index <= following.end.index and current.end.index >= following.start.index:
            overlaps.append(_period(
                max(current.start.index, following.start.index),
                min(current.end.index, following.end.index),
                model=OverlapPeriod,
            ))
    return overlaps


def covered_months(intervals: Sequence[Interval]) -> int:
    """Sum of inclusive month counts. Overlapping months are counted once per interval."""
    return sum(interval.end.index - interval.start.index + 1 for interval in intervals)


def detect_gaps(
    intervals: Sequence[Interval],
    required_months: int,
    today: Optional[date] = None,
    report_window_start: bool = False
) -> GapDetectionResult:
    """
    Find uncovered spans in a history that should reach back ``required_months``.

    Intervals are sorted by end month, most recent first, and walked with a
    cursor that starts at today's month. Whenever more than one whole month
    separates the cursor from the end of the next interval, the months between
    are reported as a gap. The cursor then moves to the start of that
    interval. A single missing month is tolerated.

    Moving the cursor unconditionally means an interval nested inside a
    longer one moves it forward again, so the nested span can hide coverage
    the longer interval provides and a gap is reported before it.

    Intervals that end before they start are left out of the walk and the
    coverage total; their positions in the input are returned in
    ``rejected_intervals``.

    Args:
        intervals: Jobs, addresses or bare intervals in any order
        required_months: Length of the lookback window
        today: Reference date; defaults to the current date
        report_window_start: Also report the months between the start of the
            window and the point where the walk stopped

    Returns:
        GapDetectionResult with gaps, coverage total and informational overlaps
    """
    today = today or date.today()
    today_index = YearMonth.from_date(today).index

    rejected = [position for position, interval in enumerate(intervals) if not interval.is_well_formed]
    valid = [interval for interval in intervals if interval.is_well_formed]
    if rejected:
        logger.warning(f"Ignoring {len(rejected)} history entries that end before they start: {rejected}")

    if not valid:
        return GapDetectionResult(
            gap_detected=True,
            periods=[_period(today_index - required_months, today_index - 1)],
            total_covered_months=0,
            required_months=required_months,
            rejected_intervals=rejected,
        )

    ordered = sorted(valid, key=lambda interval: interval.end.index, reverse=True)

    periods = []
    cursor = today_index
    for interval in ordered:
        if cursor - interval.end.index - 1 > 1:
            periods.append(_period(interval.end.index + 1, cursor - 1))
        # Always the start of the latest interval walked, even when an
        # earlier-walked interval reached further back
        cursor = interval.start.index

    window_start = today_index - required_months
    if report_window_start and cursor > window_start:
        periods.append(_period(window_start, cursor - 1))

    total = covered_months(valid)

    return GapDetectionResult(
        gap_detected=bool(periods) or total < required_months,
        periods=periods,
        total_covered_months=total,
        required_months=required_months,
        overlaps=find_overlaps(ordered),
        rejected_intervals=rejected,
    )


def check_employment_gaps(
    jobs: Sequence[Job],
    today: Optional[date] = None,
    required_months: Optional[int] = None
) -> GapDetectionResult:
    """Gap check for the employment history step.

    Jobs without an employer name or position are still being typed in and
    are skipped.
    """
    if required_months is None:
        required_months = settings.employment_required_months
    complete = [job for job in jobs if job.is_complete]
    return detect_gaps(complete, required_months, today)


def needs_additional_addresses(
    current_from_month: int,
    current_from_year: int,
    today: Optional[date] = None,
    required_months: Optional[int] = None
) -> bool:
    """True when the current address alone does not reach back far enough."""
    if required_months is None:
        required_months = settings.residency_required_months
    today = today or date.today()
    window_start = YearMonth.from_date(today).index - required_months
    current_from = YearMonth(year=current_from_year, month=current_from_month).index
    return current_from > window_start


def check_residency_gaps(
    addresses: Sequence[Address],
    current_from_month: int,
    current_from_year: int,
    today: Optional[date] = None,
    required_months: Optional[int] = None
) -> GapDetectionResult:
    """Gap check for the address history step.

    The current address counts as an interval running from its start month up
    to today. When it covers the window on its own no previous addresses are
    needed and nothing is reported. Otherwise the months the history does not
    reach back to are reported as a period starting at the window start.
    """
    if required_months is None:
        required_months = settings.residency_required_months
    today = today or date.today()

    if not needs_additional_addresses(current_from_month, current_from_year, today, required_months):
        return GapDetectionResult(
            gap_detected=False,
            total_covered_months=YearMonth.from_date(today).index
            - YearMonth(year=current_from_year, month=current_from_month).index + 1,
            required_months=required_months,
        )

    current = Interval(
        from_month=current_from_month,
        from_year=current_from_year,
        to_month=today.month,
        to_year=today.year,
    )
    previous = [address for address in addresses if address.is_complete]
    return detect_gaps([current, *previous], required_months, today, report_window_start=True)
