"""
Date window helpers for weekly_report.

A report covers an inclusive range of calendar dates. When the user does
not pick one explicitly, the window is the working week (Monday to Friday)
containing "today".
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta


@dataclass(frozen=True)
class DateWindow:
    """Inclusive range of calendar dates covered by a report."""

    since: date
    until: date

    def __post_init__(self) -> None:
        if self.since > self.until:
            raise ValueError(
                f"Window start {self.since.isoformat()} is after its end {self.until.isoformat()}"
            )


def current_work_week(today: date) -> DateWindow:
    """Return the Monday..Friday window of the week containing ``today``."""
    monday = today - timedelta(days=today.weekday())
    return DateWindow(since=monday, until=monday + timedelta(days=4))


def report_title(owner: str, window: DateWindow) -> str:
    """Build the title written into the report's title cell.

    >>> report_title("Ada", DateWindow(date(2024, 1, 1), date(2024, 1, 5)))
    'Ada 2024 01/01-01/05 Weekly Report'
    """
    return (
        f"{owner} {window.since:%Y} "
        f"{window.since:%m/%d}-{window.until:%m/%d} Weekly Report"
    )


def output_file_name(owner: str, window: DateWindow) -> str:
    """Build the file name of the generated workbook."""
    return f"{owner}_{window.since:%m%d}-{window.until:%m%d}_weekly_report.xlsx"
