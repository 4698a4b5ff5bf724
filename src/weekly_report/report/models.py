"""
Data models for report rows.

Rows are built once by the assembler and handed unchanged to the
spreadsheet writer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List

from weekly_report.week import DateWindow


NO_COLLABORATORS = "None"
COMPLETE = "100%"


@dataclass(frozen=True)
class TaskRow:
    """One line of the task block.

    Attributes
    ----------
    sequence_number : int
        1-based position across the whole report.
    label : str
        ``[project] module`` in batch mode, the category in per-commit mode.
    detail : str
        Description, optionally followed by a key-changes bullet list.
    start_date, end_date : date
        Span of the commits the row covers.
    owner : str
        Report owner.
    collaborators : str
        Collaborating people or departments.
    progress : str
        Always ``"100%"``; work reported from commits is done work.
    note : str
        Free text; carries a cross-reference id in per-commit mode.
    """

    sequence_number: int
    label: str
    detail: str
    start_date: date
    end_date: date
    owner: str
    collaborators: str = NO_COLLABORATORS
    progress: str = COMPLETE
    note: str = ""


@dataclass(frozen=True)
class ProblemRow:
    """One line of the problem block (per-commit mode only)."""

    sequence_number: int
    category: str
    description: str
    raised_date: date
    resolution: str
    resolved_date: date


@dataclass
class WeeklyReport:
    """A fully computed report ready to be written."""

    title: str
    owner: str
    window: DateWindow
    tasks: List[TaskRow] = field(default_factory=list)
    problems: List[ProblemRow] = field(default_factory=list)
    commit_count: int = 0
    project_names: List[str] = field(default_factory=list)
