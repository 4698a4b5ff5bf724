"""
Turn classified work into report rows.

The assembler is a pure transform. Sequence numbers are threaded through
explicitly: :func:`assemble_task_rows` takes the next free number and
returns the one after its last row, so numbering continues across
projects instead of restarting.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, List, Sequence, Tuple

from weekly_report.grouping.task_model import (
    KIND_PROBLEM,
    NO_RELATED_ID,
    CommitClassification,
    TaskCandidate,
)
from weekly_report.report.models import ProblemRow, TaskRow
from weekly_report.vcs.git_client import CommitRecord


KEY_CHANGES_HEADER = "Key changes:"
BULLET = "•"

ResolvedCandidate = Tuple[TaskCandidate, date, date]


def format_detail(description: str, key_changes: Sequence[str]) -> str:
    """Compose the detail cell text of a task row.

    >>> print(format_detail("Login page", ["Add form", "Add captcha"]))
    Login page
    Key changes:
    • Add form
    • Add captcha
    """
    if not key_changes:
        return description
    bullets = "\n".join(f"{BULLET} {change}" for change in key_changes)
    return f"{description}\n{KEY_CHANGES_HEADER}\n{bullets}"


def assemble_task_rows(
    project: str,
    resolved: Iterable[ResolvedCandidate],
    owner: str,
    start_number: int = 1,
) -> Tuple[List[TaskRow], int]:
    """Build the task rows of one project.

    Parameters
    ----------
    project : str
        Project the candidates belong to.
    resolved : Iterable[Tuple[TaskCandidate, date, date]]
        Candidates with their resolved start and end dates.
    owner : str
        Report owner written on every row.
    start_number : int
        Sequence number of the first row.

    Returns
    -------
    Tuple[List[TaskRow], int]
        The rows and the sequence number to use for the next row.
    """
    rows: List[TaskRow] = []
    number = start_number
    for candidate, start_date, end_date in resolved:
        rows.append(
            TaskRow(
                sequence_number=number,
                label=f"[{project}] {candidate.module}",
                detail=format_detail(candidate.description, candidate.key_changes),
                start_date=start_date,
                end_date=end_date,
                owner=owner,
            )
        )
        number += 1
    return rows, number


def assemble_commit_rows(
    classified: Iterable[Tuple[CommitRecord, CommitClassification]],
    owner: str,
) -> Tuple[List[TaskRow], List[ProblemRow]]:
    """Split per-commit classifications into task and problem rows.

    Each stream is numbered independently from 1.
    """
    tasks: List[TaskRow] = []
    problems: List[ProblemRow] = []
    for commit, item in classified:
        description = f"[{commit.project}] {item.description}"
        if item.kind == KIND_PROBLEM:
            problems.append(
                ProblemRow(
                    sequence_number=len(problems) + 1,
                    category=item.category,
                    description=description,
                    raised_date=commit.date,
                    resolution=f"Fixed in commit {commit.hash}",
                    resolved_date=commit.date,
                )
            )
            continue
        tasks.append(
            TaskRow(
                sequence_number=len(tasks) + 1,
                label=item.category,
                detail=description,
                start_date=commit.date,
                end_date=commit.date,
                owner=owner,
                note="" if item.related_id.lower() == NO_RELATED_ID else item.related_id,
            )
        )
    return tasks, problems
