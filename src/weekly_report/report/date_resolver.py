"""
Work out the date span of a task candidate.

A candidate names the commits it summarises by their 1-based position in
the project's commit list. When that reference is missing or points
nowhere, the span of the whole project is used instead, so every row gets
a well-formed pair of dates.
"""

from __future__ import annotations

from datetime import date
from typing import List, Sequence, Tuple

from weekly_report.grouping.task_model import TaskCandidate
from weekly_report.vcs.git_client import CommitRecord


def referenced_commits(
    candidate: TaskCandidate, commits: Sequence[CommitRecord]
) -> List[CommitRecord]:
    """Return the commits ``candidate.commit_indices`` point at.

    Out-of-range and non-positive indices are ignored.
    """
    if not candidate.commit_indices:
        return []
    return [commits[i - 1] for i in candidate.commit_indices if 1 <= i <= len(commits)]


def resolve_task_dates(
    candidate: TaskCandidate, commits: Sequence[CommitRecord]
) -> Tuple[date, date]:
    """Return ``(start_date, end_date)`` for ``candidate``.

    Raises
    ------
    ValueError
        If ``commits`` is empty; a candidate always comes from at least
        one commit.
    """
    if not commits:
        raise ValueError("Cannot resolve dates without commits")
    selected = referenced_commits(candidate, commits) or list(commits)
    dates = sorted(commit.date for commit in selected)
    return dates[0], dates[-1]
