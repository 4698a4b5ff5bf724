"""
Partition commit records by the project they came from.
"""

from __future__ import annotations

from typing import Dict, Iterable, List

from weekly_report.vcs.git_client import CommitRecord


def group_commits_by_project(commits: Iterable[CommitRecord]) -> Dict[str, List[CommitRecord]]:
    """Group commits by their ``project`` field.

    Projects appear in the order their first commit was seen and commits
    keep their extraction order inside each group.
    """
    grouped: Dict[str, List[CommitRecord]] = {}
    for commit in commits:
        grouped.setdefault(commit.project, []).append(commit)
    return grouped
