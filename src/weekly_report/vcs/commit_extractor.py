"""
Turn raw ``git log`` output into :class:`CommitRecord` objects.

Extraction is best effort: a project whose path is missing, which is not
a repository, or whose log cannot be read yields no commits and a
warning, so one bad path never aborts a whole report.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Callable, List, Optional, Union

from weekly_report.vcs.git_client import (
    COMMIT_SENTINEL,
    FIELD_DELIMITER,
    CommitRecord,
    GitClient,
    GitError,
)
from weekly_report.week import DateWindow


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


HASH_LENGTH = 8
_HEADER_PREFIX = COMMIT_SENTINEL + FIELD_DELIMITER


def _parse_header(line: str, project: str) -> Optional[CommitRecord]:
    # Subjects may contain the delimiter, so split at most four times.
    parts = line.split(FIELD_DELIMITER, 4)
    if len(parts) < 5:
        logger.warning("Skipping malformed commit header: %r", line)
        return None
    _, full_hash, author, raw_date, subject = parts
    try:
        commit_date = date.fromisoformat(raw_date.strip())
    except ValueError:
        logger.warning("Skipping commit %s with unparsable date %r", full_hash[:HASH_LENGTH], raw_date)
        return None
    return CommitRecord(
        hash=full_hash.strip()[:HASH_LENGTH],
        author=author.strip(),
        date=commit_date,
        message=subject.strip(),
        project=project,
    )


def parse_log_output(output: str, project: str) -> List[CommitRecord]:
    """Parse log text produced by :meth:`GitClient.log`.

    Parameters
    ----------
    output : str
        Raw stdout of the log command.
    project : str
        Project name stamped on every record.

    Returns
    -------
    List[CommitRecord]
        Commits in the order git reported them. Lines that appear before
        the first header are ignored.
    """
    commits: List[CommitRecord] = []
    header: Optional[CommitRecord] = None
    files: List[str] = []

    def flush() -> None:
        if header is not None:
            commits.append(replace(header, files=tuple(files)))

    for line in output.splitlines():
        if not line.strip():
            continue
        if line.startswith(_HEADER_PREFIX):
            flush()
            files = []
            header = _parse_header(line, project)
            continue
        if header is not None:
            files.append(line.strip())
    flush()
    return commits


def extract_commits(
    repo_path: Union[str, Path],
    window: DateWindow,
    client_factory: Callable[[Path], GitClient] = GitClient,
) -> List[CommitRecord]:
    """Return the commits of one repository inside ``window``.

    Never raises for an unavailable project; the condition is logged as a
    warning and an empty list is returned instead.
    """
    path = Path(repo_path).expanduser()
    if not path.is_dir():
        logger.warning("Project path does not exist, skipping: %s", path)
        return []

    client = client_factory(path)
    project = path.resolve().name
    try:
        output = client.log(window)
    except GitError as exc:
        logger.warning("Failed to read git history of %s, skipping: %s", path, exc)
        return []

    commits = parse_log_output(output, project)
    if commits:
        logger.info("Found %d commit(s) in %s", len(commits), project)
    else:
        logger.info("No commits in %s between %s and %s", project, window.since, window.until)
    return commits
