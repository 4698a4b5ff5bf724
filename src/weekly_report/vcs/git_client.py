"""
Git client implementation for weekly_report.

This module wraps the single Git operation the report generator needs:
listing the commits of a repository inside a date window together with
the files each commit touched. All subprocess calls go through
:meth:`GitClient._run` so that unit tests can mock them easily.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import List, Tuple

from weekly_report.week import DateWindow


logger = logging.getLogger(__name__)
# Attach a null handler to avoid logging errors when the root logger is not
# configured. Logs propagate to the root when configured by the CLI.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


# Marks the first line of every commit in the log output. File status lines
# produced by ``--name-status`` never start with it.
COMMIT_SENTINEL = "COMMIT_SEP"
FIELD_DELIMITER = "|"
LOG_FORMAT = FIELD_DELIMITER.join([COMMIT_SENTINEL, "%H", "%an", "%ad", "%s"])


@dataclass(frozen=True)
class CommitRecord:
    """Representation of a single commit in a report window."""

    hash: str  # first 8 characters of the full hash
    author: str
    date: date
    message: str
    project: str
    files: Tuple[str, ...] = field(default_factory=tuple)  # e.g. 'M src/app.py'


class GitError(Exception):
    """Raised when a Git command fails."""

    pass


class GitClient:
    """Client for reading history from a Git repository."""

    def __init__(self, repo_root: Path) -> None:
        self.repo_root = repo_root

    def _run(self, args: List[str], check: bool = True) -> subprocess.CompletedProcess:
        """Run a Git command against the repository.

        Raises
        ------
        GitError
            If the command exits with a non-zero status when ``check`` is
            True, or if the ``git`` executable cannot be started.
        """
        full_cmd = ["git", "-C", str(self.repo_root)] + args
        logger.debug("Executing Git command: %s", " ".join(full_cmd))
        try:
            result = subprocess.run(
                full_cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",  # Replace invalid characters instead of failing
            )
        except OSError as exc:
            logger.error("Unable to execute git: %s", exc)
            raise GitError(f"Unable to execute git: {exc}") from exc

        if check and result.returncode != 0:
            logger.error(
                "Git command failed: %s\nSTDOUT: %s\nSTDERR: %s",
                " ".join(full_cmd),
                result.stdout,
                result.stderr,
            )
            raise GitError(result.stderr.strip() or result.stdout.strip())
        return result

    def log(self, window: DateWindow) -> str:
        """Return the raw log of commits authored inside ``window``.

        The window end is treated as the end of that day. Every commit
        starts with a header line ``COMMIT_SEP|hash|author|date|subject``
        followed by its ``--name-status`` lines.

        Raises
        ------
        GitError
            If ``git log`` fails.
        """
        result = self._run(
            [
                "log",
                f"--since={window.since.isoformat()} 00:00:00",
                f"--until={window.until.isoformat()} 23:59:59",
                f"--pretty=format:{LOG_FORMAT}",
                "--date=short",
                "--name-status",
            ],
            check=True,
        )
        return result.stdout
