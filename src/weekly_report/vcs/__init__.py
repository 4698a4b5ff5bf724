"""
Version control system (VCS) integration.

This package contains the Git client used to read repository history and
the extractor that turns ``git log`` output into commit records.
"""

from .git_client import CommitRecord, GitClient, GitError  # noqa: F401
from .commit_extractor import extract_commits, parse_log_output  # noqa: F401
