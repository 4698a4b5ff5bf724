"""
Grouping of commits into report work items.

See :mod:`weekly_report.grouping.project_grouper` for the per-project
partition and :mod:`weekly_report.grouping.task_model` for the models the
classifier produces.
"""

from .project_grouper import group_commits_by_project  # noqa: F401
from .task_model import (  # noqa: F401
    ClassificationResult,
    CommitClassification,
    TaskCandidate,
    TaskCategory,
)
