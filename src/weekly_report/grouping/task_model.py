"""
Data models for classified work.

A :class:`TaskCandidate` is the language model's proposal for one report
entry covering some of a project's commits. A
:class:`CommitClassification` is the per-commit counterpart used when
commits are reported one by one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


class TaskCategory:
    """Category labels the classifier asks the model to choose from.

    The model may answer with anything else; unknown labels are passed
    through unchanged.
    """

    NEW_FEATURE = "new feature"
    BUG_FIX = "bug fix"
    PERFORMANCE = "performance"
    REFACTOR = "refactor"
    DOCUMENTATION = "documentation"

    ALL = (NEW_FEATURE, BUG_FIX, PERFORMANCE, REFACTOR, DOCUMENTATION)


UNCATEGORIZED = "uncategorized"
NO_RELATED_ID = "none"

KIND_TASK = "task"
KIND_PROBLEM = "problem"


@dataclass
class TaskCandidate:
    """Proposed report entry for a cluster of commits.

    Attributes
    ----------
    module : str
        Short label for the functional area.
    category : str
        Classification label, usually one of :attr:`TaskCategory.ALL`.
    description : str
        Short natural-language summary of the work.
    key_changes : List[str]
        Bullet points describing the main changes.
    commit_indices : Optional[List[int]]
        1-based positions in the project's commit list this entry claims
        to summarise. May be ``None``, empty or out of range.
    """

    module: str
    category: str
    description: str
    key_changes: List[str] = field(default_factory=list)
    commit_indices: Optional[List[int]] = None


@dataclass
class ClassificationResult:
    """Outcome of classifying one project's commits.

    ``fallback`` is True when the service could not be used and
    ``candidates`` holds the single synthetic entry instead.
    """

    candidates: List[TaskCandidate]
    fallback: bool = False
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return not self.fallback


@dataclass
class CommitClassification:
    """Classification of a single commit message."""

    kind: str  # 'task' or 'problem'
    category: str
    description: str
    related_id: str = NO_RELATED_ID
