"""
Commit classification using an LLM.

This module provides the :class:`CommitClassifier` class, which asks a
text-generation service to turn commits into report entries. Two modes
are supported:

* batch mode (:meth:`CommitClassifier.classify_project`) sends all of a
  project's commits in one prompt and receives a JSON array of task
  candidates, each naming the commits it summarises;
* per-commit mode (:meth:`CommitClassifier.classify_commit`) classifies a
  single commit message as a task or a problem.

The service is not trusted to answer well. Code fences are stripped,
fields are normalised, and on any failure a deterministic fallback is
returned instead of an exception, so a report can always be produced.
"""

from __future__ import annotations

import json
import logging
import re
from textwrap import dedent
from typing import Any, List, Optional, Sequence

from weekly_report.grouping.task_model import (
    KIND_PROBLEM,
    KIND_TASK,
    NO_RELATED_ID,
    UNCATEGORIZED,
    ClassificationResult,
    CommitClassification,
    TaskCandidate,
    TaskCategory,
)
from weekly_report.llm.ollama_client import LLMError
from weekly_report.vcs.git_client import CommitRecord


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


BATCH_TEMPERATURE = 0.3
BATCH_MAX_TOKENS = 4000
COMMIT_TEMPERATURE = 0.1
COMMIT_MAX_TOKENS = 200

MAX_FILES_IN_PROMPT = 5
FALLBACK_CATEGORY = "development"
FALLBACK_KEY_CHANGES = 3
FALLBACK_DESCRIPTION_LENGTH = 50

_SURROUNDING_FENCE_RE = re.compile(r"\A```[\w-]*[ \t]*\n?(.*?)\n?```\s*\Z", re.DOTALL)
_LINE_FENCE_RE = re.compile(r"^```[\w-]*[ \t]*\n(.*?)\n```[ \t]*$", re.DOTALL | re.MULTILINE)
_OPENING_FENCE_RE = re.compile(r"\A```[\w-]*")
_PROBLEM_WORDS = {"problem", "issue", "bug", "defect"}


def strip_code_fences(text: str) -> str:
    """Remove a surrounding Markdown code fence from ``text``.

    Backticks inside the payload are left alone; only a fence wrapping the
    whole answer, or a fenced block on lines of its own between prose, is
    unwrapped.

    >>> strip_code_fences('```json\\n[1, 2]\\n```')
    '[1, 2]'
    >>> strip_code_fences('[1, 2]')
    '[1, 2]'
    >>> strip_code_fences('["use ```x``` here"]')
    '["use ```x``` here"]'
    """
    stripped = text.strip()
    match = _SURROUNDING_FENCE_RE.match(stripped)
    if match:
        return match.group(1).strip()
    if stripped.startswith("```"):
        # Unterminated fence.
        return _OPENING_FENCE_RE.sub("", stripped, count=1).strip()
    match = _LINE_FENCE_RE.search(stripped)
    if match:
        return match.group(1).strip()
    return stripped


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return ""
    return str(value).strip()


def _as_indices(value: Any) -> Optional[List[int]]:
    """Coerce the ``commit_indices`` field into a list of ints.

    Entries that are not integers (or integer-like strings) are dropped;
    range checking is left to the date resolver.
    """
    if value is None:
        return None
    if isinstance(value, (int, str)) and not isinstance(value, bool):
        value = [value]
    if not isinstance(value, list):
        return None
    indices: List[int] = []
    for item in value:
        if isinstance(item, bool):
            continue
        if isinstance(item, int):
            indices.append(item)
        elif isinstance(item, float) and item.is_integer():
            indices.append(int(item))
        elif isinstance(item, str):
            try:
                indices.append(int(item.strip()))
            except ValueError:
                continue
    return indices


def _as_key_changes(value: Any) -> List[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    return [text for text in (_as_text(item) for item in value) if text]


def _normalise_candidate(item: Any) -> Optional[TaskCandidate]:
    if not isinstance(item, dict):
        return None
    module = _as_text(item.get("module"))
    description = _as_text(item.get("description"))
    if not module and not description:
        return None
    return TaskCandidate(
        module=module or UNCATEGORIZED,
        category=_as_text(item.get("category")) or UNCATEGORIZED,
        description=description or module,
        key_changes=_as_key_changes(item.get("key_changes")),
        commit_indices=_as_indices(item.get("commit_indices")),
    )


def parse_task_candidates(raw_response: str) -> List[TaskCandidate]:
    """Decode a batch response into task candidates.

    Raises
    ------
    ValueError
        If the text is not JSON, is not an array of objects (optionally
        wrapped in ``{"tasks": [...]}``), or holds no usable entry.
    """
    data = json.loads(strip_code_fences(raw_response))
    if isinstance(data, dict) and isinstance(data.get("tasks"), list):
        data = data["tasks"]
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON array, got {type(data).__name__}")
    candidates = [c for c in (_normalise_candidate(item) for item in data) if c is not None]
    if not candidates:
        raise ValueError("Response contained no usable task entries")
    return candidates


def fallback_candidate(project: str, commits: Sequence[CommitRecord]) -> TaskCandidate:
    """Synthetic entry summarising a whole project's commits."""
    count = len(commits)
    return TaskCandidate(
        module=UNCATEGORIZED,
        category=FALLBACK_CATEGORY,
        description=f"{project} development work ({count} commit{'s' if count != 1 else ''})",
        key_changes=[c.message for c in commits[:FALLBACK_KEY_CHANGES]],
        commit_indices=list(range(1, count + 1)),
    )


class CommitClassifier:
    """Classify commits into report entries with a text-generation client.

    Parameters
    ----------
    llm_client
        Any object with a ``generate(prompt, temperature=None,
        max_tokens=None)`` method that returns text and raises
        :class:`LLMError` on failure.
    """

    def __init__(self, llm_client: Any) -> None:
        self.llm_client = llm_client

    # ------------------------------------------------------------------
    # Batch mode
    # ------------------------------------------------------------------
    def _format_commit(self, index: int, commit: CommitRecord) -> str:
        files = ", ".join(commit.files[:MAX_FILES_IN_PROMPT]) or "(no files)"
        if len(commit.files) > MAX_FILES_IN_PROMPT:
            files += f" and {len(commit.files)} files in total"
        return f"{index}. [{commit.date.isoformat()}] {commit.message}\n   Files: {files}"

    def _build_project_prompt(self, project: str, commits: Sequence[CommitRecord]) -> str:
        """Construct the prompt asking for a JSON array of report entries."""
        commit_summary = "\n\n".join(
            self._format_commit(index, commit) for index, commit in enumerate(commits, start=1)
        )
        categories = "|".join(TaskCategory.ALL)
        prompt = dedent(
            """
            You are an assistant that writes engineering weekly reports.
            Analyse the git commits of one project, identify the code modules
            and features they touch, and turn them into report entries.

            Project: {project}
            Commits ({count} in total):

            {commits}

            GUIDELINES:
            1. Split finely: use file paths, commit messages and features to
               separate work. Different modules, different features and
               different kinds of work (new feature, fix, optimisation) are
               separate entries, even when a single commit is involved.
            2. Describe each entry in concise, professional language from the
               point of view of a status report (15-40 words).
            3. List the 2-4 key changes of each entry.
            4. Reference the commits each entry covers by their numbers above.
            5. Avoid vague wording such as "fixed a bug"; say what was fixed.

            OUTPUT FORMAT (a valid JSON array and nothing else):
            [
              {{
                "module": "module or feature name",
                "category": "{categories}",
                "description": "what was done",
                "key_changes": ["change 1", "change 2"],
                "commit_indices": [1, 2]
              }}
            ]

            Output the JSON array directly, without any other text.
            """
        ).strip()
        return prompt.format(
            project=project,
            count=len(commits),
            commits=commit_summary,
            categories=categories,
        )

    def classify_project(
        self, project: str, commits: Sequence[CommitRecord]
    ) -> ClassificationResult:
        """Classify all commits of ``project`` with a single service call.

        Never raises: on a service error or an unusable answer the result
        holds one fallback candidate spanning every commit.
        """
        logger.info("[%s] Analysing %d commit(s)", project, len(commits))
        try:
            prompt = self._build_project_prompt(project, commits)
            raw = self.llm_client.generate(
                prompt, temperature=BATCH_TEMPERATURE, max_tokens=BATCH_MAX_TOKENS
            )
            candidates = parse_task_candidates(raw)
        except (LLMError, ValueError) as exc:
            logger.warning(
                "[%s] Classification failed: %s; using fallback entry.", project, exc
            )
            return ClassificationResult(
                candidates=[fallback_candidate(project, commits)],
                fallback=True,
                error=str(exc),
            )
        for number, candidate in enumerate(candidates, start=1):
            logger.info(
                "[%s]   %d. [%s] %s", project, number, candidate.module, candidate.description
            )
        return ClassificationResult(candidates=candidates)

    # ------------------------------------------------------------------
    # Per-commit mode
    # ------------------------------------------------------------------
    def _build_commit_prompt(self, commit: CommitRecord) -> str:
        prompt = dedent(
            """
            Classify the following code commit message.

            Answer with a single JSON object and nothing else, using these keys:
            - "type": "task" or "problem" (fixing a bug or an error is a
              problem; new features and optimisations are tasks)
            - "category": the specific kind of work, e.g. new feature,
              production bug fix, performance, documentation
            - "description": the work in 10-30 words, without filler
            - "related_id": the requirement or bug number referenced by the
              message (e.g. "#123" gives "123"), or "none"

            Commit message: {message}

            Example: {{"type": "task", "category": "new feature", "description": "Add captcha to the login page", "related_id": "REQ-456"}}
            """
        ).strip()
        return prompt.format(message=commit.message)

    def _fallback_classification(self, commit: CommitRecord) -> CommitClassification:
        return CommitClassification(
            kind=KIND_TASK,
            category=UNCATEGORIZED,
            description=commit.message[:FALLBACK_DESCRIPTION_LENGTH],
            related_id=NO_RELATED_ID,
        )

    def classify_commit(self, commit: CommitRecord) -> CommitClassification:
        """Classify a single commit as a task or a problem.

        Never raises; returns a task classification built from the commit
        message when the service fails or answers unusably.
        """
        logger.info("[%s] Classifying %s: %s", commit.project, commit.hash, commit.message[:50])
        try:
            raw = self.llm_client.generate(
                self._build_commit_prompt(commit),
                temperature=COMMIT_TEMPERATURE,
                max_tokens=COMMIT_MAX_TOKENS,
            )
            data = json.loads(strip_code_fences(raw))
            if not isinstance(data, dict):
                raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
        except (LLMError, ValueError) as exc:
            logger.warning(
                "[%s] Classification of %s failed: %s; using commit message.",
                commit.project,
                commit.hash,
                exc,
            )
            return self._fallback_classification(commit)

        kind = _as_text(data.get("type")).lower()
        return CommitClassification(
            kind=KIND_PROBLEM if kind in _PROBLEM_WORDS else KIND_TASK,
            category=_as_text(data.get("category")) or UNCATEGORIZED,
            description=_as_text(data.get("description"))
            or commit.message[:FALLBACK_DESCRIPTION_LENGTH],
            related_id=_as_text(data.get("related_id")) or NO_RELATED_ID,
        )
