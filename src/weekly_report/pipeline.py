"""
The commit-to-report pipeline.

:class:`ReportPipeline` runs the stages in order: extract commits from
every project, group them by project, classify each project (or each
commit), resolve task dates and assemble numbered rows. Projects are
processed one at a time. The pipeline receives its capabilities (git
client factory, text-generation client, clock) from the caller and never
reads configuration on its own.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from weekly_report.config.loader import MODE_PER_COMMIT, ReportConfig
from weekly_report.grouping.project_grouper import group_commits_by_project
from weekly_report.grouping.task_model import CommitClassification
from weekly_report.llm.commit_classifier import CommitClassifier
from weekly_report.report.assembler import assemble_commit_rows, assemble_task_rows
from weekly_report.report.date_resolver import resolve_task_dates
from weekly_report.report.models import ProblemRow, TaskRow, WeeklyReport
from weekly_report.vcs.commit_extractor import extract_commits
from weekly_report.vcs.git_client import CommitRecord, GitClient
from weekly_report.week import DateWindow, current_work_week, report_title


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


@dataclass
class ReportOutcome:
    """Result of a pipeline run.

    ``report`` is None when no project had commits in the window; that is
    a normal outcome, not an error.
    """

    window: DateWindow
    report: Optional[WeeklyReport] = None
    fallback_projects: List[str] = field(default_factory=list)

    @property
    def nothing_to_generate(self) -> bool:
        return self.report is None


class ReportPipeline:
    """Build a :class:`WeeklyReport` from git history.

    Parameters
    ----------
    config : ReportConfig
        Validated configuration for the run.
    llm_client
        Text-generation client passed to :class:`CommitClassifier`.
    git_client_factory : Callable[[Path], GitClient], optional
        Creates the git client for a repository path.
    today : Callable[[], date], optional
        Clock used to pick the default window.
    """

    def __init__(
        self,
        config: ReportConfig,
        llm_client: Any,
        git_client_factory: Callable[[Path], GitClient] = GitClient,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.config = config
        self.classifier = CommitClassifier(llm_client)
        self.git_client_factory = git_client_factory
        self.today = today

    def resolve_window(self, override: Optional[DateWindow] = None) -> DateWindow:
        """Pick the report window: explicit override, configured, or this week."""
        return override or self.config.window or current_work_week(self.today())

    def collect_commits(self, window: DateWindow) -> List[CommitRecord]:
        """Extract the commits of every configured project, in config order."""
        commits: List[CommitRecord] = []
        for path in self.config.project_paths:
            logger.info("Scanning project: %s", path)
            commits.extend(extract_commits(path, window, self.git_client_factory))
        logger.info(
            "Collected %d commit(s) from %d project(s)", len(commits), len(self.config.project_paths)
        )
        return commits

    def _batch_rows(
        self, grouped: Dict[str, List[CommitRecord]], fallback_projects: List[str]
    ) -> List[TaskRow]:
        tasks: List[TaskRow] = []
        next_number = 1
        for project, project_commits in grouped.items():
            result = self.classifier.classify_project(project, project_commits)
            if result.fallback:
                fallback_projects.append(project)
            resolved = [
                (candidate, *resolve_task_dates(candidate, project_commits))
                for candidate in result.candidates
            ]
            rows, next_number = assemble_task_rows(
                project, resolved, self.config.user_name, next_number
            )
            tasks.extend(rows)
        return tasks

    def _per_commit_rows(
        self, grouped: Dict[str, List[CommitRecord]]
    ) -> Tuple[List[TaskRow], List[ProblemRow]]:
        classified: List[Tuple[CommitRecord, CommitClassification]] = []
        for project_commits in grouped.values():
            for commit in project_commits:
                classified.append((commit, self.classifier.classify_commit(commit)))
        return assemble_commit_rows(classified, self.config.user_name)

    def build_report(self, commits: Sequence[CommitRecord], window: DateWindow) -> ReportOutcome:
        """Classify ``commits`` and assemble the report rows."""
        outcome = ReportOutcome(window=window)
        if not commits:
            logger.info("No commits between %s and %s; nothing to generate", window.since, window.until)
            return outcome

        grouped = group_commits_by_project(commits)
        logger.info("Projects involved: %s", ", ".join(grouped))

        problems: List[ProblemRow] = []
        if self.config.mode == MODE_PER_COMMIT:
            tasks, problems = self._per_commit_rows(grouped)
        else:
            tasks = self._batch_rows(grouped, outcome.fallback_projects)

        logger.info(
            "Generated %d task row(s) from %d commit(s) (ratio %.2f:1)",
            len(tasks),
            len(commits),
            len(tasks) / len(commits),
        )
        outcome.report = WeeklyReport(
            title=report_title(self.config.user_name, window),
            owner=self.config.user_name,
            window=window,
            tasks=tasks,
            problems=problems,
            commit_count=len(commits),
            project_names=list(grouped),
        )
        return outcome

    def run(self, window: Optional[DateWindow] = None) -> ReportOutcome:
        """Run every stage for ``window`` (or the default window)."""
        resolved_window = self.resolve_window(window)
        logger.info("Report window: %s ~ %s", resolved_window.since, resolved_window.until)
        commits = self.collect_commits(resolved_window)
        return self.build_report(commits, resolved_window)
