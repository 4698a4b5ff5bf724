"""
Command line interface for the weekly_report tool.

This module defines the ``main`` function which is used as the entry
point when executing the ``weekreport`` command. It orchestrates
configuration loading, commit extraction, classification, and writing
the spreadsheet. Exit codes are listed below.
"""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import click

from weekly_report import __version__
from weekly_report.config.loader import MODES, ConfigError, load_config, parse_window
from weekly_report.llm.factory import build_llm_client
from weekly_report.pipeline import ReportPipeline
from weekly_report.report.excel_writer import ReportWriteError, TemplateMissingError, write_report
from weekly_report.report.models import WeeklyReport
from weekly_report.week import output_file_name

logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------
EXIT_SUCCESS = 0
EXIT_GENERIC_ERROR = 1
EXIT_INVALID_USAGE = 2
EXIT_TEMPLATE_MISSING = 3
EXIT_CONFIG_ERROR = 5
EXIT_WRITE_FAILURE = 6


# ---------------------------------------------------------------------------
# Progress and status display utilities
# ---------------------------------------------------------------------------

class ProgressIndicator:
    """Simple progress indicator for user feedback."""

    def __init__(self, message: str):
        self.message = message
        self.start_time = None

    def __enter__(self):
        self.start_time = time.time()
        click.echo(f"→ {self.message}...")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        elapsed = time.time() - self.start_time
        if exc_type is None:
            click.echo(f"  ✓ Done ({elapsed:.1f}s)")
        return False


def print_step(step_num: int, total_steps: int, message: str):
    """Print a step indicator."""
    click.echo(f"\n{'='*60}")
    click.echo(f"Step {step_num}/{total_steps}: {message}")
    click.echo(f"{'='*60}")


def print_info(message: str, indent: int = 0):
    """Print an info message."""
    click.echo(f"{'  ' * indent}ℹ {message}")


def print_success(message: str, indent: int = 0):
    """Print a success message."""
    click.echo(f"{'  ' * indent}✓ {message}")


def print_warning(message: str, indent: int = 0):
    """Print a warning message."""
    click.echo(f"{'  ' * indent}⚠ {message}")


def print_error(message: str, indent: int = 0):
    """Print an error message."""
    click.echo(f"{'  ' * indent}✗ {message}", err=True)


def print_summary_box(title: str, items: List[str]):
    """Print a formatted summary box."""
    max_width = max(len(title), max(len(item) for item in items) if items else 0)
    box_width = min(max_width + 4, 60)

    click.echo(f"\n┌{'─' * box_width}┐")
    click.echo(f"│ {title.ljust(box_width - 2)}│")
    click.echo(f"├{'─' * box_width}┤")
    for item in items:
        click.echo(f"│ {item.ljust(box_width - 2)}│")
    click.echo(f"└{'─' * box_width}┘")


def print_report_preview(report: WeeklyReport):
    """Print the rows of ``report`` instead of writing a workbook."""
    click.echo(f"\n📝 {report.title}")
    for task in report.tasks:
        click.echo(
            f"\n  {task.sequence_number}. {click.style(task.label, fg='cyan', bold=True)}"
            f"  ({task.start_date.isoformat()} ~ {task.end_date.isoformat()}, {task.progress})"
        )
        for line in task.detail.splitlines():
            click.echo(f"     {line}")
        if task.note:
            click.echo(f"     Note: {task.note}")
    if report.problems:
        click.echo("\n  Problems:")
        for problem in report.problems:
            click.echo(
                f"  {problem.sequence_number}. [{problem.category}] {problem.description}"
                f" ({problem.raised_date.isoformat()}) - {problem.resolution}"
            )


def _to_date(value: Optional[datetime]):
    return value.date() if value is not None else None


@click.command()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to the JSON configuration file.",
)
@click.option("--since", type=click.DateTime(formats=["%Y-%m-%d"]), help="First day of the report window.")
@click.option("--until", type=click.DateTime(formats=["%Y-%m-%d"]), help="Last day of the report window.")
@click.option("--mode", type=click.Choice(MODES), help="Classify per project (batch) or per commit.")
@click.option(
    "--output",
    "output_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Where to write the workbook (defaults to the configured output directory).",
)
@click.option("--dry-run", is_flag=True, help="Print the report rows without writing a workbook.")
@click.option("--verbose", is_flag=True, help="Enable verbose (debug) output.")
@click.version_option(version=__version__, prog_name="weekreport")
def main(
    config_path: Optional[Path],
    since: Optional[datetime],
    until: Optional[datetime],
    mode: Optional[str],
    output_path: Optional[Path],
    dry_run: bool,
    verbose: bool,
) -> None:
    """📊 Generate a weekly work report from your git commits."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
        force=True,
    )

    click.echo("\n" + "=" * 60)
    click.echo("📊 Weekly Report Generator".center(60))
    click.echo("=" * 60)

    ctx = click.get_current_context(silent=True)
    total_steps = 3 if dry_run else 4

    try:
        # Step 1: Load configuration
        print_step(1, total_steps, "Loading Configuration")
        try:
            window_override = parse_window(_to_date(since), _to_date(until))
        except ConfigError as exc:
            print_error(f"Invalid date window: {exc}")
            raise click.exceptions.Exit(EXIT_INVALID_USAGE)
        try:
            with ProgressIndicator("Reading configuration"):
                config = load_config(config_path)
        except ConfigError as exc:
            print_error(f"Configuration error: {exc}")
            raise click.exceptions.Exit(EXIT_CONFIG_ERROR)
        if mode is not None:
            config = replace(config, mode=mode)

        print_success("Configuration loaded successfully")
        print_info(f"Report owner: {config.user_name}", indent=1)
        print_info(f"Projects: {len(config.project_paths)}", indent=1)
        print_info(f"Mode: {config.mode}", indent=1)
        print_info(f"LLM: {config.llm.provider} ({config.llm.model})", indent=1)

        if not dry_run and not config.template_path.is_file():
            print_error(f"Template file does not exist: {config.template_path}")
            raise click.exceptions.Exit(EXIT_TEMPLATE_MISSING)

        pipeline = ReportPipeline(config, build_llm_client(config.llm))
        window = pipeline.resolve_window(window_override)

        # Step 2: Scan repositories
        print_step(2, total_steps, "Scanning Repositories")
        print_info(f"Window: {window.since.isoformat()} ~ {window.until.isoformat()}")
        with ProgressIndicator(f"Reading git history of {len(config.project_paths)} project(s)"):
            commits = pipeline.collect_commits(window)

        if not commits:
            print_info("No commits in this window; nothing to generate.")
            raise click.exceptions.Exit(EXIT_SUCCESS)
        print_success(f"Found {len(commits)} commit{'s' if len(commits) != 1 else ''}")

        # Step 3: Classify commits
        print_step(3, total_steps, "Classifying Commits")
        with ProgressIndicator("Analysing commits with the language model (this may take a moment)"):
            outcome = pipeline.build_report(commits, window)
        report = outcome.report
        assert report is not None
        print_success(f"Generated {len(report.tasks)} task row(s) and {len(report.problems)} problem row(s)")
        for project in outcome.fallback_projects:
            print_warning(f"Classification failed for '{project}'; used a summary entry", indent=1)

        if dry_run:
            print_report_preview(report)
            raise click.exceptions.Exit(EXIT_SUCCESS)

        # Step 4: Write the spreadsheet
        print_step(4, total_steps, "Writing Report")
        target = output_path or config.output_dir / output_file_name(config.user_name, window)
        try:
            with ProgressIndicator(f"Filling template {config.template_path.name}"):
                written = write_report(report, config.template_path, target, config.template_rows)
        except TemplateMissingError as exc:
            print_error(str(exc))
            raise click.exceptions.Exit(EXIT_TEMPLATE_MISSING)
        except ReportWriteError as exc:
            print_error(str(exc))
            raise click.exceptions.Exit(EXIT_WRITE_FAILURE)

        print_summary_box(
            "✨ Summary",
            [
                f"✓ Projects: {len(report.project_names)}",
                f"✓ Commits: {report.commit_count}",
                f"✓ Task rows: {len(report.tasks)}",
                f"✓ Problem rows: {len(report.problems)}",
                f"✓ Output: {written.name}",
            ],
        )
        click.echo(f"\n🎉 Report written to {written}\n")
        raise click.exceptions.Exit(EXIT_SUCCESS)

    except click.exceptions.Exit:
        raise
    except Exception as exc:
        logging.exception("Unhandled error: %s", exc)
        print_error(f"Unexpected error: {exc}")
        ctx.exit(EXIT_GENERIC_ERROR)
