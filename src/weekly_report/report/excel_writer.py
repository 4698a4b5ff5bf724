"""
Fill the weekly report spreadsheet template.

The template holds a title cell, a task block and a problem block at the
rows given by :class:`TemplateRows`. When a block needs more rows than
the template provides, rows are inserted after the block's last template
row and styled like it; everything below moves down.
"""

from __future__ import annotations

import logging
from copy import copy
from pathlib import Path
from typing import Any, List, Sequence
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.styles import Alignment, Border, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.worksheet.worksheet import Worksheet

from weekly_report.config.loader import TemplateRows
from weekly_report.report.layout import DEFAULT_FONT_SIZE, estimate_height
from weekly_report.report.models import ProblemRow, TaskRow, WeeklyReport


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


TASK_COLUMNS = 9
PROBLEM_COLUMNS = 6
DETAIL_COLUMN = 3
DEFAULT_DETAIL_WIDTH = 50.0

_THIN = Side(style="thin", color="FF000000")
CELL_BORDER = Border(top=_THIN, left=_THIN, bottom=_THIN, right=_THIN)
CELL_FILL = PatternFill(fill_type="solid", fgColor="FFFFFFFF")
CELL_ALIGNMENT = Alignment(horizontal="left", vertical="top", wrap_text=True)
DETAIL_ALIGNMENT = Alignment(horizontal="left", vertical="top", wrap_text=True, indent=1)


class TemplateMissingError(Exception):
    """Raised when the spreadsheet template file does not exist."""

    pass


class ReportWriteError(Exception):
    """Raised when the template cannot be read or the report cannot be saved."""

    pass


def task_row_values(task: TaskRow) -> List[Any]:
    """Cell values of a task row, columns A to I."""
    return [
        task.sequence_number,
        task.label,
        task.detail,
        task.start_date.isoformat(),
        task.end_date.isoformat(),
        task.owner,
        task.collaborators,
        task.progress,
        task.note,
    ]


def problem_row_values(problem: ProblemRow) -> List[Any]:
    """Cell values of a problem row, columns A to F."""
    return [
        problem.sequence_number,
        problem.category,
        problem.description,
        problem.raised_date.isoformat(),
        problem.resolution,
        problem.resolved_date.isoformat(),
    ]


def _write_title(worksheet: Worksheet, coordinate: str, title: str) -> None:
    # Only the top-left cell of a merged range accepts a value.
    for merged in worksheet.merged_cells.ranges:
        if coordinate in merged:
            coordinate = f"{get_column_letter(merged.min_col)}{merged.min_row}"
            break
    worksheet[coordinate] = title


def _insert_rows(worksheet: Worksheet, after_row: int, amount: int, columns: int) -> None:
    """Insert ``amount`` rows below ``after_row`` styled like ``after_row``."""
    insert_at = after_row + 1
    worksheet.insert_rows(insert_at, amount=amount)
    # insert_rows leaves merged ranges where they were.
    for merged in list(worksheet.merged_cells.ranges):
        if merged.min_row >= insert_at:
            merged.shift(row_shift=amount)
    # Nor does it move row heights.
    dimensions = worksheet.row_dimensions
    for row in sorted((r for r in list(dimensions) if r >= insert_at), reverse=True):
        dimension = dimensions.pop(row)
        dimension.index = row + amount
        dimensions[row + amount] = dimension
    for offset in range(1, amount + 1):
        for column in range(1, columns + 1):
            source = worksheet.cell(row=after_row, column=column)
            target = worksheet.cell(row=after_row + offset, column=column)
            if source.has_style:
                target._style = copy(source._style)


def _detail_width(worksheet: Worksheet) -> float:
    width = worksheet.column_dimensions[get_column_letter(DETAIL_COLUMN)].width
    return float(width) if width else DEFAULT_DETAIL_WIDTH


def _fill_row(worksheet: Worksheet, row: int, values: Sequence[Any], detail_width: float) -> None:
    for column, value in enumerate(values, start=1):
        cell = worksheet.cell(row=row, column=column)
        cell.value = value
        cell.fill = CELL_FILL
        cell.border = CELL_BORDER
        cell.alignment = DETAIL_ALIGNMENT if column == DETAIL_COLUMN else CELL_ALIGNMENT
    detail = worksheet.cell(row=row, column=DETAIL_COLUMN)
    font_size = float(detail.font.sz) if detail.font is not None and detail.font.sz else DEFAULT_FONT_SIZE
    worksheet.row_dimensions[row].height = estimate_height(
        str(detail.value or ""), detail_width, font_size
    )


def write_report(
    report: WeeklyReport,
    template_path: Path,
    output_path: Path,
    template_rows: TemplateRows,
) -> Path:
    """Write ``report`` into a copy of the template at ``output_path``.

    Raises
    ------
    TemplateMissingError
        If ``template_path`` does not exist.
    ReportWriteError
        If the template cannot be loaded or the output cannot be saved.
    """
    template_path = Path(template_path)
    output_path = Path(output_path)
    if not template_path.is_file():
        logger.error("Template file does not exist: %s", template_path)
        raise TemplateMissingError(f"Template file does not exist: {template_path}")
    try:
        workbook = load_workbook(template_path)
    except (OSError, BadZipFile, InvalidFileException, KeyError, ValueError) as exc:
        raise ReportWriteError(f"Unable to read template {template_path}: {exc}") from exc
    worksheet = workbook.worksheets[0]

    _write_title(
        worksheet, f"{template_rows.title_column}{template_rows.title_row}", report.title
    )
    logger.info("Report title: %s", report.title)

    problem_start = template_rows.problem_start_row
    extra_tasks = len(report.tasks) - template_rows.task_capacity
    if extra_tasks > 0:
        last_template_row = template_rows.task_start_row + template_rows.task_capacity - 1
        _insert_rows(worksheet, last_template_row, extra_tasks, TASK_COLUMNS)
        problem_start += extra_tasks
        logger.debug("Inserted %d task row(s) after row %d", extra_tasks, last_template_row)

    extra_problems = len(report.problems) - template_rows.problem_capacity
    if extra_problems > 0:
        last_template_row = problem_start + template_rows.problem_capacity - 1
        _insert_rows(worksheet, last_template_row, extra_problems, PROBLEM_COLUMNS)
        logger.debug("Inserted %d problem row(s) after row %d", extra_problems, last_template_row)

    detail_width = _detail_width(worksheet)
    for index, task in enumerate(report.tasks):
        _fill_row(worksheet, template_rows.task_start_row + index, task_row_values(task), detail_width)
    logger.info("Filled %d task row(s)", len(report.tasks))

    for index, problem in enumerate(report.problems):
        _fill_row(worksheet, problem_start + index, problem_row_values(problem), detail_width)
    logger.info("Filled %d problem row(s)", len(report.problems))

    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        workbook.save(output_path)
    except OSError as exc:
        logger.error("Failed to save report to %s: %s", output_path, exc)
        raise ReportWriteError(f"Unable to save report to {output_path}: {exc}") from exc
    logger.info("Report written to %s", output_path)
    return output_path
