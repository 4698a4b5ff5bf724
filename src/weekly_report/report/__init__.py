"""
Report assembly and output.

Pure stages (:mod:`~weekly_report.report.date_resolver`,
:mod:`~weekly_report.report.assembler`, :mod:`~weekly_report.report.layout`)
turn classified work into rows; :mod:`~weekly_report.report.excel_writer`
writes them into the spreadsheet template.
"""

from .models import ProblemRow, TaskRow, WeeklyReport  # noqa: F401
from .date_resolver import resolve_task_dates  # noqa: F401
from .assembler import assemble_commit_rows, assemble_task_rows  # noqa: F401
from .layout import estimate_height  # noqa: F401
from .excel_writer import ReportWriteError, TemplateMissingError, write_report  # noqa: F401
