"""
Top-level package for weekly_report.

This package turns a week of git history into a filled-in weekly report
spreadsheet. The CLI entry point lives in :mod:`weekly_report.cli`; the
pipeline that ties the stages together lives in
:mod:`weekly_report.pipeline`.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
