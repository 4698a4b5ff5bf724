#!/usr/bin/env python
"""
Thin wrapper script to invoke the weekly_report CLI.

Running ``python weekreport.py`` is equivalent to running the
``weekreport`` console script installed via ``pyproject.toml``.
"""

from weekly_report.cli import main


if __name__ == "__main__":
    main(prog_name="weekreport")
