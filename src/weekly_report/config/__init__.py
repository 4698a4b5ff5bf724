"""
Configuration loading for weekly_report.

See :mod:`weekly_report.config.loader` for the file format and lookup
rules.
"""

from .loader import (  # noqa: F401
    ConfigError,
    LLMSettings,
    ReportConfig,
    TemplateRows,
    load_config,
)
