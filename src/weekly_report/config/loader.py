"""
Configuration loader for weekly_report.

The tool reads a JSON configuration file. Unless a path is given
explicitly, ``weekly_report.json`` in the current directory is used, then
``~/.weekly_report/config.json``. The loader validates the structure and
returns a :class:`ReportConfig` value that is threaded through the
pipeline; no other module reads files or the environment for settings.

If the configuration file is missing, malformed, or missing required
keys, a :class:`ConfigError` is raised.

Example configuration::

    {
      "user_name": "Ada",
      "project_paths": ["~/src/app", "~/src/api"],
      "template_path": "weekly_report_template.xlsx",
      "output_dir": "output",
      "mode": "batch",
      "template_rows": {"title_row": 1, "task_start_row": 4, "problem_start_row": 12},
      "llm": {"provider": "deepseek", "model": "deepseek-chat"}
    }
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from dotenv import dotenv_values

from weekly_report.week import DateWindow


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


CONFIG_FILE_NAME = "weekly_report.json"
DEFAULT_TEMPLATE_NAME = "weekly_report_template.xlsx"
DEFAULT_OUTPUT_DIR = "output"

MODE_BATCH = "batch"
MODE_PER_COMMIT = "per-commit"
MODES = (MODE_BATCH, MODE_PER_COMMIT)

PROVIDER_DEEPSEEK = "deepseek"
PROVIDER_OPENAI = "openai"
PROVIDER_OLLAMA = "ollama"
PROVIDERS = (PROVIDER_DEEPSEEK, PROVIDER_OPENAI, PROVIDER_OLLAMA)

# Environment variables holding the API key of each remote provider.
API_KEY_ENV_VARS = {
    PROVIDER_DEEPSEEK: "DEEPSEEK_API_KEY",
    PROVIDER_OPENAI: "OPENAI_API_KEY",
}

_PROVIDER_DEFAULTS: Dict[str, Dict[str, Any]] = {
    PROVIDER_DEEPSEEK: {"base_url": "https://api.deepseek.com", "model": "deepseek-chat"},
    PROVIDER_OPENAI: {"base_url": "https://api.openai.com/v1", "model": "gpt-4o-mini"},
    PROVIDER_OLLAMA: {"base_url": "http://localhost", "port": 11434, "model": "llama3"},
}


class ConfigError(Exception):
    """Raised when the configuration file is missing or invalid."""

    pass


@dataclass(frozen=True)
class TemplateRows:
    """Where the report blocks live in the spreadsheet template."""

    title_row: int = 1
    title_column: str = "A"
    task_start_row: int = 4
    task_capacity: int = 4
    problem_start_row: int = 12
    problem_capacity: int = 5


@dataclass(frozen=True)
class LLMSettings:
    """Connection settings of the text-generation service."""

    provider: str = PROVIDER_DEEPSEEK
    model: str = "deepseek-chat"
    base_url: str = "https://api.deepseek.com"
    port: Optional[int] = None
    api_key: Optional[str] = None
    request_timeout: float = 60.0
    max_tokens: Optional[int] = None


@dataclass(frozen=True)
class ReportConfig:
    """Everything a report run needs, validated."""

    user_name: str
    project_paths: List[Path]
    template_path: Path
    output_dir: Path
    mode: str = MODE_BATCH
    window: Optional[DateWindow] = None
    template_rows: TemplateRows = field(default_factory=TemplateRows)
    llm: LLMSettings = field(default_factory=LLMSettings)


def _get_config_directory() -> Path:
    """Return the user-level configuration directory (``~/.weekly_report``)."""
    return Path.home() / ".weekly_report"


def find_config_file(explicit: Optional[Path] = None) -> Path:
    """Locate the configuration file.

    Raises
    ------
    ConfigError
        If no candidate file exists.
    """
    if explicit is not None:
        candidates = [Path(explicit).expanduser()]
    else:
        candidates = [Path.cwd() / CONFIG_FILE_NAME, _get_config_directory() / "config.json"]
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    searched = ", ".join(str(c) for c in candidates)
    logger.error("No configuration file found (searched: %s)", searched)
    raise ConfigError(
        f"Missing configuration file. Searched: {searched}\n"
        f"Create {CONFIG_FILE_NAME} with at least 'user_name' and 'project_paths'."
    )


def _require_type(data: Mapping[str, Any], key: str, kind: Any, label: str) -> None:
    if key in data and (not isinstance(data[key], kind) or isinstance(data[key], bool)):
        raise ConfigError(f"'{key}' must be {label}")


def _parse_date(data: Mapping[str, Any], key: str) -> Optional[date]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"'{key}' must be a date string (YYYY-MM-DD)")
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ConfigError(f"'{key}' is not a valid date (YYYY-MM-DD): {value}") from exc


def parse_window(since: Optional[date], until: Optional[date]) -> Optional[DateWindow]:
    """Build an explicit report window; both ends or neither must be set."""
    if since is None and until is None:
        return None
    if since is None or until is None:
        raise ConfigError("'since' and 'until' must be given together")
    try:
        return DateWindow(since=since, until=until)
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc


def _parse_template_rows(data: Any) -> TemplateRows:
    if data is None:
        return TemplateRows()
    if not isinstance(data, dict):
        raise ConfigError("'template_rows' must be an object")
    for key in ("title_row", "task_start_row", "task_capacity", "problem_start_row", "problem_capacity"):
        _require_type(data, key, int, "an integer")
        if key in data and data[key] < 1:
            raise ConfigError(f"'template_rows.{key}' must be at least 1")
    _require_type(data, "title_column", str, "a column letter")
    known = {k: v for k, v in data.items() if k in TemplateRows.__dataclass_fields__}
    rows = TemplateRows(**known)
    if rows.problem_start_row < rows.task_start_row + rows.task_capacity:
        raise ConfigError("'problem_start_row' must come after the task block")
    return rows


def _resolve_api_key(provider: str, data: Mapping[str, Any], env_file: Path) -> Optional[str]:
    if data.get("api_key"):
        return str(data["api_key"])
    env_var = API_KEY_ENV_VARS.get(provider)
    if env_var is None:
        return None
    if os.environ.get(env_var):
        return os.environ[env_var]
    if env_file.is_file():
        value = dotenv_values(env_file).get(env_var)
        if value:
            logger.debug("Read %s from %s", env_var, env_file)
            return value
    return None


def _parse_llm(data: Any, env_file: Path) -> LLMSettings:
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("'llm' must be an object")
    provider = data.get("provider", PROVIDER_DEEPSEEK)
    if provider not in PROVIDERS:
        raise ConfigError(f"'llm.provider' must be one of: {', '.join(PROVIDERS)}")
    for key in ("model", "base_url", "api_key"):
        _require_type(data, key, str, "a string")
    _require_type(data, "port", int, "an integer")
    _require_type(data, "request_timeout", (int, float), "a number")
    _require_type(data, "max_tokens", int, "an integer")

    defaults = _PROVIDER_DEFAULTS[provider]
    api_key = _resolve_api_key(provider, data, env_file)
    if provider in API_KEY_ENV_VARS and not api_key:
        raise ConfigError(
            f"No API key for provider '{provider}'. Set 'llm.api_key' or the "
            f"{API_KEY_ENV_VARS[provider]} environment variable."
        )
    return LLMSettings(
        provider=provider,
        model=data.get("model", defaults["model"]),
        base_url=data.get("base_url", defaults["base_url"]),
        port=data.get("port", defaults.get("port")),
        api_key=api_key,
        request_timeout=float(data.get("request_timeout", 60)),
        max_tokens=data.get("max_tokens"),
    )


def load_config(config_path: Optional[Path] = None) -> ReportConfig:
    """Load, validate and return the report configuration.

    Relative ``project_paths``, ``template_path`` and ``output_dir`` are
    resolved against the directory holding the configuration file. A
    ``.env`` file in that directory may supply the API key.

    Raises
    ------
    ConfigError
        If the configuration file is missing, malformed, or invalid.
    """
    path = find_config_file(config_path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Failed to read or parse configuration file: %s", exc)
        raise ConfigError(f"Invalid JSON in {path.name}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path.name} must contain a JSON object")

    required_keys = ["user_name", "project_paths"]
    missing = [key for key in required_keys if key not in data]
    if missing:
        logger.error("Configuration file missing required keys: %s", missing)
        raise ConfigError(f"Missing required configuration keys: {', '.join(missing)}")

    if not isinstance(data["user_name"], str) or not data["user_name"].strip():
        raise ConfigError("'user_name' must be a non-empty string")
    paths = data["project_paths"]
    if not isinstance(paths, list) or not paths or not all(isinstance(p, str) for p in paths):
        raise ConfigError("'project_paths' must be a non-empty list of strings")
    _require_type(data, "template_path", str, "a string")
    _require_type(data, "output_dir", str, "a string")
    mode = data.get("mode", MODE_BATCH)
    if mode not in MODES:
        raise ConfigError(f"'mode' must be one of: {', '.join(MODES)}")

    base_dir = path.parent

    def resolve(raw: str) -> Path:
        candidate = Path(raw).expanduser()
        return candidate if candidate.is_absolute() else base_dir / candidate

    config = ReportConfig(
        user_name=data["user_name"].strip(),
        project_paths=[resolve(p) for p in paths],
        template_path=resolve(data.get("template_path", DEFAULT_TEMPLATE_NAME)),
        output_dir=resolve(data.get("output_dir", DEFAULT_OUTPUT_DIR)),
        mode=mode,
        window=parse_window(_parse_date(data, "since"), _parse_date(data, "until")),
        template_rows=_parse_template_rows(data.get("template_rows")),
        llm=_parse_llm(data.get("llm"), base_dir / ".env"),
    )
    logger.debug("Loaded configuration from: %s", path)
    return config
