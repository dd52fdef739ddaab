"""Configuration loading and management."""

import os
from dataclasses import dataclass
from pathlib import Path

import yaml


@dataclass
class Config:
    codex_home: Path | None = None
    manager_home: Path | None = None
    resume_tool: str = "codex"
    list_limit: int = 20
    preview_limit: int | None = None
    hide_system_text: bool = True
    backup_history: bool = True
    log_level: str = "INFO"


def expand_env_var(value: str) -> str:
    """Expand environment variables in string (e.g. ${VAR})."""
    if value.startswith("${") and value.endswith("}"):
        env_var = value[2:-1]
        return os.environ.get(env_var, value)
    return value


def expand_path(path_str: str) -> Path:
    """Expand ~ and environment variables in path."""
    return Path(os.path.expandvars(os.path.expanduser(path_str)))


def _optional_path(value: object) -> Path | None:
    if value is None or value == "":
        return None
    return expand_path(expand_env_var(str(value)))


def _optional_int(value: object) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


def default_config_paths() -> list[Path]:
    """Standard locations searched when no config path is given."""
    return [
        Path.cwd() / "codex-history.yaml",
        Path.home() / ".config" / "codex-history" / "config.yaml",
        Path.home() / ".codex-history" / "config.yaml",
    ]


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from YAML file."""
    if config_path is None:
        for path in default_config_paths():
            if path.exists():
                config_path = path
                break

    if config_path is None or not config_path.exists():
        return Config()

    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    defaults = Config()

    return Config(
        codex_home=_optional_path(data.get("codex_home")),
        manager_home=_optional_path(data.get("manager_home")),
        resume_tool=expand_env_var(str(data.get("resume_tool", defaults.resume_tool))),
        list_limit=int(data.get("list_limit", defaults.list_limit)),
        preview_limit=_optional_int(data.get("preview_limit")),
        hide_system_text=bool(data.get("hide_system_text", defaults.hide_system_text)),
        backup_history=bool(data.get("backup_history", defaults.backup_history)),
        log_level=str(data.get("log_level", defaults.log_level)).upper(),
    )
