"""Filesystem locations used by codex-history.

The codex home (transcripts and the history log) is owned by the Codex CLI.
The manager home (state file, trash, logs) is owned by this tool.
"""

import os
import re
from dataclasses import dataclass
from pathlib import Path

DEFAULT_MANAGER_DIRNAME = ".codex-history"

# rollout-2025-11-10T21-20-20-019a6dec-b4b4-75e2-a33f-9e077e7ad797
_ROLLOUT_DATE = re.compile(r"rollout-(\d{4})-(\d{2})-(\d{2})T")


@dataclass(frozen=True)
class ManagerPaths:
    codex_home: Path
    history_file: Path
    sessions_dir: Path
    archived_sessions_dir: Path
    manager_home: Path
    state_file: Path
    trash_dir: Path
    trash_sessions_dir: Path
    log_dir: Path


def default_codex_home() -> Path:
    """Codex home from $CODEX_HOME, else ~/.codex."""
    env_home = os.environ.get("CODEX_HOME")
    if env_home:
        return Path(env_home).expanduser()
    return Path.home() / ".codex"


def build_paths(
    codex_home: Path | str | None = None,
    manager_home: Path | str | None = None,
) -> ManagerPaths:
    """Derive every location from optional overrides.

    Does not touch the filesystem.
    """
    codex = Path(codex_home).expanduser() if codex_home else default_codex_home()
    manager = (
        Path(manager_home).expanduser() if manager_home else Path.home() / DEFAULT_MANAGER_DIRNAME
    )
    trash = manager / "trash"

    return ManagerPaths(
        codex_home=codex,
        history_file=codex / "history.jsonl",
        sessions_dir=codex / "sessions",
        archived_sessions_dir=codex / "archived_sessions",
        manager_home=manager,
        state_file=manager / "state.json",
        trash_dir=trash,
        trash_sessions_dir=trash / "sessions",
        log_dir=manager / "logs",
    )


def ensure_manager_dirs(paths: ManagerPaths) -> None:
    """Create the manager home and trash tree if missing.

    Never creates anything under the codex home.
    """
    paths.manager_home.mkdir(parents=True, exist_ok=True)
    paths.trash_dir.mkdir(parents=True, exist_ok=True)
    paths.trash_sessions_dir.mkdir(parents=True, exist_ok=True)


def active_path_for(filename: str, sessions_dir: Path) -> Path:
    """Compute where a transcript belongs in the active tree.

    Codex partitions sessions as sessions/YYYY/MM/DD/<file>. The date is
    read from the filename; unparseable names go to the tree root.

    Args:
        filename: Transcript file name (with .jsonl extension)
        sessions_dir: Root of the active sessions tree

    Returns:
        Destination path for the file
    """
    match = _ROLLOUT_DATE.match(filename)
    if not match:
        return sessions_dir / filename
    year, month, day = match.groups()
    return sessions_dir / year / month / day / filename


def is_under(path: Path, root: Path) -> bool:
    """Check whether path lives somewhere below root."""
    try:
        path.resolve().relative_to(root.resolve())
    except ValueError:
        return False
    return True
