"""Relocation of transcript files between the active, archived and trash trees.

shutil.move renames atomically when source and destination share a
filesystem. Across filesystems it copies then deletes the source; if the
process dies in between, the transcript exists in both places (or, if the
copy was partial, the destination is truncated and the source survives).
"""

import shutil
from pathlib import Path

from codex_history.logging import get_logger

logger = get_logger("mover")


def move_file(source_path: Path, dest_path: Path) -> Path:
    """Move a transcript file, creating destination directories.

    An existing file at dest_path is replaced.

    Args:
        source_path: Path to the file to move
        dest_path: Full destination path (not a directory)

    Returns:
        Path to the moved file

    Raises:
        FileNotFoundError: If source_path does not exist
    """
    if not source_path.exists():
        raise FileNotFoundError(f"Source file does not exist: {source_path}")

    dest_path.parent.mkdir(parents=True, exist_ok=True)
    shutil.move(str(source_path), str(dest_path))

    logger.info("Moved transcript: source=%s dest=%s", source_path, dest_path)

    return dest_path


def relocate_under(source_path: Path, source_root: Path, dest_root: Path) -> Path:
    """Move a file to the same relative position under another root.

    Args:
        source_path: Path to the file to move
        source_root: Tree root source_path lives under
        dest_root: Tree root to move into

    Returns:
        Path to the moved file

    Raises:
        ValueError: If source_path is not under source_root
        FileNotFoundError: If source_path does not exist
    """
    try:
        relative_path = source_path.relative_to(source_root)
    except ValueError:
        raise ValueError(f"Source path {source_path} is not under {source_root}")

    return move_file(source_path, dest_root / relative_path)
