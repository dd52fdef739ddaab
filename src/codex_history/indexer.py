"""Reconcile the history log with the transcript files on disk."""

from collections.abc import Callable
from pathlib import Path

from codex_history.errors import LogIntegrityError
from codex_history.history import HistoryLog
from codex_history.logging import get_logger
from codex_history.models import HistoryLogEntry
from codex_history.paths import ManagerPaths, is_under
from codex_history.transcripts import session_id_for, summarize_transcript

logger = get_logger("indexer")

# Called with a status message and a completion fraction in [0, 1]
ProgressCallback = Callable[[str, float], None]

# Report progress every this many files
PROGRESS_EVERY = 10

# A log at least this large that yields no session ids is treated as unreadable
MIN_SUSPICIOUS_LOG_BYTES = 100


def discover_transcripts(root: Path) -> list[Path]:
    """Find all transcript files below a tree root."""
    if not root.exists():
        return []
    return sorted(p for p in root.glob("**/*.jsonl") if p.is_file())


class SessionIndexer:
    """Builds history log entries from transcript files."""

    def __init__(self, paths: ManagerPaths) -> None:
        self._paths = paths
        self._log = HistoryLog(paths.history_file)

    @property
    def log(self) -> HistoryLog:
        return self._log

    def scan_transcripts(self) -> list[Path]:
        """List transcripts in the active tree, then the archived tree."""
        files = discover_transcripts(self._paths.sessions_dir)
        files.extend(discover_transcripts(self._paths.archived_sessions_dir))
        return files

    def summarize(self, path: Path) -> HistoryLogEntry | None:
        """Summarize one transcript, flagging files in the archived tree."""
        archived = is_under(path, self._paths.archived_sessions_dir)
        return summarize_transcript(path, archived=archived)

    def _summarize_all(
        self,
        files: list[Path],
        progress: ProgressCallback | None,
    ) -> list[HistoryLogEntry]:
        entries: list[HistoryLogEntry] = []
        total = len(files)

        for processed, path in enumerate(files, start=1):
            try:
                entry = self.summarize(path)
            except Exception:
                logger.exception("Failed to summarize transcript: path=%s", path)
                entry = None
            if entry is not None:
                entries.append(entry)

            if progress and processed % PROGRESS_EVERY == 0:
                progress(f"Processing {processed}/{total}", processed / total)

        return entries

    def rebuild_index(self, progress: ProgressCallback | None = None) -> int:
        """Rewrite the log with exactly one line per transcript file.

        The previous log is copied to <log>.bak first. Lines in the old
        log that do not correspond to a transcript file are dropped.

        Args:
            progress: Optional callback for status reporting

        Returns:
            Number of sessions written
        """
        self._log.backup()

        if progress:
            progress("Scanning session files...", 0.0)
        files = self.scan_transcripts()
        logger.info("Found transcripts: count=%d", len(files))

        entries = self._summarize_all(files, progress)
        entries.sort(key=lambda e: (-e.ts, e.session_id))

        if progress:
            progress("Writing index file...", 1.0)
        count = self._log.write_all(entries)

        logger.info("Rebuilt index: sessions=%d", count)
        return count

    def check_for_new_sessions(
        self,
        progress: ProgressCallback | None = None,
    ) -> list[HistoryLogEntry]:
        """Append entries for transcripts not yet present in the log.

        Existing lines are left untouched.

        Returns:
            Entries appended

        Raises:
            LogIntegrityError: If a non-empty log yields no session ids
        """
        indexed = self._log.session_ids()
        if not indexed and self._log.exists():
            size = self._log.path.stat().st_size
            if size >= MIN_SUSPICIOUS_LOG_BYTES:
                logger.warning(
                    "History log has no readable sessions, refusing to append: path=%s bytes=%d",
                    self._log.path,
                    size,
                )
                raise LogIntegrityError(
                    f"History log {self._log.path} is {size} bytes but no sessions could be read"
                )

        new_files = [p for p in self.scan_transcripts() if session_id_for(p) not in indexed]
        if not new_files:
            return []

        if progress:
            progress(f"Indexing {len(new_files)} new sessions...", 0.0)
        entries = self._summarize_all(new_files, progress)
        self._log.append(entries)

        logger.info("Appended new sessions: count=%d", len(entries))
        return entries

    def append_session(self, path: Path) -> HistoryLogEntry | None:
        """Summarize a single transcript and append it to the log."""
        entry = self.summarize(path)
        if entry is not None:
            self._log.append([entry])
        return entry
