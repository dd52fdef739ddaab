"""Session history operations shared by every front-end.

HistoryManager is the single entry point for listing, previewing and
mutating sessions. It holds no state between calls apart from what lives on
disk (the history log, the state file and the transcript files).

There is no cross-process locking. Two processes mutating the same codex
home concurrently can interleave log rewrites, and the last writer wins.
Moves of distinct transcripts are independent; two operations moving the
same transcript race.
"""

import glob
from pathlib import Path

from codex_history.errors import InvalidTransitionError, SessionNotFoundError
from codex_history.history import HistoryLog, query_summaries
from codex_history.indexer import ProgressCallback, SessionIndexer, discover_transcripts
from codex_history.logging import get_logger
from codex_history.models import (
    DeleteResult,
    HistoryLogEntry,
    SessionPreview,
    SessionSummary,
)
from codex_history.mover import move_file, relocate_under
from codex_history.paths import ManagerPaths, active_path_for, is_under
from codex_history.state import StateStore
from codex_history.text import (
    EMPTY_SESSION_TEXT,
    FIRST_TEXT_LIMIT,
    LAST_TEXT_LIMIT,
    clean_text,
    truncate,
)
from codex_history.transcripts import read_messages, session_id_for

logger = get_logger("manager")

# A Codex session UUID has five dash-separated groups (8-4-4-4-12)
UUID_GROUPS = 5


def find_in_trees(roots: list[Path], session_id: str) -> Path | None:
    """Find the transcript for a session id below any of roots.

    Filenames ending in the id match. An exact stem match in any tree wins
    over a suffix match; otherwise earlier roots win.
    """
    if not session_id:
        return None
    pattern = f"**/*{glob.escape(session_id)}.jsonl"
    matches: list[tuple[bool, int, str, Path]] = []
    for order, root in enumerate(roots):
        if not root.exists():
            continue
        for path in root.glob(pattern):
            if path.is_file():
                matches.append((path.stem != session_id, order, str(path), path))
    if not matches:
        return None
    return min(matches)[3]


def find_in_tree(root: Path, session_id: str) -> Path | None:
    return find_in_trees([root], session_id)


class HistoryManager:
    """Operation interface over the history log, transcripts and state."""

    def __init__(
        self,
        paths: ManagerPaths,
        state: StateStore,
        resume_tool: str = "codex",
    ) -> None:
        self._paths = paths
        self._state = state
        self._resume_tool = resume_tool
        self._indexer = SessionIndexer(paths)
        self._log = HistoryLog(paths.history_file)

    @property
    def paths(self) -> ManagerPaths:
        return self._paths

    @property
    def state(self) -> StateStore:
        return self._state

    def list_summaries(
        self,
        search: str | None = None,
        limit: int | None = None,
        only_pinned: bool = False,
        hide_system_text: bool = True,
        include_archived: bool = True,
    ) -> list[SessionSummary]:
        """List sessions from the history log.

        Args:
            search: Terms that must all appear in a session's first/last text
            limit: Maximum number of summaries (no limit if None or <= 0)
            only_pinned: Only return pinned sessions
            hide_system_text: Ignore log lines whose text is injected context
            include_archived: Include sessions in the archived tree

        Returns:
            Pinned sessions first, then by most recent activity
        """
        entries = self._log.read_entries(hide_system_text=hide_system_text)
        logger.debug("Read history entries: count=%d", len(entries))
        return query_summaries(
            entries,
            pinned_order=self._state.get_pinned(),
            remarks=self._state.get_remarks(),
            search=search,
            limit=limit,
            only_pinned=only_pinned,
            include_archived=include_archived,
        )

    def find_session_file(self, session_id: str) -> Path | None:
        """Locate the transcript for a session in the active or archived tree.

        A transcript found only in the trash is reported with a warning and
        treated as missing.
        """
        path = find_in_trees(
            [self._paths.sessions_dir, self._paths.archived_sessions_dir], session_id
        )
        if path is not None:
            return path

        trashed = find_in_tree(self._paths.trash_sessions_dir, session_id)
        if trashed is not None:
            logger.warning(
                "Session file is in the trash, restore it first: id=%s path=%s",
                session_id,
                trashed,
            )
        return None

    def read_session_messages(
        self,
        session_id: str,
        limit: int | None = None,
        hide_system_text: bool = True,
    ) -> SessionPreview:
        """Read a session's messages for preview.

        Raises:
            SessionNotFoundError: If no transcript exists for session_id
        """
        path = self.find_session_file(session_id)
        if path is None:
            raise SessionNotFoundError(session_id)

        messages = read_messages(path, limit=limit, hide_system_text=hide_system_text)
        remark = self._state.get_remark(session_id)
        return SessionPreview(file_path=path, messages=messages, remark=remark or None)

    def pin(self, session_id: str) -> None:
        self._state.pin(session_id)

    def unpin(self, session_id: str) -> None:
        self._state.unpin(session_id)

    def set_remark(self, session_id: str, remark: str) -> None:
        self._state.set_remark(session_id, remark)

    def _tree_root_of(self, path: Path) -> Path:
        if is_under(path, self._paths.archived_sessions_dir):
            return self._paths.archived_sessions_dir
        return self._paths.sessions_dir

    def delete_sessions(
        self,
        session_ids: list[str],
        backup_history: bool = True,
    ) -> DeleteResult:
        """Move sessions to the trash and drop them from the history log.

        Transcripts keep their path relative to the tree they were found
        in. The log is rewritten once for the whole batch. Pins and remarks
        of the deleted sessions are cleared.

        Args:
            session_ids: Sessions to delete
            backup_history: Snapshot the log to <log>.bak before replacing it

        Returns:
            DeleteResult with removed log lines, moved files and ids whose
            transcript was not found
        """
        ids = list(dict.fromkeys(session_ids))
        result = DeleteResult()

        for session_id in ids:
            path = self.find_session_file(session_id)
            if path is None:
                result.not_found_files.append(session_id)
                continue
            relocate_under(path, self._tree_root_of(path), self._paths.trash_sessions_dir)
            result.removed_files.append(path)

        result.removed_history = self._log.rewrite_excluding(set(ids), backup=backup_history)

        for session_id in ids:
            self._state.unpin(session_id)
            self._state.set_remark(session_id, "")

        logger.info(
            "Deleted sessions: requested=%d moved=%d not_found=%d removed_lines=%d",
            len(ids),
            len(result.removed_files),
            len(result.not_found_files),
            result.removed_history,
        )
        return result

    def archive_session(self, session_id: str) -> Path:
        """Move an active session into the archived tree and reindex.

        Returns:
            New path of the transcript

        Raises:
            InvalidTransitionError: If the session is already archived
            SessionNotFoundError: If no transcript exists for session_id
        """
        path = self.find_session_file(session_id)
        if path is None:
            raise SessionNotFoundError(session_id)
        if is_under(path, self._paths.archived_sessions_dir):
            raise InvalidTransitionError(session_id, f"Session is already archived: {session_id}")

        dest = move_file(path, self._paths.archived_sessions_dir / path.name)
        self.rebuild_index()
        return dest

    def unarchive_session(self, session_id: str) -> Path:
        """Move an archived session back into the active tree and reindex.

        Returns:
            New path of the transcript

        Raises:
            InvalidTransitionError: If the session is not archived
            SessionNotFoundError: If no transcript exists for session_id
        """
        path = self.find_session_file(session_id)
        if path is None:
            raise SessionNotFoundError(session_id)
        if not is_under(path, self._paths.archived_sessions_dir):
            raise InvalidTransitionError(session_id, f"Session is not archived: {session_id}")

        dest = move_file(path, active_path_for(path.name, self._paths.sessions_dir))
        self.rebuild_index()
        return dest

    def restore_from_recycle_bin(self, session_id: str) -> Path:
        """Move a session out of the trash and append it to the log.

        Returns:
            Restored path of the transcript

        Raises:
            SessionNotFoundError: If the session is not in the trash
            InvalidTransitionError: If the active destination already exists
        """
        path = find_in_tree(self._paths.trash_sessions_dir, session_id)
        if path is None:
            raise SessionNotFoundError(session_id, f"Session not found in trash: id={session_id}")

        dest = active_path_for(path.name, self._paths.sessions_dir)
        if dest.exists():
            raise InvalidTransitionError(session_id, f"Session file already exists: {dest}")

        move_file(path, dest)
        self._indexer.append_session(dest)
        return dest

    def list_recycle_bin(self) -> list[SessionSummary]:
        """List restorable sessions in the trash, most recently deleted first.

        Sessions still present in the history log and sessions with no
        genuine user turn are left out. File modification time stands in
        for deletion time.
        """
        indexed = self._log.session_ids()
        pinned = self._state.get_pinned_set()
        remarks = self._state.get_remarks()

        found: list[tuple[float, SessionSummary]] = []
        for path in discover_transcripts(self._paths.trash_sessions_dir):
            if session_id_for(path) in indexed:
                continue
            try:
                entry = self._indexer.summarize(path)
            except Exception:
                logger.exception("Failed to summarize trashed transcript: path=%s", path)
                continue
            if entry is None or not entry.turn_count or entry.first_text == EMPTY_SESSION_TEXT:
                continue
            found.append((path.stat().st_mtime, _summary_from_entry(entry, pinned, remarks)))

        found.sort(key=lambda item: (-item[0], item[1].session_id))
        return [summary for _, summary in found]

    def rebuild_index(self, progress: ProgressCallback | None = None) -> int:
        return self._indexer.rebuild_index(progress)

    def check_for_new_sessions(
        self,
        progress: ProgressCallback | None = None,
    ) -> list[HistoryLogEntry]:
        return self._indexer.check_for_new_sessions(progress)

    def get_resume_command(self, session_id: str) -> str:
        """Build the command that resumes a session in the Codex CLI.

        rollout-2025-11-10T21-20-20-019a6dec-b4b4-75e2-a33f-9e077e7ad797
        resumes as "codex resume 019a6dec-b4b4-75e2-a33f-9e077e7ad797".
        """
        parts = session_id.split("-")
        if len(parts) >= UUID_GROUPS:
            return f"{self._resume_tool} resume {'-'.join(parts[-UUID_GROUPS:])}"
        return f"{self._resume_tool} resume {session_id}"


def _summary_from_entry(
    entry: HistoryLogEntry,
    pinned: set[str],
    remarks: dict[str, str],
) -> SessionSummary:
    return SessionSummary(
        session_id=entry.session_id,
        first_ts=entry.ts,
        last_ts=entry.ts,
        first_text=truncate(clean_text(entry.first_text), FIRST_TEXT_LIMIT),
        last_text=truncate(clean_text(entry.last_text), LAST_TEXT_LIMIT),
        count=entry.turn_count or 0,
        pinned=entry.session_id in pinned,
        remark=remarks.get(entry.session_id) or None,
        is_archived=bool(entry.is_archived),
    )
