"""History log access and the session summary query.

The log is a JSON Lines file with one record per line. Codex itself appends
one line per prompt (legacy `text` field); a rebuild by this tool writes one
line per session. Readers therefore merge all lines sharing a session id.
"""

import json
import os
import shutil
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from codex_history.logging import get_logger
from codex_history.models import HistoryLogEntry, SessionSummary
from codex_history.text import (
    EMPTY_SESSION_TEXT,
    FIRST_TEXT_LIMIT,
    LAST_TEXT_LIMIT,
    clean_text,
    is_boilerplate_text,
    matches_search,
    truncate,
)

logger = get_logger("history")


class HistoryLog:
    """Reads and rewrites the history log file.

    The log is never edited in place: full rewrites go to a temp file that
    replaces the log with os.replace.
    """

    def __init__(self, history_file: Path) -> None:
        self._path = history_file

    @property
    def path(self) -> Path:
        return self._path

    @property
    def backup_path(self) -> Path:
        return self._path.with_name(self._path.name + ".bak")

    @property
    def temp_path(self) -> Path:
        return self._path.with_name(self._path.name + ".tmp")

    def exists(self) -> bool:
        return self._path.exists()

    def read_entries(self, hide_system_text: bool = False) -> list[HistoryLogEntry]:
        """Read all valid entries in file order.

        Args:
            hide_system_text: Drop entries whose text is injected context

        Returns:
            Parsed entries; malformed or incomplete lines are skipped
        """
        if not self._path.exists():
            return []

        entries: list[HistoryLogEntry] = []
        with open(self._path, encoding="utf-8", errors="replace") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    obj = json.loads(line)
                except json.JSONDecodeError:
                    continue
                entry = HistoryLogEntry.from_dict(obj)
                if entry is None:
                    continue
                if hide_system_text and is_boilerplate_text(entry.display_text):
                    continue
                entries.append(entry)
        return entries

    def session_ids(self) -> set[str]:
        """Session ids of every parseable line carrying one."""
        if not self._path.exists():
            return set()

        ids: set[str] = set()
        with open(self._path, encoding="utf-8", errors="replace") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    obj = json.loads(line)
                except json.JSONDecodeError:
                    continue
                if isinstance(obj, dict) and isinstance(obj.get("session_id"), str):
                    ids.add(obj["session_id"])
        return ids

    def append(self, entries: Iterable[HistoryLogEntry]) -> int:
        """Append entries to the log, creating it if needed.

        Returns:
            Number of lines appended
        """
        lines = [entry.to_json_line() + "\n" for entry in entries]
        if not lines:
            return 0

        self._path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._path, "a", encoding="utf-8") as f:
            f.writelines(lines)
        return len(lines)

    def write_all(self, entries: Iterable[HistoryLogEntry]) -> int:
        """Replace the whole log with entries.

        Returns:
            Number of lines written
        """
        self._path.parent.mkdir(parents=True, exist_ok=True)
        count = 0
        with open(self.temp_path, "w", encoding="utf-8") as f:
            for entry in entries:
                f.write(entry.to_json_line() + "\n")
                count += 1
        os.replace(self.temp_path, self._path)
        return count

    def backup(self) -> Path | None:
        """Copy the log to <log>.bak, overwriting any previous backup."""
        if not self._path.exists():
            return None
        shutil.copyfile(self._path, self.backup_path)
        logger.info("Backed up history log: dest=%s", self.backup_path)
        return self.backup_path

    def rewrite_excluding(self, session_ids: set[str], backup: bool = True) -> int:
        """Rewrite the log without the lines of the given sessions.

        Lines that are not valid JSON are kept unchanged. Blank lines are
        dropped.

        Args:
            session_ids: Sessions whose lines are removed
            backup: Snapshot the pre-rewrite log to <log>.bak

        Returns:
            Number of lines removed
        """
        if not self._path.exists():
            return 0

        removed = 0
        with open(self._path, encoding="utf-8", errors="surrogateescape") as src:
            with open(self.temp_path, "w", encoding="utf-8", errors="surrogateescape") as dst:
                for line in src:
                    content = line.rstrip("\r\n")
                    if not content.strip():
                        continue
                    try:
                        obj = json.loads(content)
                    except json.JSONDecodeError:
                        # Unreadable lines pass through unchanged
                        dst.write(content + "\n")
                        continue

                    sid = obj.get("session_id") if isinstance(obj, dict) else None
                    if isinstance(sid, str) and sid in session_ids:
                        removed += 1
                        continue
                    dst.write(content + "\n")

        if backup:
            shutil.copyfile(self._path, self.backup_path)

        os.replace(self.temp_path, self._path)
        logger.info("Rewrote history log: removed_lines=%d", removed)
        return removed


@dataclass
class _SessionAggregate:
    """Running merge state for one session id."""

    session_id: str
    first_ts: int | float
    last_ts: int | float
    first_text: str = ""
    first_text_ts: int | float = 0
    first_text_explicit: bool = False
    last_text: str = ""
    count: int = 0
    is_archived: bool = False

    def add(self, entry: HistoryLogEntry) -> None:
        self.count += entry.turn_count if entry.turn_count is not None else 1
        if entry.is_archived:
            self.is_archived = True

        if entry.ts >= self.last_ts:
            self.last_ts = entry.ts
            self.last_text = entry.last_text or entry.text or ""
        self.first_ts = min(self.first_ts, entry.ts)

        explicit = entry.first_text
        if explicit:
            if (
                not self.first_text_explicit
                or self.first_text == EMPTY_SESSION_TEXT
                or (entry.ts < self.first_text_ts and explicit != EMPTY_SESSION_TEXT)
            ):
                self.first_text = explicit
                self.first_text_ts = entry.ts
                self.first_text_explicit = True
            return

        derived = entry.text or entry.last_text or ""
        if not self.first_text_explicit and derived and (
            not self.first_text or entry.ts < self.first_text_ts
        ):
            self.first_text = derived
            self.first_text_ts = entry.ts

    @property
    def search_text(self) -> str:
        return f"{self.last_text} {self.first_text}"


def _new_aggregate(entry: HistoryLogEntry) -> _SessionAggregate:
    return _SessionAggregate(
        session_id=entry.session_id,
        first_ts=entry.ts,
        last_ts=entry.ts,
        first_text_ts=entry.ts,
    )


def merge_entries(
    entries: Iterable[HistoryLogEntry],
    pinned: set[str] | None = None,
    remarks: dict[str, str] | None = None,
    search: str | None = None,
) -> list[SessionSummary]:
    """Merge log entries into one summary per session.

    Merge rules, independent of line order:
    - first_ts/last_ts are the min/max timestamps
    - last_text comes from the newest line (later line wins a tie)
    - first_text is the explicit first_text of the oldest line carrying
      one, else the text of the oldest line
    - count is the sum of turn_count, counting 1 for lines without one
    - is_archived is set if any line says so

    Args:
        entries: Log entries in file order
        pinned: Pinned session ids
        remarks: Remarks by session id
        search: Whitespace-separated terms that must all occur in the
                session's last/first text

    Returns:
        Summaries in first-seen order
    """
    pinned = pinned or set()
    remarks = remarks or {}

    aggregates: dict[str, _SessionAggregate] = {}
    for entry in entries:
        aggregate = aggregates.get(entry.session_id)
        if aggregate is None:
            aggregate = _new_aggregate(entry)
            aggregates[entry.session_id] = aggregate
        aggregate.add(entry)

    summaries: list[SessionSummary] = []
    for aggregate in aggregates.values():
        if not matches_search(aggregate.search_text, search):
            continue
        summaries.append(
            SessionSummary(
                session_id=aggregate.session_id,
                first_ts=aggregate.first_ts,
                last_ts=aggregate.last_ts,
                first_text=truncate(clean_text(aggregate.first_text), FIRST_TEXT_LIMIT),
                last_text=truncate(clean_text(aggregate.last_text), LAST_TEXT_LIMIT),
                count=aggregate.count,
                pinned=aggregate.session_id in pinned,
                remark=remarks.get(aggregate.session_id) or None,
                is_archived=aggregate.is_archived,
            )
        )
    return summaries


def sort_summaries(
    summaries: list[SessionSummary],
    pinned_order: list[str] | None = None,
) -> list[SessionSummary]:
    """Order summaries: pinned first, then most recent activity first.

    Pinned sessions keep the order of pinned_order (most recently pinned
    first); ties fall back to last activity.
    """
    rank = {sid: i for i, sid in enumerate(pinned_order or [])}

    def sort_key(summary: SessionSummary) -> tuple:
        if summary.pinned:
            return (0, rank.get(summary.session_id, len(rank)), -summary.last_ts, summary.session_id)
        return (1, 0, -summary.last_ts, summary.session_id)

    return sorted(summaries, key=sort_key)


def query_summaries(
    entries: Iterable[HistoryLogEntry],
    pinned_order: list[str] | None = None,
    remarks: dict[str, str] | None = None,
    search: str | None = None,
    limit: int | None = None,
    only_pinned: bool = False,
    include_archived: bool = True,
) -> list[SessionSummary]:
    """Merge, filter, sort and limit log entries into summaries.

    Pure: reads nothing from disk.
    """
    pinned_order = pinned_order or []
    summaries = merge_entries(entries, set(pinned_order), remarks, search)

    if only_pinned:
        summaries = [s for s in summaries if s.pinned]
    if not include_archived:
        summaries = [s for s in summaries if not s.is_archived]

    summaries = sort_summaries(summaries, pinned_order)

    if limit and limit > 0:
        summaries = summaries[:limit]
    return summaries
