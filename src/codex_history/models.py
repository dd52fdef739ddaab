"""Data models for the history log, summaries and previews."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

# Key order of a log line as written by this tool
LOG_FIELDS = ("session_id", "ts", "first_text", "last_text", "turn_count", "is_archived")

# Epoch values above this are milliseconds
MILLISECONDS_THRESHOLD = 1e12


def epoch_seconds(value: int | float) -> int | float:
    """Normalize an epoch timestamp in seconds or milliseconds to seconds."""
    if value > MILLISECONDS_THRESHOLD:
        return int(value / 1000)
    return value


@dataclass
class HistoryLogEntry:
    """One line of the history log."""

    session_id: str
    ts: int | float  # Epoch seconds of last activity
    first_text: str | None = None
    last_text: str | None = None
    turn_count: int | None = None
    is_archived: bool | None = None
    text: str | None = None  # Legacy single-text field, read only

    @classmethod
    def from_dict(cls, obj: Any) -> "HistoryLogEntry | None":
        """Build an entry from a parsed log line.

        Returns None for lines lacking a session id, a timestamp, or any
        text field. Millisecond timestamps are converted to seconds.
        """
        if not isinstance(obj, dict):
            return None

        session_id = obj.get("session_id")
        ts = obj.get("ts")
        if not isinstance(session_id, str) or not session_id:
            return None
        if isinstance(ts, bool) or not isinstance(ts, (int, float)) or not ts:
            return None
        if not any(key in obj for key in ("text", "first_text", "last_text")):
            return None

        turn_count = obj.get("turn_count")
        if isinstance(turn_count, bool) or not isinstance(turn_count, int):
            turn_count = None

        return cls(
            session_id=session_id,
            ts=epoch_seconds(ts),
            first_text=_as_text(obj.get("first_text")),
            last_text=_as_text(obj.get("last_text")),
            turn_count=turn_count,
            is_archived=bool(obj["is_archived"]) if "is_archived" in obj else None,
            text=_as_text(obj.get("text")),
        )

    @property
    def display_text(self) -> str:
        """Text used for boilerplate filtering of this line."""
        return self.text or self.last_text or self.first_text or ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to the log line format, omitting unset fields."""
        data = {
            "session_id": self.session_id,
            "ts": self.ts,
            "first_text": self.first_text,
            "last_text": self.last_text,
            "turn_count": self.turn_count,
            "is_archived": self.is_archived,
        }
        return {key: data[key] for key in LOG_FIELDS if data[key] is not None}

    def to_json_line(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return str(value)


@dataclass
class SessionSummary:
    """Merged, display-ready view of one session."""

    session_id: str
    first_ts: int | float
    last_ts: int | float
    first_text: str
    last_text: str
    count: int
    pinned: bool = False
    remark: str | None = None
    is_archived: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase shape front-ends consume."""
        return {
            "sessionId": self.session_id,
            "firstTs": self.first_ts,
            "lastTs": self.last_ts,
            "firstText": self.first_text,
            "lastText": self.last_text,
            "count": self.count,
            "pinned": self.pinned,
            "remark": self.remark,
            "isArchived": self.is_archived,
        }


@dataclass
class SessionMessage:
    """A normalized transcript message, produced for previews only."""

    timestamp: str
    role: str  # user, assistant, developer, system
    text: str
    raw_type: str
    duplicate: bool = False  # Echo of a message recorded under another event type


@dataclass
class SessionPreview:
    file_path: Path
    messages: list[SessionMessage]
    remark: str | None = None


@dataclass
class DeleteResult:
    removed_history: int = 0
    removed_files: list[Path] = field(default_factory=list)
    not_found_files: list[str] = field(default_factory=list)


@dataclass
class ManagerState:
    """Pinned sessions (most recently pinned first) and remarks."""

    pinned: list[str] = field(default_factory=list)
    remarks: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"pinned": list(self.pinned), "remarks": dict(self.remarks)}
