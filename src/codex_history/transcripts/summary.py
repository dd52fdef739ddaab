"""Summarize one transcript file into a history log entry."""

from pathlib import Path
from typing import Any

from codex_history.models import HistoryLogEntry
from codex_history.text import (
    EMPTY_SESSION_TEXT,
    clean_text,
    extract_user_request,
    is_boilerplate_text,
    truncate,
)
from codex_history.transcripts.base import iter_records, parse_timestamp, to_message

# Longest text stored per field in the history log
LOG_TEXT_LIMIT = 1000

CONVERSATION_ROLES = ("user", "assistant")


def session_id_for(path: Path) -> str:
    """Session id of a transcript: its filename without extension."""
    return path.stem


def _top_level_text(entry: dict[str, Any]) -> str:
    value = entry.get("content") or entry.get("text") or ""
    return value.strip() if isinstance(value, str) else ""


def summarize_transcript(path: Path, archived: bool = False) -> HistoryLogEntry | None:
    """Build the history log entry for a transcript file.

    The first text is the earliest prompt the user actually typed (injected
    context skipped); the last text is the most recent conversational
    message. Turns count genuine user prompts. Prompts recorded both as a
    response_item and as a user_message event are counted once.

    Args:
        path: Path to the transcript JSONL file
        archived: Whether the file lives in the archived tree

    Returns:
        HistoryLogEntry, or None if the file has no parseable line
    """
    first_entry: dict[str, Any] | None = None
    last_entry: dict[str, Any] | None = None
    first_text = ""
    last_text = ""
    turns = 0
    echo_turns = 0

    for entry in iter_records(path):
        if first_entry is None:
            first_entry = entry
        last_entry = entry

        msg = to_message(entry)
        if msg is None or msg.role not in CONVERSATION_ROLES:
            continue

        text = extract_user_request(msg.text) if msg.role == "user" else msg.text.strip()
        if not text or is_boilerplate_text(text):
            continue

        last_text = text
        if msg.role != "user":
            continue
        if not first_text:
            first_text = text
        if msg.duplicate:
            echo_turns += 1
        else:
            turns += 1

    if first_entry is None or last_entry is None:
        return None

    if not first_text:
        fallback = _top_level_text(first_entry)
        if fallback and not is_boilerplate_text(fallback):
            first_text = fallback
        else:
            first_text = EMPTY_SESSION_TEXT

    if not last_text:
        last_text = _top_level_text(last_entry)

    ts = parse_timestamp(last_entry.get("ts", last_entry.get("timestamp")))
    if ts is None:
        ts = int(path.stat().st_mtime)

    return HistoryLogEntry(
        session_id=session_id_for(path),
        ts=ts,
        first_text=truncate(clean_text(first_text), LOG_TEXT_LIMIT),
        last_text=truncate(clean_text(last_text), LOG_TEXT_LIMIT),
        turn_count=turns if turns else echo_turns,
        is_archived=archived,
    )
