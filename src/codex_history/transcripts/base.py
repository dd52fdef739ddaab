"""Base recognizer interface, registry and JSONL record helpers."""

import json
from abc import ABC, abstractmethod
from collections.abc import Iterator
from datetime import datetime
from pathlib import Path
from typing import Any

from codex_history.models import SessionMessage, epoch_seconds

__all__ = [
    "EventRecognizer",
    "EventRegistry",
    "SessionMessage",
    "extract_content_text",
    "iter_records",
    "parse_timestamp",
    "record_timestamp",
    "to_message",
]


def iter_records(path: Path) -> Iterator[dict[str, Any]]:
    """Stream parsed JSON objects from a JSONL transcript.

    Blank lines, malformed JSON and non-object values are skipped.

    Args:
        path: Path to the JSONL file

    Yields:
        One dict per parseable line, in file order
    """
    with open(path, encoding="utf-8", errors="replace") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                entry = json.loads(line)
            except json.JSONDecodeError:
                continue
            if isinstance(entry, dict):
                yield entry


def parse_timestamp(value: Any) -> int | None:
    """Convert a record timestamp to Unix seconds.

    Accepts epoch seconds, epoch milliseconds and ISO 8601 strings
    (e.g. "2026-01-22T15:52:33.575Z").

    Returns:
        Unix timestamp in seconds, or None if unparseable
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        return int(epoch_seconds(value))

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return parse_timestamp(float(text))
        except ValueError:
            pass
        try:
            if text.endswith("Z"):
                text = text[:-1] + "+00:00"
            return int(datetime.fromisoformat(text).timestamp())
        except ValueError:
            return None

    return None


def record_timestamp(entry: dict[str, Any]) -> str:
    """Raw timestamp of a record as a string ('' if absent)."""
    value = entry.get("timestamp", entry.get("time"))
    if value is None:
        return ""
    return str(value)


def extract_content_text(content: Any) -> str:
    """Extract text from a message content field.

    Args:
        content: A string, a list of content blocks, or a single block

    Returns:
        Text of all blocks joined by newlines
    """
    if not content:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts: list[str] = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict):
                text = block.get("text") or block.get("value")
                if isinstance(text, str) and text:
                    parts.append(text)
        return "\n".join(parts)
    if isinstance(content, dict):
        text = content.get("text") or content.get("value") or ""
        return text if isinstance(text, str) else ""
    return ""


class EventRecognizer(ABC):
    """Converts one transcript event shape into a SessionMessage.

    Subclasses set `event_type` to the record `type` they handle.
    """

    event_type: str

    @abstractmethod
    def recognize(self, entry: dict[str, Any]) -> SessionMessage | None:
        """Return the message carried by entry, or None if it carries none."""


class EventRegistry:
    """Registry of recognizers by record type."""

    _recognizers: dict[str, EventRecognizer] = {}

    @classmethod
    def register(cls, recognizer: EventRecognizer) -> None:
        cls._recognizers[recognizer.event_type] = recognizer

    @classmethod
    def get(cls, event_type: str) -> EventRecognizer | None:
        return cls._recognizers.get(event_type)

    @classmethod
    def all_types(cls) -> list[str]:
        return list(cls._recognizers.keys())


def to_message(entry: dict[str, Any]) -> SessionMessage | None:
    """Dispatch a record to the recognizer for its type.

    Unrecognized record types yield None.
    """
    event_type = entry.get("type")
    if not isinstance(event_type, str):
        return None
    recognizer = EventRegistry.get(event_type)
    if recognizer is None:
        return None
    return recognizer.recognize(entry)
