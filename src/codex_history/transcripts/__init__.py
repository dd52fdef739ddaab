"""Parsing of Codex transcript files."""

from .base import EventRecognizer, EventRegistry, iter_records, parse_timestamp, to_message
from .codex import EventMsgRecognizer, ResponseItemRecognizer, UserItemRecognizer
from .messages import read_messages
from .summary import session_id_for, summarize_transcript

__all__ = [
    "EventMsgRecognizer",
    "EventRecognizer",
    "EventRegistry",
    "ResponseItemRecognizer",
    "UserItemRecognizer",
    "iter_records",
    "parse_timestamp",
    "read_messages",
    "session_id_for",
    "summarize_transcript",
    "to_message",
]

# Register recognizers
EventRegistry.register(EventMsgRecognizer())
EventRegistry.register(ResponseItemRecognizer())
EventRegistry.register(UserItemRecognizer())
