"""Recognizers for Codex rollout transcript events.

Codex stores conversations as JSONL files at:
    ~/.codex/sessions/<year>/<month>/<day>/rollout-*.jsonl

Each line is a JSON object with a type field. Message-bearing shapes:
- response_item with payload.type == "message": full message with role
  and content blocks
- event_msg with payload.type == "agent_message": assistant reply
- event_msg with payload.type == "user_message": echo of a user prompt
  that is also recorded as a response_item
- user_item: legacy user prompt with payload.content

Everything else (session_meta, turn_context, reasoning, token_count, ...)
carries no message.
"""

from typing import Any

from codex_history.transcripts.base import (
    EventRecognizer,
    SessionMessage,
    extract_content_text,
    record_timestamp,
)


def _payload(entry: dict[str, Any]) -> dict[str, Any]:
    payload = entry.get("payload")
    return payload if isinstance(payload, dict) else {}


class ResponseItemRecognizer(EventRecognizer):
    """Full messages written as response_item records."""

    event_type = "response_item"

    def recognize(self, entry: dict[str, Any]) -> SessionMessage | None:
        payload = _payload(entry)
        if payload.get("type") != "message":
            return None

        role = payload.get("role")
        return SessionMessage(
            timestamp=record_timestamp(entry),
            role=role if isinstance(role, str) and role else "unknown",
            text=extract_content_text(payload.get("content")),
            raw_type=f"response_item:{payload['type']}",
        )


class EventMsgRecognizer(EventRecognizer):
    """Simplified agent/user messages written as event_msg records."""

    event_type = "event_msg"

    def recognize(self, entry: dict[str, Any]) -> SessionMessage | None:
        payload = _payload(entry)
        msg_type = payload.get("type")
        message = payload.get("message")
        text = message if isinstance(message, str) else ""

        if msg_type == "agent_message":
            return SessionMessage(
                timestamp=record_timestamp(entry),
                role="assistant",
                text=text,
                raw_type="event:agent_message",
            )
        if msg_type == "user_message":
            return SessionMessage(
                timestamp=record_timestamp(entry),
                role="user",
                text=text,
                raw_type="event:user_message",
                duplicate=True,
            )
        return None


class UserItemRecognizer(EventRecognizer):
    """Legacy user prompts written as user_item records."""

    event_type = "user_item"

    def recognize(self, entry: dict[str, Any]) -> SessionMessage | None:
        content = _payload(entry).get("content")
        return SessionMessage(
            timestamp=record_timestamp(entry),
            role="user",
            text=extract_content_text(content),
            raw_type="user_item",
        )
