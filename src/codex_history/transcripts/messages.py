"""Read a transcript as a sequence of messages for preview."""

from pathlib import Path

from codex_history.models import SessionMessage
from codex_history.text import extract_user_request, is_boilerplate_text
from codex_history.transcripts.base import iter_records, to_message


def read_messages(
    path: Path,
    limit: int | None = None,
    hide_system_text: bool = True,
) -> list[SessionMessage]:
    """Extract preview messages from a transcript file.

    user_message events are skipped because the same prompt is also
    recorded as a response_item. IDE-wrapped user prompts are judged by
    the request under their "My request for Codex" heading.

    Args:
        path: Path to the transcript JSONL file
        limit: Stop after this many messages (no limit if None or <= 0)
        hide_system_text: Drop messages whose text is injected context

    Returns:
        Messages in file order
    """
    messages: list[SessionMessage] = []

    for entry in iter_records(path):
        msg = to_message(entry)
        if msg is None or msg.duplicate:
            continue
        if hide_system_text and is_boilerplate_text(_filter_text(msg)):
            continue

        messages.append(msg)
        if limit and limit > 0 and len(messages) >= limit:
            break

    return messages


def _filter_text(msg: SessionMessage) -> str:
    if msg.role == "user":
        return extract_user_request(msg.text)
    return msg.text
