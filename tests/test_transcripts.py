"""Tests for transcript record recognition, summaries and previews."""

import os
from pathlib import Path

import pytest
from conftest import (
    UUID_A,
    agent_event,
    assistant_item,
    conversation,
    rollout_name,
    session_meta,
    user_event,
    user_item,
    write_jsonl,
)

from codex_history.text import EMPTY_SESSION_TEXT
from codex_history.transcripts import (
    EventRegistry,
    iter_records,
    parse_timestamp,
    read_messages,
    summarize_transcript,
    to_message,
)


@pytest.fixture
def transcript(tmp_path: Path) -> Path:
    return tmp_path / f"{rollout_name(UUID_A)}.jsonl"


class TestRegistry:
    """Tests for recognizer registration and dispatch."""

    def test_registers_codex_event_types(self) -> None:
        assert set(EventRegistry.all_types()) == {"event_msg", "response_item", "user_item"}

    def test_response_item_message(self) -> None:
        """Should convert a response_item message with its role."""
        msg = to_message(assistant_item("hello", ts="2025-11-10T21:20:25.000Z"))

        assert msg is not None
        assert msg.role == "assistant"
        assert msg.text == "hello"
        assert msg.raw_type == "response_item:message"
        assert msg.timestamp == "2025-11-10T21:20:25.000Z"

    def test_joins_content_blocks(self) -> None:
        """Should join text and value blocks with newlines."""
        entry = {
            "type": "response_item",
            "payload": {
                "type": "message",
                "role": "user",
                "content": [{"type": "input_text", "text": "one"}, {"value": "two"}, {"type": "image"}],
            },
        }
        assert to_message(entry).text == "one\ntwo"

    def test_agent_message_event(self) -> None:
        msg = to_message(agent_event("reply"))
        assert msg.role == "assistant"
        assert msg.raw_type == "event:agent_message"

    def test_user_message_event_is_duplicate(self) -> None:
        """Should flag user_message events as echoes."""
        msg = to_message(user_event("prompt"))
        assert msg.role == "user"
        assert msg.duplicate

    def test_legacy_user_item(self) -> None:
        msg = to_message({"type": "user_item", "time": 1700000000, "payload": {"content": "old prompt"}})
        assert msg.role == "user"
        assert msg.text == "old prompt"
        assert msg.timestamp == "1700000000"

    @pytest.mark.parametrize(
        "entry",
        [
            {"type": "session_meta", "payload": {"id": "x"}},
            {"type": "turn_context", "payload": {}},
            {"type": "event_msg", "payload": {"type": "token_count"}},
            {"type": "response_item", "payload": {"type": "reasoning", "summary": []}},
            {"payload": {"type": "message"}},
            {"type": ["not", "a", "string"]},
        ],
    )
    def test_unrecognized_shapes_yield_nothing(self, entry: dict) -> None:
        assert to_message(entry) is None


class TestParseTimestamp:
    """Tests for parse_timestamp function."""

    def test_iso_with_z(self) -> None:
        assert parse_timestamp("2026-01-22T15:52:33.575Z") == 1769097153

    def test_epoch_seconds(self) -> None:
        assert parse_timestamp(1700000000) == 1700000000

    def test_epoch_milliseconds(self) -> None:
        assert parse_timestamp(1700000000123) == 1700000000

    def test_numeric_string(self) -> None:
        assert parse_timestamp("1700000000") == 1700000000

    @pytest.mark.parametrize("value", [None, "", "yesterday", True, {}])
    def test_invalid_values(self, value: object) -> None:
        assert parse_timestamp(value) is None


class TestIterRecords:
    """Tests for iter_records function."""

    def test_skips_blank_and_malformed_lines(self, transcript: Path) -> None:
        """Should yield only parseable JSON objects."""
        write_jsonl(transcript, [{"a": 1}, "", "{broken", "[1, 2]", {"b": 2}])
        assert list(iter_records(transcript)) == [{"a": 1}, {"b": 2}]


class TestSummarizeTranscript:
    """Tests for summarize_transcript function."""

    def test_extracts_first_and_last_text(self, transcript: Path) -> None:
        """Should skip injected context and use the real prompt and reply."""
        write_jsonl(transcript, conversation(UUID_A, "fix the login bug", "Fixed it."))

        entry = summarize_transcript(transcript)

        assert entry.session_id == rollout_name(UUID_A)
        assert entry.first_text == "fix the login bug"
        assert entry.last_text == "Fixed it."
        assert entry.turn_count == 1
        assert entry.is_archived is False
        assert entry.ts == parse_timestamp("2025-11-10T21:20:25.000Z")

    def test_counts_each_prompt_once(self, transcript: Path) -> None:
        """Should not double count prompts echoed as user_message events."""
        records = conversation(UUID_A, "first", "one") + [
            user_item("second"),
            user_event("second"),
            agent_event("two"),
        ]
        write_jsonl(transcript, records)

        entry = summarize_transcript(transcript)

        assert entry.turn_count == 2
        assert entry.first_text == "first"
        assert entry.last_text == "two"

    def test_counts_events_when_no_response_items(self, transcript: Path) -> None:
        """Should fall back to user_message events for turn counting."""
        write_jsonl(transcript, [session_meta(UUID_A), user_event("hello"), agent_event("hi")])

        entry = summarize_transcript(transcript)

        assert entry.turn_count == 1
        assert entry.first_text == "hello"

    def test_extracts_request_from_ide_prompt(self, transcript: Path) -> None:
        """Should use the text after the IDE request heading."""
        prompt = "# Context from my IDE setup:\n\n## Active file: a.py\n\n## My request for Codex:\nrename foo"
        write_jsonl(transcript, [session_meta(UUID_A), user_item(prompt)])

        entry = summarize_transcript(transcript)

        assert entry.first_text == "rename foo"
        assert entry.turn_count == 1

    def test_boilerplate_only_session_uses_placeholder(self, transcript: Path) -> None:
        """Should mark sessions without a genuine prompt as empty."""
        write_jsonl(
            transcript,
            [
                session_meta(UUID_A),
                user_item("<environment_context><cwd>/x</cwd></environment_context>"),
                user_item("# AGENTS.md instructions for /x"),
            ],
        )

        entry = summarize_transcript(transcript)

        assert entry.turn_count == 0
        assert entry.first_text == EMPTY_SESSION_TEXT

    def test_legacy_top_level_text_fallback(self, transcript: Path) -> None:
        """Should use a genuine top-level text when no message is found."""
        write_jsonl(transcript, [{"text": "legacy title", "ts": 1700000000}])

        entry = summarize_transcript(transcript)

        assert entry.first_text == "legacy title"
        assert entry.last_text == "legacy title"
        assert entry.ts == 1700000000

    def test_cleans_line_breaks(self, transcript: Path) -> None:
        write_jsonl(transcript, [session_meta(UUID_A), user_item("multi\nline\r\nprompt")])
        assert summarize_transcript(transcript).first_text == "multi line prompt"

    def test_timestamp_falls_back_to_mtime(self, transcript: Path) -> None:
        """Should use the file mtime when the last line has no timestamp."""
        write_jsonl(transcript, [user_item("hi"), {"type": "noise"}])
        os.utime(transcript, (1600000000, 1600000000))

        assert summarize_transcript(transcript).ts == 1600000000

    def test_skips_malformed_lines(self, transcript: Path) -> None:
        write_jsonl(transcript, ["{oops", user_item("real prompt"), "garbage"])
        assert summarize_transcript(transcript).first_text == "real prompt"

    def test_returns_none_without_parseable_lines(self, transcript: Path) -> None:
        write_jsonl(transcript, ["not json", "{still not"])
        assert summarize_transcript(transcript) is None

    def test_archived_flag_passed_through(self, transcript: Path) -> None:
        write_jsonl(transcript, conversation(UUID_A, "a", "b"))
        assert summarize_transcript(transcript, archived=True).is_archived is True


class TestReadMessages:
    """Tests for read_messages function."""

    def test_returns_conversation_without_duplicates(self, transcript: Path) -> None:
        """Should skip echoed user_message events and hide injected context."""
        write_jsonl(transcript, conversation(UUID_A, "fix it", "fixed"))

        messages = read_messages(transcript)

        assert [(m.role, m.text) for m in messages] == [
            ("user", "fix it"),
            ("assistant", "fixed"),
            ("assistant", "fixed"),
        ]

    def test_shows_system_text_when_requested(self, transcript: Path) -> None:
        write_jsonl(transcript, conversation(UUID_A, "fix it", "fixed"))

        messages = read_messages(transcript, hide_system_text=False)

        assert messages[0].text.startswith("<environment_context>")

    def test_keeps_ide_wrapped_prompt(self, transcript: Path) -> None:
        """Should judge IDE-wrapped prompts by the request they carry."""
        prompt = (
            "# Context from my IDE setup:\n\n## Active file: a.py\n\n"
            "## My request for Codex:\nfix the login bug"
        )
        write_jsonl(transcript, [user_item(prompt), assistant_item("done")])

        messages = read_messages(transcript)

        assert [(m.role, m.text) for m in messages] == [("user", prompt), ("assistant", "done")]

    def test_hides_ide_context_without_request(self, transcript: Path) -> None:
        write_jsonl(
            transcript,
            [user_item("# Context from my IDE setup:\n\n## Active file: a.py"), assistant_item("ok")],
        )
        assert [m.role for m in read_messages(transcript)] == ["assistant"]

    def test_limit_stops_early(self, transcript: Path) -> None:
        write_jsonl(transcript, conversation(UUID_A, "fix it", "fixed"))
        assert len(read_messages(transcript, limit=1)) == 1

    def test_skips_malformed_lines(self, transcript: Path) -> None:
        write_jsonl(transcript, ["{bad", user_item("ok"), "also bad"])
        assert [m.text for m in read_messages(transcript)] == ["ok"]
