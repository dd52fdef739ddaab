"""Shared fixtures for building Codex homes and transcripts."""

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from codex_history.manager import HistoryManager
from codex_history.paths import ManagerPaths, build_paths, ensure_manager_dirs
from codex_history.state import StateStore

UUID_A = "019a6dec-b4b4-75e2-a33f-9e077e7ad797"
UUID_B = "019be668-4c23-7792-8b9c-7995e5bfdeee"
UUID_C = "019c0001-aaaa-7bbb-8ccc-0123456789ab"


def rollout_name(uuid: str, day: str = "2025-11-10", time: str = "21-20-20") -> str:
    """Build a Codex rollout session id."""
    return f"rollout-{day}T{time}-{uuid}"


def user_item(text: str, ts: str = "2025-11-10T21:20:21.000Z") -> dict[str, Any]:
    return {
        "timestamp": ts,
        "type": "response_item",
        "payload": {
            "type": "message",
            "role": "user",
            "content": [{"type": "input_text", "text": text}],
        },
    }


def user_event(text: str, ts: str = "2025-11-10T21:20:21.000Z") -> dict[str, Any]:
    return {
        "timestamp": ts,
        "type": "event_msg",
        "payload": {"type": "user_message", "message": text, "images": []},
    }


def assistant_item(text: str, ts: str = "2025-11-10T21:20:25.000Z") -> dict[str, Any]:
    return {
        "timestamp": ts,
        "type": "response_item",
        "payload": {
            "type": "message",
            "role": "assistant",
            "content": [{"type": "output_text", "text": text}],
        },
    }


def agent_event(text: str, ts: str = "2025-11-10T21:20:25.000Z") -> dict[str, Any]:
    return {
        "timestamp": ts,
        "type": "event_msg",
        "payload": {"type": "agent_message", "message": text},
    }


def session_meta(uuid: str, ts: str = "2025-11-10T21:20:20.000Z") -> dict[str, Any]:
    return {
        "timestamp": ts,
        "type": "session_meta",
        "payload": {"id": uuid, "cwd": "/home/user/project", "originator": "codex_cli_rs"},
    }


def conversation(uuid: str, prompt: str, reply: str, ts: str = "2025-11-10T21:20:25.000Z") -> list[dict]:
    """A one-turn conversation as Codex writes it."""
    return [
        session_meta(uuid),
        user_item("<environment_context>\n  <cwd>/home/user/project</cwd>\n</environment_context>"),
        user_item(prompt),
        user_event(prompt),
        assistant_item(reply, ts=ts),
        agent_event(reply, ts=ts),
    ]


def write_jsonl(path: Path, records: list[Any]) -> Path:
    """Write records as JSON lines; str records are written verbatim."""
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [r if isinstance(r, str) else json.dumps(r, ensure_ascii=False) for r in records]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def read_jsonl(path: Path) -> list[dict]:
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]


@pytest.fixture
def paths(tmp_path: Path) -> ManagerPaths:
    """Manager paths under a temporary directory, with manager dirs created."""
    result = build_paths(tmp_path / "codex", tmp_path / "manager")
    result.sessions_dir.mkdir(parents=True)
    ensure_manager_dirs(result)
    return result


@pytest.fixture
def state(paths: ManagerPaths) -> StateStore:
    return StateStore(paths.state_file)


@pytest.fixture
def manager(paths: ManagerPaths, state: StateStore) -> HistoryManager:
    return HistoryManager(paths, state)


@pytest.fixture
def make_session(paths: ManagerPaths) -> Callable[..., Path]:
    """Write a transcript into the active tree at its dated location."""

    def _make(
        uuid: str,
        records: list[Any] | None = None,
        day: str = "2025-11-10",
        time: str = "21-20-20",
        prompt: str = "fix the login bug",
        reply: str = "Done, the login bug is fixed.",
        archived: bool = False,
    ) -> Path:
        name = rollout_name(uuid, day, time) + ".jsonl"
        if records is None:
            records = conversation(uuid, prompt, reply, ts=f"{day}T{time.replace('-', ':')}.000Z")
        if archived:
            path = paths.archived_sessions_dir / name
        else:
            year, month, dd = day.split("-")
            path = paths.sessions_dir / year / month / dd / name
        return write_jsonl(path, records)

    return _make
