"""Pinned/remark state persisted as a small JSON document."""

import json
import os
from pathlib import Path
from typing import Any

from codex_history.logging import get_logger
from codex_history.models import ManagerState

logger = get_logger("state")


class StateStore:
    """Manages pinned sessions and remarks in the manager state file.

    The document is loaded lazily on first use and rewritten in full after
    every mutation that changes it.
    """

    def __init__(self, state_file: Path) -> None:
        """Initialize the store.

        Args:
            state_file: Path to state.json. Parent directories are created
                        on first write.
        """
        self._state_file = state_file
        self._state = ManagerState()
        self._loaded = False

    @property
    def state_file(self) -> Path:
        return self._state_file

    def load(self) -> ManagerState:
        """Load state from disk once per instance.

        A missing file is created with empty defaults. An unreadable file
        is logged and replaced in memory by empty defaults.
        """
        if self._loaded:
            return self._state

        if not self._state_file.exists():
            self._state = ManagerState()
            self._persist()
        else:
            try:
                raw = json.loads(self._state_file.read_text(encoding="utf-8"))
                self._state = _state_from_json(raw)
            except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
                logger.warning(
                    "Failed to read state file, using defaults: path=%s error=%s",
                    self._state_file,
                    e,
                )
                self._state = ManagerState()

        self._loaded = True
        return self._state

    def _persist(self) -> None:
        self._state_file.parent.mkdir(parents=True, exist_ok=True)
        tmp_file = self._state_file.with_name(self._state_file.name + ".tmp")
        tmp_file.write_text(
            json.dumps(self._state.to_dict(), ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
        os.replace(tmp_file, self._state_file)

    def pin(self, session_id: str) -> None:
        """Pin a session, placing it first among pinned sessions."""
        state = self.load()
        if session_id in state.pinned:
            return
        state.pinned.insert(0, session_id)
        self._persist()
        logger.info("Pinned session: id=%s", session_id)

    def unpin(self, session_id: str) -> None:
        state = self.load()
        if session_id not in state.pinned:
            return
        state.pinned = [sid for sid in state.pinned if sid != session_id]
        self._persist()
        logger.info("Unpinned session: id=%s", session_id)

    def is_pinned(self, session_id: str) -> bool:
        return session_id in self.load().pinned

    def get_pinned(self) -> list[str]:
        """Pinned ids, most recently pinned first."""
        return list(self.load().pinned)

    def get_pinned_set(self) -> set[str]:
        return set(self.load().pinned)

    def set_remark(self, session_id: str, remark: str) -> None:
        """Set or clear a session remark.

        The remark is trimmed; an empty remark removes the entry. Nothing is
        written when the value is unchanged.
        """
        state = self.load()
        value = remark.strip()
        if state.remarks.get(session_id, "") == value:
            return
        if value:
            state.remarks[session_id] = value
        else:
            del state.remarks[session_id]
        self._persist()

    def get_remark(self, session_id: str) -> str:
        return self.load().remarks.get(session_id, "")

    def get_remarks(self) -> dict[str, str]:
        return dict(self.load().remarks)


def _state_from_json(raw: Any) -> ManagerState:
    """Build state from a parsed document, dropping malformed parts."""
    if not isinstance(raw, dict):
        logger.warning("State file is not a JSON object, using defaults")
        return ManagerState()

    pinned_raw = raw.get("pinned")
    pinned: list[str] = []
    if isinstance(pinned_raw, list):
        for sid in pinned_raw:
            if isinstance(sid, str) and sid and sid not in pinned:
                pinned.append(sid)

    remarks_raw = raw.get("remarks")
    remarks: dict[str, str] = {}
    if isinstance(remarks_raw, dict):
        for sid, remark in remarks_raw.items():
            if isinstance(remark, str) and remark.strip():
                remarks[sid] = remark

    return ManagerState(pinned=pinned, remarks=remarks)
