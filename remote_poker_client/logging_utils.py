"""
Session journal: an append-only NDJSON stream of client events (joins,
resets, decisions, submissions).
"""

from __future__ import annotations

import json
import pathlib
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol


class EventSink(Protocol):
    def log(self, event_type: str, payload: Optional[Dict[str, Any]] = None) -> None:
        ...

    def close(self) -> None:
        ...


class NullEventSink:
    def log(self, event_type: str, payload: Optional[Dict[str, Any]] = None) -> None:
        del event_type, payload

    def close(self) -> None:
        pass


class NDJSONLogger:
    """
    Session journal for one client process.

    Each line is one event (``join``, ``reconnect``, ``ready``, ``action``,
    ``submit_failed``, ``reset``, ``leave``) tagged with the agent name and a
    per-process sequence number that restarts at 1 when a new run appends to
    an existing file.
    """

    def __init__(self, path: pathlib.Path, agent_name: Optional[str] = None) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        self._path = path
        self._agent_name = agent_name
        self._seq = 0
        self._file = path.open("a", encoding="utf-8")

    @property
    def path(self) -> pathlib.Path:
        return self._path

    def log(self, event_type: str, payload: Optional[Dict[str, Any]] = None) -> None:
        self._seq += 1
        record: Dict[str, Any] = {
            "seq": self._seq,
            "ts": datetime.now(timezone.utc).isoformat(),
            "type": event_type,
            "payload": payload or {},
        }
        if self._agent_name:
            record["agent"] = self._agent_name
        self._file.write(json.dumps(record, sort_keys=True, default=str) + "\n")
        self._file.flush()

    def close(self) -> None:
        if not self._file.closed:
            self._file.close()

    def __enter__(self) -> "NDJSONLogger":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
