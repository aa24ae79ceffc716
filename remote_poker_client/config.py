"""
Client configuration.

Precedence (highest first): explicit overrides (CLI flags), environment
variables, config file, defaults.
"""

from __future__ import annotations

import os
import pathlib
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Mapping, Optional

from .config_loader import load_config
from .parser import DEFAULT_RAISE_AMOUNT

DEFAULT_API_URL = "http://localhost:3001"
MIN_POLL_INTERVAL_S = 2.0
MAX_POLL_INTERVAL_S = 5.0

_ENV_KEYS = {
    "api_base_url": "POKER_API_URL",
    "api_key": "POKER_API_KEY",
    "agent_name": "POKER_AGENT_NAME",
    "poll_interval_s": "POKER_POLL_INTERVAL_S",
    "request_timeout_s": "POKER_REQUEST_TIMEOUT_S",
    "event_log": "POKER_EVENT_LOG",
}


@dataclass
class ClientConfig:
    api_key: Optional[str] = None
    api_base_url: str = DEFAULT_API_URL
    agent_name: Optional[str] = None
    poll_interval_s: float = 5.0
    request_timeout_s: float = 30.0
    default_raise_amount: int = DEFAULT_RAISE_AMOUNT
    create_game_when_empty: bool = False
    event_log: Optional[str] = None
    dry_run: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ClientConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"unknown config keys: {', '.join(unknown)}")
        config = cls()
        return config.merged(data)

    @classmethod
    def from_file(cls, path: str | pathlib.Path) -> "ClientConfig":
        return cls.from_mapping(load_config(path))

    @classmethod
    def load(
        cls,
        path: Optional[str | pathlib.Path] = None,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> "ClientConfig":
        config = cls.from_file(path) if path else cls()
        config = config.merged(env_overrides())
        if overrides:
            config = config.merged({k: v for k, v in overrides.items() if v is not None})
        config.validate()
        return config

    def merged(self, data: Mapping[str, Any]) -> "ClientConfig":
        updates: Dict[str, Any] = {}
        for f in fields(self):
            if f.name not in data:
                continue
            value = data[f.name]
            if f.name in {"poll_interval_s", "request_timeout_s"}:
                value = float(value)
            elif f.name == "default_raise_amount":
                value = int(value)
            elif f.name in {"create_game_when_empty", "dry_run"}:
                value = _as_bool(value)
            updates[f.name] = value
        return replace(self, **updates)

    def validate(self) -> None:
        if not self.api_key:
            raise ValueError("POKER_API_KEY is required (config key 'api_key')")
        if not self.api_base_url:
            raise ValueError("api_base_url must not be empty")
        if not MIN_POLL_INTERVAL_S <= self.poll_interval_s <= MAX_POLL_INTERVAL_S:
            raise ValueError(
                f"poll_interval_s must be between {MIN_POLL_INTERVAL_S} and {MAX_POLL_INTERVAL_S} seconds"
            )
        if self.request_timeout_s <= 0:
            raise ValueError("request_timeout_s must be positive")
        if self.default_raise_amount <= 0:
            raise ValueError("default_raise_amount must be positive")


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "y", "on")


def env_overrides() -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for key, env_name in _ENV_KEYS.items():
        raw = os.getenv(env_name)
        if raw is None or not raw.strip():
            continue
        values[key] = raw.strip()
    return values
