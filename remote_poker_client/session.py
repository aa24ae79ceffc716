"""
Process-owned bookkeeping for the single game this client plays.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .schemas import GameState

MIN_JOIN_BACKOFF_MS = 5000
MAX_JOIN_BACKOFF_MS = 30000
MAX_FETCH_FAILURES = 5


@dataclass
class LocalSessionState:
    """
    Mutable mirror of the remote seat.

    ``game_id`` and ``player_id`` are always set together. ``player_name``
    comes from the agent identity and survives every reset; so does the join
    backoff, which only join outcomes move.
    """

    player_name: str
    game_id: Optional[str] = None
    player_id: Optional[str] = None
    player_ready_set: bool = False
    last_game_state: Optional[GameState] = None
    reset_failed_count: int = 0
    last_join_attempt_ms: Optional[float] = None
    join_backoff_ms: int = MIN_JOIN_BACKOFF_MS

    @property
    def in_game(self) -> bool:
        return self.game_id is not None

    def attach(self, game_id: str, player_id: str) -> None:
        if not game_id or not player_id:
            raise ValueError("a joined session needs both a game id and a player id")
        self.game_id = game_id
        self.player_id = player_id

    def reset(self) -> None:
        self.game_id = None
        self.player_id = None
        self.last_game_state = None
        self.player_ready_set = False
        self.reset_failed_count = 0

    def record_fetch_failure(self) -> bool:
        """Count a failed state fetch; True once the failure budget is exhausted."""
        self.reset_failed_count += 1
        return self.reset_failed_count > MAX_FETCH_FAILURES

    def record_fetch_success(self) -> None:
        self.reset_failed_count = 0

    def join_due(self, now_ms: float) -> bool:
        if self.last_join_attempt_ms is None:
            return True
        return now_ms - self.last_join_attempt_ms >= self.join_backoff_ms

    def register_join_success(self) -> None:
        self.join_backoff_ms = MIN_JOIN_BACKOFF_MS

    def register_join_failure(self) -> None:
        self.join_backoff_ms = min(self.join_backoff_ms * 2, MAX_JOIN_BACKOFF_MS)
