"""
Error taxonomy shared by the gateway, the reconciler and the scheduler.

Every failure carries a ``kind`` tag plus an optional recovery payload (the
conflicting game id of a rejected join) so callers branch on structure
instead of message text.
"""

from __future__ import annotations

import enum
from typing import Optional


class ErrorKind(str, enum.Enum):
    NETWORK = "network"
    HTTP = "http"
    PROTOCOL = "protocol"
    ALREADY_IN_GAME = "already_in_game"
    GAME_FULL = "game_full"
    STATE_INCONSISTENCY = "state_inconsistency"


class PokerClientError(RuntimeError):
    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        status: Optional[int] = None,
        body: Optional[str] = None,
        game_id: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status = status
        self.body = body
        self.game_id = game_id

    def __str__(self) -> str:
        if self.status is not None:
            return f"{self.kind.value} ({self.status}): {self.message}"
        return f"{self.kind.value}: {self.message}"


class NetworkError(PokerClientError):
    """Transport failure or non-2xx HTTP response."""

    def __init__(self, message: str, *, status: Optional[int] = None, body: Optional[str] = None) -> None:
        kind = ErrorKind.NETWORK if status is None else ErrorKind.HTTP
        super().__init__(kind, message, status=status, body=body)


class ProtocolError(PokerClientError):
    """The server answered, but not with the shape we expect."""

    def __init__(self, message: str, *, body: Optional[str] = None) -> None:
        super().__init__(ErrorKind.PROTOCOL, message, body=body)


class JoinRejected(PokerClientError):
    """The server refused a join; ``kind`` says why."""


class StateInconsistency(PokerClientError):
    """The local player is missing from the remote roster."""

    def __init__(self, message: str) -> None:
        super().__init__(ErrorKind.STATE_INCONSISTENCY, message)


FETCH_ERRORS = (NetworkError, ProtocolError)
