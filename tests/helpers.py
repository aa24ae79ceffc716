"""
Payload builders and in-memory doubles shared by the test modules.
"""

from typing import Any, Dict, List, Optional

from remote_poker_client.errors import ErrorKind, JoinRejected, NetworkError
from remote_poker_client.schemas import (
    AvailableGame,
    GameState,
    PlayerGameStatus,
    PokerDecision,
)

AGENT = "PokerBot"


def player_payload(
    player_id: str,
    name: str,
    chips: int = 1000,
    hand: Optional[List[Any]] = None,
    ready: Optional[bool] = None,
    folded: bool = False,
    bet: int = 0,
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "id": player_id,
        "name": name,
        "chips": chips,
        "isFolded": folded,
        "currentBet": bet,
    }
    if hand is not None:
        payload["hand"] = hand
    if ready is not None:
        payload["isReady"] = ready
    return payload


def state_payload(
    phase: str = "preflop",
    players: Optional[List[Dict[str, Any]]] = None,
    current_player_index: Optional[int] = None,
    current_bet: int = 0,
    pot: int = 0,
    community: Optional[List[Any]] = None,
    **extra: Any,
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "gameId": "G",
        "pot": pot,
        "currentBet": current_bet,
        "players": players
        if players is not None
        else [player_payload("p1", AGENT), player_payload("p2", "Villain")],
        "communityCards": community or [],
        "gameState": phase,
        "isGameOver": False,
    }
    if current_player_index is not None:
        payload["currentPlayerIndex"] = current_player_index
    payload.update(extra)
    return payload


def make_state(**kwargs: Any) -> GameState:
    return GameState.from_payload(state_payload(**kwargs))


class FakeGateway:
    """Scriptable ``RemoteGameGateway`` that records every call."""

    def __init__(self) -> None:
        self.calls: List[tuple] = []
        self.states: List[Any] = []
        self.join_result: Any = "p1"
        self.player_game: Any = PlayerGameStatus(in_game=False)
        self.player_game_after_reject: Any = None
        self.games: List[AvailableGame] = [AvailableGame(id="G", name="Poker Game")]
        self.ready_error: Optional[Exception] = None
        self.submit_error: Optional[Exception] = None
        self.leave_error: Optional[Exception] = None
        self.submitted: List[PokerDecision] = []

    def _count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)

    @property
    def ready_calls(self) -> int:
        return self._count("set_player_ready")

    def list_available_games(self):
        self.calls.append(("list_available_games",))
        return list(self.games)

    def get_game_state(self, game_id, player_id=None):
        self.calls.append(("get_game_state", game_id, player_id))
        item = self.states.pop(0) if self.states else NetworkError("no state scripted")
        if isinstance(item, Exception):
            raise item
        return GameState.from_payload(item)

    def join_game(self, game_id, player_name):
        self.calls.append(("join_game", game_id, player_name))
        if isinstance(self.join_result, Exception):
            raise self.join_result
        return self.join_result

    def set_player_ready(self, player_id=None):
        self.calls.append(("set_player_ready", player_id))
        if self.ready_error is not None:
            raise self.ready_error

    def leave_game(self, game_id, player_id):
        self.calls.append(("leave_game", game_id, player_id))
        if self.leave_error is not None:
            raise self.leave_error

    def submit_action(self, game_id, player_id, decision):
        self.calls.append(("submit_action", game_id, player_id, decision))
        if self.submit_error is not None:
            raise self.submit_error
        self.submitted.append(decision)

    def check_player_game(self):
        self.calls.append(("check_player_game",))
        if self._count("check_player_game") > 1 and self.player_game_after_reject is not None:
            result = self.player_game_after_reject
        else:
            result = self.player_game
        if isinstance(result, Exception):
            raise result
        return result

    def create_game(self):
        self.calls.append(("create_game",))
        return "current"


def already_in_game(game_id: str = "G") -> JoinRejected:
    return JoinRejected(
        ErrorKind.ALREADY_IN_GAME,
        "Player is already in an active game",
        status=400,
        game_id=game_id,
    )


class FakeClock:
    def __init__(self, start_ms: float = 0.0) -> None:
        self.now = start_ms

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms
