"""
Structured dataclasses mirroring the poker server's JSON payloads.

The server speaks camelCase JSON with a fair amount of optional and
alternative fields. ``GameState.from_payload`` and friends normalize those
payloads once at the gateway boundary so the rest of the client works with
typed, immutable snapshots.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .cards import Card, parse_cards
from .errors import ProtocolError

PHASES: Tuple[str, ...] = ("waiting", "preflop", "flop", "turn", "river", "showdown")
_STATUS_TO_PHASE = {"waiting": "waiting", "finished": "showdown"}


class PlayerAction(str, enum.Enum):
    FOLD = "FOLD"
    CHECK = "CHECK"
    CALL = "CALL"
    RAISE = "RAISE"

    @property
    def wire_name(self) -> str:
        # the server expects lowercase action names
        return self.value.lower()


@dataclass(frozen=True, slots=True)
class PokerDecision:
    action: PlayerAction
    amount: Optional[int] = None
    all_in: bool = False

    def __post_init__(self) -> None:
        if self.action is not PlayerAction.RAISE and (self.amount is not None or self.all_in):
            raise ValueError(f"{self.action.value} does not take an amount")
        if self.amount is not None and self.amount <= 0:
            raise ValueError("raise amount must be a positive integer")

    @classmethod
    def fold(cls) -> "PokerDecision":
        return cls(PlayerAction.FOLD)

    @classmethod
    def check(cls) -> "PokerDecision":
        return cls(PlayerAction.CHECK)

    @classmethod
    def call(cls) -> "PokerDecision":
        return cls(PlayerAction.CALL)

    @classmethod
    def raise_to(cls, amount: int) -> "PokerDecision":
        return cls(PlayerAction.RAISE, amount=int(amount))

    @classmethod
    def all_in_raise(cls) -> "PokerDecision":
        return cls(PlayerAction.RAISE, all_in=True)

    def resolve(self, state: "GameState", player: Optional["PlayerState"]) -> "PokerDecision":
        """
        Replace an all-in tag with a concrete total bet: remaining chips plus
        whatever the player already has in front of them, capped by the
        server's ``max_raise`` when it reports one.
        """
        if not self.all_in:
            return self
        total = 0
        if player is not None:
            total = player.chips + player.current_bet
        if state.max_raise:
            total = min(total, state.max_raise) if total else state.max_raise
        if total <= 0:
            return PokerDecision.call()
        return PokerDecision.raise_to(total)

    def describe(self) -> str:
        if self.all_in:
            return f"{self.action.value} ALL-IN"
        if self.amount is not None:
            return f"{self.action.value} {self.amount}"
        return self.action.value


def _safe_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except Exception:
        return default


def _optional_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except Exception:
        return None


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _card_field(value: Any, field_name: str) -> Tuple[Card, ...]:
    if value is None:
        return ()
    if not isinstance(value, (list, tuple)):
        raise ProtocolError(f"{field_name} must be a list of cards, got {type(value).__name__}")
    return tuple(parse_cards(value))


def _string_list(value: Any) -> Tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(str(item) for item in value)


@dataclass(frozen=True, slots=True)
class PlayerState:
    id: str
    name: str
    chips: int = 0
    folded: bool = False
    current_bet: int = 0
    hand: Tuple[Card, ...] = ()
    position: Optional[str] = None
    is_ready: Optional[bool] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "PlayerState":
        if not isinstance(payload, Mapping):
            raise ProtocolError(f"player entry is not an object: {payload!r}")
        player_id = payload.get("id")
        name = payload.get("name")
        if player_id is None or name is None:
            raise ProtocolError(f"player entry is missing id or name: {dict(payload)!r}")
        ready = payload.get("isReady", payload.get("ready"))
        raw_hand = payload.get("hand")
        if raw_hand is None:
            raw_hand = payload.get("cards")
        return cls(
            id=str(player_id),
            name=str(name),
            chips=_safe_int(payload.get("chips", 0)),
            folded=bool(payload.get("isFolded", payload.get("folded", False))),
            current_bet=_safe_int(payload.get("currentBet", payload.get("bet", 0))),
            hand=_card_field(raw_hand, "hand"),
            position=_optional_str(payload.get("position")),
            is_ready=None if ready is None else bool(ready),
        )


def _derive_phase(payload: Mapping[str, Any]) -> str:
    for key in ("gameState", "phase", "round"):
        value = payload.get(key)
        if isinstance(value, str) and value:
            phase = value.strip().lower()
            if phase not in PHASES:
                raise ProtocolError(f"unknown game phase {value!r}")
            return phase
    status = payload.get("status")
    if isinstance(status, str) and status.lower() in _STATUS_TO_PHASE:
        return _STATUS_TO_PHASE[status.lower()]
    return "waiting"


@dataclass(frozen=True, slots=True)
class GameState:
    game_id: str
    pot: int
    current_bet: int
    players: Tuple[PlayerState, ...]
    community_cards: Tuple[Card, ...]
    phase: str
    current_player_index: Optional[int] = None
    current_player_name: Optional[str] = None
    current_player: Optional[str] = None
    min_raise: Optional[int] = None
    max_raise: Optional[int] = None
    is_game_over: bool = False
    winner: Optional[str] = None
    final_pot: Optional[int] = None
    final_community_cards: Tuple[Card, ...] = ()
    round_history: Tuple[str, ...] = ()
    action_history: Tuple[str, ...] = ()
    last_action: Optional[str] = None
    last_raise_amount: int = 0
    small_blind: Optional[int] = None
    big_blind: Optional[int] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "GameState":
        """
        Normalize a ``/api/game/state`` response.

        Raises ``ProtocolError`` when the payload is not an object, carries no
        player list, or reports an unknown phase.
        """
        if not isinstance(payload, Mapping):
            raise ProtocolError(f"game state payload is not an object: {type(payload).__name__}")
        raw_players = payload.get("players")
        if not isinstance(raw_players, list):
            raise ProtocolError("game state payload has no player list")

        winner = payload.get("winner")
        if isinstance(winner, Mapping):
            winner = winner.get("name")

        small_blind = payload.get("smallBlind")
        big_blind = payload.get("bigBlind")
        return cls(
            game_id=str(payload.get("gameId", payload.get("id", "")) or ""),
            pot=_safe_int(payload.get("pot", 0)),
            current_bet=_safe_int(payload.get("currentBet", 0)),
            players=tuple(PlayerState.from_payload(p) for p in raw_players),
            community_cards=_card_field(payload.get("communityCards"), "communityCards"),
            phase=_derive_phase(payload),
            current_player_index=_optional_int(payload.get("currentPlayerIndex")),
            current_player_name=_optional_str(payload.get("currentPlayerName")),
            current_player=_optional_str(payload.get("currentPlayer")),
            min_raise=_optional_int(payload.get("minRaise")),
            max_raise=_optional_int(payload.get("maxRaise")),
            is_game_over=bool(payload.get("isGameOver", False)),
            winner=_optional_str(winner),
            final_pot=_optional_int(payload.get("finalPot")),
            final_community_cards=_card_field(payload.get("finalCommunityCards"), "finalCommunityCards"),
            round_history=_string_list(payload.get("roundHistory")),
            action_history=_string_list(payload.get("actionHistory")),
            last_action=_optional_str(payload.get("lastAction")),
            last_raise_amount=_safe_int(payload.get("lastRaiseAmount", 0)),
            small_blind=_optional_int(small_blind.get("amount")) if isinstance(small_blind, Mapping) else None,
            big_blind=_optional_int(big_blind.get("amount")) if isinstance(big_blind, Mapping) else None,
        )

    def find_player_by_name(self, name: Optional[str]) -> Optional[PlayerState]:
        for player in self.players:
            if player.name == name:
                return player
        return None

    def with_player_ready(self, player_id: str) -> "GameState":
        players = tuple(
            replace(player, is_ready=True) if player.id == player_id else player
            for player in self.players
        )
        return replace(self, players=players)


@dataclass(frozen=True, slots=True)
class AvailableGame:
    id: str
    name: str


@dataclass(frozen=True, slots=True)
class PlayerGameStatus:
    """Answer of the "am I already seated somewhere?" endpoint."""

    in_game: bool
    game_id: Optional[str] = None
    game_state: Optional[str] = None
    players: Tuple[PlayerState, ...] = field(default_factory=tuple)

    @classmethod
    def from_payload(cls, payload: Any) -> "PlayerGameStatus":
        if not isinstance(payload, Mapping):
            raise ProtocolError("player game status payload is not an object")
        game = payload.get("game")
        players: List[PlayerState] = []
        game_state = None
        if isinstance(game, Mapping):
            raw_players = game.get("players") or []
            if not isinstance(raw_players, list):
                raise ProtocolError("player game roster is not a list")
            for raw in raw_players:
                players.append(PlayerState.from_payload(raw))
            game_state = _optional_str(game.get("state"))
        game_id = payload.get("gameId")
        if game_id is None and isinstance(game, Mapping):
            game_id = game.get("id")
        return cls(
            in_game=bool(payload.get("inGame", False)),
            game_id=_optional_str(game_id),
            game_state=game_state,
            players=tuple(players),
        )

    def find_player_by_name(self, name: Optional[str]) -> Optional[PlayerState]:
        for player in self.players:
            if player.name == name:
                return player
        return None


def decision_payload(decision: PokerDecision) -> Dict[str, Any]:
    body: Dict[str, Any] = {"action": decision.action.wire_name}
    if decision.amount is not None:
        body["amount"] = decision.amount
    return body

