"""
Remote game gateway: the interface the client core consumes plus the HTTP
implementation that talks to the poker server.

The gateway never retries. Every failure surfaces as a ``PokerClientError``
subclass and the scheduler owns all retry/backoff policy.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Protocol

import httpx

from .errors import ErrorKind, JoinRejected, NetworkError, ProtocolError
from .schemas import AvailableGame, GameState, PlayerGameStatus, PokerDecision, decision_payload

logger = logging.getLogger(__name__)

SYNTHETIC_GAME = AvailableGame(id="current", name="Poker Game")


class RemoteGameGateway(Protocol):
    def list_available_games(self) -> List[AvailableGame]:
        ...

    def get_game_state(self, game_id: str, player_id: Optional[str] = None) -> GameState:
        ...

    def join_game(self, game_id: str, player_name: str) -> str:
        ...

    def set_player_ready(self, player_id: Optional[str] = None) -> None:
        ...

    def leave_game(self, game_id: str, player_id: str) -> None:
        ...

    def submit_action(self, game_id: str, player_id: str, decision: PokerDecision) -> None:
        ...

    def check_player_game(self) -> PlayerGameStatus:
        ...

    def create_game(self) -> str:
        ...


def _classify_join_error(status: int, body: str) -> Optional[JoinRejected]:
    """
    Turn a rejected join into a structured error. This is the only place that
    inspects server message text.
    """
    message = body
    game_id: Optional[str] = None
    try:
        data = json.loads(body)
    except (TypeError, json.JSONDecodeError):
        data = None
    if isinstance(data, dict):
        message = str(data.get("error") or data.get("message") or body)
        raw_game_id = data.get("gameId")
        game_id = str(raw_game_id) if raw_game_id is not None else None

    lowered = message.lower()
    if "already in an active game" in lowered:
        return JoinRejected(ErrorKind.ALREADY_IN_GAME, message, status=status, body=body, game_id=game_id)
    if "game is full" in lowered:
        return JoinRejected(ErrorKind.GAME_FULL, message, status=status, body=body)
    return None


class HttpGameGateway:
    """
    ``RemoteGameGateway`` over the poker server's REST API.

    Endpoints:
        GET  /api/game/state/{player_id}
        POST /api/game/join            {"playerName": ...}
        POST /api/game/ready/{player_id}
        POST /api/game/move/{player_id} {"action": ..., "amount": ...}
        GET  /api/game/player-game
        POST /api/game/new-game

    State is keyed by player id on the server, so the gateway remembers the
    id handed out by the last successful join.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._player_id: Optional[str] = None
        client_kwargs: Dict[str, Any] = {
            "base_url": self.base_url,
            "timeout": timeout,
            "headers": {"x-api-key": api_key, "Content-Type": "application/json"},
        }
        if transport is not None:
            client_kwargs["transport"] = transport
        self._client = httpx.Client(**client_kwargs)
        logger.info("[Gateway] initialized with base URL %s", self.base_url)

    @property
    def player_id(self) -> Optional[str]:
        return self._player_id

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HttpGameGateway":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # --- RemoteGameGateway ---------------------------------------------

    def list_available_games(self) -> List[AvailableGame]:
        # The server has no listing endpoint; there is always one table.
        logger.debug("[Gateway] no listing endpoint, returning synthetic game entry")
        return [SYNTHETIC_GAME]

    def get_game_state(self, game_id: str, player_id: Optional[str] = None) -> GameState:
        target = player_id or self._player_id
        if not target:
            raise ProtocolError("cannot fetch game state before a player id is known")
        data = self._request("GET", f"/api/game/state/{target}")
        state = GameState.from_payload(data)
        logger.debug("[Gateway] fetched state for game %s phase=%s", game_id, state.phase)
        return state

    def join_game(self, game_id: str, player_name: str) -> str:
        logger.info("[Gateway] joining game %s as %s", game_id, player_name)
        data = self._request("POST", "/api/game/join", json_body={"playerName": player_name}, joining=True)
        if not isinstance(data, dict) or not data.get("playerId"):
            raise ProtocolError("join response carries no playerId", body=json.dumps(data))
        player_id = str(data["playerId"])
        self._player_id = player_id
        # joining always readies the player as well
        self.set_player_ready(player_id)
        return player_id

    def set_player_ready(self, player_id: Optional[str] = None) -> None:
        target = player_id or self._player_id
        if not target:
            raise ProtocolError("cannot set ready without a player id")
        data = self._request("POST", f"/api/game/ready/{target}")
        logger.info("[Gateway] ready response for %s: %s", target, data)

    def leave_game(self, game_id: str, player_id: str) -> None:
        # No leave endpoint on the server; forget the seat locally.
        logger.info("[Gateway] player %s leaving game %s", player_id, game_id)
        self._player_id = None

    def submit_action(self, game_id: str, player_id: str, decision: PokerDecision) -> None:
        body = decision_payload(decision)
        logger.info("[Gateway] submitting %s for player %s in game %s", body, player_id, game_id)
        data = self._request("POST", f"/api/game/move/{player_id}", json_body=body)
        logger.debug("[Gateway] action response: %s", data)

    def check_player_game(self) -> PlayerGameStatus:
        data = self._request("GET", "/api/game/player-game")
        return PlayerGameStatus.from_payload(data)

    def create_game(self) -> str:
        data = self._request("POST", "/api/game/new-game")
        logger.info("[Gateway] game creation response: %s", data)
        # the server does not return an id; the single table is "current"
        return SYNTHETIC_GAME.id

    # --- Internal helpers ----------------------------------------------

    def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: Optional[Dict[str, Any]] = None,
        joining: bool = False,
    ) -> Any:
        try:
            response = self._client.request(method, path, json=json_body)
        except httpx.HTTPError as exc:
            logger.error("[Gateway] %s %s failed: %s", method, path, exc)
            raise NetworkError(f"{method} {path} failed: {exc}") from exc

        if response.is_error:
            text = response.text
            logger.error("[Gateway] HTTP error (%s) on %s %s: %s", response.status_code, method, path, text)
            if joining:
                rejected = _classify_join_error(response.status_code, text)
                if rejected is not None:
                    raise rejected
            raise NetworkError(
                f"HTTP error on {method} {path}",
                status=response.status_code,
                body=text,
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise ProtocolError(f"{method} {path} returned invalid JSON", body=response.text) from exc
