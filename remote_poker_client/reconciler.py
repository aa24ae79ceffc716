"""
Merge a freshly polled ``GameState`` into the local session and decide what,
if anything, the client has to do next.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Optional

from .cards import format_cards
from .schemas import GameState, PlayerState
from .session import LocalSessionState

logger = logging.getLogger(__name__)


class OutcomeKind(str, enum.Enum):
    NO_ACTION = "no_action"
    PLAYER_NOT_FOUND = "player_not_found"
    GAME_OVER = "game_over"
    READY_REQUIRED = "ready_required"
    ACTION_REQUIRED = "action_required"


@dataclass(frozen=True, slots=True)
class ReconcileOutcome:
    kind: OutcomeKind
    state: Optional[GameState] = None
    player: Optional[PlayerState] = None

    @property
    def resets_session(self) -> bool:
        return self.kind in (OutcomeKind.GAME_OVER, OutcomeKind.PLAYER_NOT_FOUND)


def is_players_turn(state: GameState, player: PlayerState) -> bool:
    """
    Turn ownership, by whichever pointer the server provides: an index into
    the roster, the current player's name, or a bare id/name reference.
    """
    if state.current_player_index is not None:
        index = state.current_player_index
        if 0 <= index < len(state.players):
            return state.players[index].name == player.name
        return False
    if state.current_player_name is not None:
        return state.current_player_name == player.name
    if state.current_player is not None:
        return state.current_player in (player.id, player.name)
    return False


class GameStateReconciler:
    def __init__(self, session: LocalSessionState) -> None:
        self.session = session

    def reconcile(self, remote_state: GameState) -> ReconcileOutcome:
        session = self.session
        if remote_state.is_game_over:
            logger.info(
                "[Reconciler] game over | winner=%s | final pot=%s | final board=%s",
                remote_state.winner,
                remote_state.final_pot,
                format_cards(remote_state.final_community_cards),
            )
            session.reset()
            return ReconcileOutcome(OutcomeKind.GAME_OVER, state=remote_state)

        session.last_game_state = remote_state

        # ids can be reassigned on reconnection; names cannot
        player = remote_state.find_player_by_name(session.player_name)
        if player is None:
            logger.error(
                "[Reconciler] player %s not found in game %s, resetting session",
                session.player_name,
                remote_state.game_id or session.game_id,
            )
            session.reset()
            return ReconcileOutcome(OutcomeKind.PLAYER_NOT_FOUND, state=remote_state)

        if session.player_id != player.id:
            logger.info("[Reconciler] updating player id from %s to %s", session.player_id, player.id)
            session.player_id = player.id

        if remote_state.phase == "waiting":
            if session.player_ready_set:
                logger.debug("[Reconciler] ready already set in this session, waiting for start")
                return ReconcileOutcome(OutcomeKind.NO_ACTION, state=remote_state, player=player)
            if player.is_ready:
                logger.info("[Reconciler] server reports player ready, waiting for start")
                session.player_ready_set = True
                return ReconcileOutcome(OutcomeKind.NO_ACTION, state=remote_state, player=player)
            return ReconcileOutcome(OutcomeKind.READY_REQUIRED, state=remote_state, player=player)

        if is_players_turn(remote_state, player):
            logger.info("[Reconciler] it is our turn (phase=%s)", remote_state.phase)
            return ReconcileOutcome(OutcomeKind.ACTION_REQUIRED, state=remote_state, player=player)
        return ReconcileOutcome(OutcomeKind.NO_ACTION, state=remote_state, player=player)

    def mark_ready(self) -> None:
        """Record a successful ready call and mirror it into the cached snapshot."""
        session = self.session
        session.player_ready_set = True
        if session.last_game_state is not None and session.player_id is not None:
            session.last_game_state = session.last_game_state.with_player_ready(session.player_id)
