"""
Deterministic corrections for FOLD decisions.

Language models fold far too often. The rules below are simple hand-strength
heuristics that veto a fold when a cheaper or clearly better play exists.
Only FOLD decisions are inspected; everything else passes through unchanged.
"""

from __future__ import annotations

import logging
from typing import Optional

from .cards import has_high_card, has_pair, has_strong_hand
from .schemas import GameState, PlayerAction, PlayerState, PokerDecision

logger = logging.getLogger(__name__)


class DecisionOverrideEngine:
    def refine(
        self,
        decision: PokerDecision,
        game_state: GameState,
        player: Optional[PlayerState],
    ) -> PokerDecision:
        if decision.action is not PlayerAction.FOLD:
            return decision

        if game_state.current_bet == 0:
            logger.info("[Overrides] FOLD -> CHECK, nothing to call")
            return PokerDecision.check()

        if player is None:
            return decision

        chips = player.chips
        bet = game_state.current_bet
        hand = player.hand

        if hand and has_strong_hand(hand, game_state.community_cards) and bet <= chips / 10:
            logger.info("[Overrides] FOLD -> CALL, strong hand facing a small bet")
            return PokerDecision.call()

        if game_state.phase == "preflop" and hand and (has_pair(hand) or has_high_card(hand)):
            if bet <= chips / 5:
                logger.info("[Overrides] FOLD -> CALL, playable starting hand")
                return PokerDecision.call()

        if game_state.phase in ("turn", "river") and game_state.pot > chips / 2 and bet <= chips / 20:
            logger.info("[Overrides] FOLD -> CALL, pot committed on the %s", game_state.phase)
            return PokerDecision.call()

        return decision
