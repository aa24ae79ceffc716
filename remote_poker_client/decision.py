"""
Decision pipeline: context -> model reply -> parsed decision -> overrides.
"""

from __future__ import annotations

import logging
from typing import Optional

from .context import build_context, build_system_prompt
from .errors import StateInconsistency
from .overrides import DecisionOverrideEngine
from .parser import ResponseParser
from .runtime import AgentRuntime
from .schemas import GameState, PlayerState, PokerDecision

logger = logging.getLogger(__name__)


class DecisionPipeline:
    def __init__(
        self,
        runtime: AgentRuntime,
        parser: Optional[ResponseParser] = None,
        overrides: Optional[DecisionOverrideEngine] = None,
    ) -> None:
        self.runtime = runtime
        self.parser = parser or ResponseParser()
        self.overrides = overrides or DecisionOverrideEngine()

    def decide(self, state: GameState, player: Optional[PlayerState]) -> PokerDecision:
        """Never raises: any failure on the way degrades to FOLD."""
        try:
            if player is None:
                raise StateInconsistency(f"no seat for {self.runtime.agent_name} in game {state.game_id}")
            context = build_context(state, player)
            system_prompt = build_system_prompt(self.runtime.agent_name, len(state.players), state.game_id)
            reply = self.runtime.generate(context, system_prompt)
            logger.info("[Decision] model reply: %r", reply)
            decision = self.parser.parse(reply)
            logger.info("[Decision] parsed: %s", decision.describe())
            refined = self.overrides.refine(decision, state, player)
            if refined != decision:
                logger.info("[Decision] overridden: %s -> %s", decision.describe(), refined.describe())
            return refined
        except Exception as exc:
            logger.error("[Decision] failed to make a decision, folding: %s", exc)
            return PokerDecision.fold()
