"""
Map free-form model output onto a ``PokerDecision``.

The model is asked to reply with a bare action, but in practice it answers
with anything from ``"RAISE 150"`` to a paragraph in Portuguese. Patterns are
tried in priority order; when nothing matches the reply degrades to a
neutral CHECK, and an internal failure degrades to FOLD.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from .schemas import PokerDecision

logger = logging.getLogger(__name__)

DEFAULT_RAISE_AMOUNT = 20

ALL_IN_PATTERN = re.compile(r"\b(ALL[ -]?IN|TUDO)\b")
RAISE_PATTERN = re.compile(r"\b(RAISE TO|RAISE|AUMENTAR|BET|APOSTAR|R)[ :]+(\d+)\b")
CALL_PATTERN = re.compile(r"\b(CALL|CHAMAR|PAGAR|COBRIR)\b")
CHECK_PATTERN = re.compile(r"\b(CHECK|CHECAR|PASS|PASSAR|C)\b")
FOLD_PATTERN = re.compile(r"\b(FOLD|DESISTIR|PASSO|F)\b")

LOOSE_RAISE_WORDS = ("APOSTA", "RAISE", "AUMENTA", "BET")
LOOSE_CALL_WORDS = ("CALL", "CHAMA", "PAGA", "IGUAL")
LOOSE_CHECK_WORDS = ("CHECK", "PASSA", "CHEC")
AGGRESSIVE_WORDS = ("STRONG", "GOOD", "AGGRESSIV", "FORTE", "BOM", "AGRESSIV")
CONSERVATIVE_WORDS = ("WEAK", "BAD", "WORSE", "FRACA", "RUIM", "PIOR", "SAIR")


def _contains_any(text: str, words) -> bool:
    return any(word in text for word in words)


class ResponseParser:
    """Total parser: ``parse`` always returns a decision and never raises."""

    def __init__(self, default_raise_amount: int = DEFAULT_RAISE_AMOUNT) -> None:
        if default_raise_amount <= 0:
            raise ValueError("default_raise_amount must be positive")
        self.default_raise_amount = default_raise_amount

    def parse(self, raw_text: Optional[str]) -> PokerDecision:
        try:
            return self._parse(raw_text)
        except Exception as exc:
            logger.error("[Parser] failed to parse %r: %s", raw_text, exc)
            return PokerDecision.fold()

    def _parse(self, raw_text: Optional[str]) -> PokerDecision:
        normalized = raw_text.strip().upper()
        logger.debug("[Parser] parsing %r", normalized)

        if ALL_IN_PATTERN.search(normalized):
            return PokerDecision.all_in_raise()

        for match in RAISE_PATTERN.finditer(normalized):
            amount = int(match.group(2))
            if amount > 0:
                return PokerDecision.raise_to(amount)

        if CALL_PATTERN.search(normalized):
            return PokerDecision.call()
        if CHECK_PATTERN.search(normalized):
            return PokerDecision.check()
        if FOLD_PATTERN.search(normalized):
            return PokerDecision.fold()

        if _contains_any(normalized, LOOSE_RAISE_WORDS):
            return PokerDecision.raise_to(self.default_raise_amount)
        if _contains_any(normalized, LOOSE_CALL_WORDS):
            return PokerDecision.call()
        if _contains_any(normalized, LOOSE_CHECK_WORDS):
            return PokerDecision.check()

        if _contains_any(normalized, AGGRESSIVE_WORDS):
            logger.warning("[Parser] aggressive wording without an action, choosing CALL: %r", raw_text)
            return PokerDecision.call()
        if _contains_any(normalized, CONSERVATIVE_WORDS):
            logger.warning("[Parser] conservative wording without an action, choosing FOLD: %r", raw_text)
            return PokerDecision.fold()
        logger.warning("[Parser] could not interpret %r, choosing CHECK", raw_text)
        return PokerDecision.check()
