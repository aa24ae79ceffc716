"""
Unit tests for the model-reply parser.
"""

import pytest

from remote_poker_client.parser import ResponseParser
from remote_poker_client.schemas import PlayerAction, PokerDecision


@pytest.fixture
def parser():
    return ResponseParser()


class TestExplicitActions:
    def test_raise_with_amount(self, parser):
        assert parser.parse("RAISE 150") == PokerDecision(PlayerAction.RAISE, 150)

    def test_raise_to_phrasing(self, parser):
        assert parser.parse("I will raise to 300") == PokerDecision.raise_to(300)

    def test_localized_bet_synonym(self, parser):
        assert parser.parse("apostar: 80") == PokerDecision.raise_to(80)

    def test_fold(self, parser):
        assert parser.parse("fold") == PokerDecision.fold()

    def test_call_beats_check_and_fold(self, parser):
        assert parser.parse("Call, I won't fold or check here") == PokerDecision.call()

    def test_check(self, parser):
        assert parser.parse("  check  ") == PokerDecision.check()

    def test_portuguese_fold(self, parser):
        assert parser.parse("Vou desistir") == PokerDecision.fold()


class TestAllIn:
    @pytest.mark.parametrize("text", ["ALL IN", "all-in!", "Going allin now", "tudo"])
    def test_all_in_is_tagged(self, parser, text):
        decision = parser.parse(text)
        assert decision.action is PlayerAction.RAISE
        assert decision.all_in is True
        assert decision.amount is None

    def test_all_in_takes_priority_over_raise(self, parser):
        assert parser.parse("raise 50, actually all in").all_in


class TestFallbacks:
    def test_zero_raise_is_rejected_and_falls_through(self, parser):
        # "RAISE 0" is not a valid explicit raise; the loose raise rule applies
        assert parser.parse("RAISE 0") == PokerDecision.raise_to(20)

    def test_loose_bet_wording_uses_default_amount(self):
        parser = ResponseParser(default_raise_amount=40)
        assert parser.parse("time to make a big bet") == PokerDecision.raise_to(40)

    def test_loose_call_wording(self, parser):
        assert parser.parse("calling is fine") == PokerDecision.call()

    def test_loose_check_wording(self, parser):
        assert parser.parse("checking it down") == PokerDecision.check()

    def test_aggressive_sentiment_calls(self, parser):
        assert parser.parse("blah blah good hand") == PokerDecision.call()

    def test_conservative_sentiment_folds(self, parser):
        assert parser.parse("this is a weak holding") == PokerDecision.fold()

    def test_empty_reply_checks(self, parser):
        assert parser.parse("") == PokerDecision.check()

    def test_gibberish_never_raises(self, parser):
        assert parser.parse("lorem ipsum dolor") == PokerDecision.check()

    def test_internal_error_folds(self, parser):
        assert parser.parse(None) == PokerDecision.fold()


def test_default_raise_amount_must_be_positive():
    with pytest.raises(ValueError):
        ResponseParser(default_raise_amount=0)
