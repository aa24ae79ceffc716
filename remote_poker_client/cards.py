"""
Card primitives and heuristic hand-strength helpers.

The server reports cards either as compact codes (``"Ah"``, ``"10d"``) or as
``{"rank": ..., "suit": ...}`` objects. Everything here works on normalized
``Card`` values and only approximates hand strength; no real hand evaluation
is attempted.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence, Tuple

SUITS: Tuple[str, ...] = ("s", "h", "d", "c")
RANKS: Tuple[str, ...] = ("2", "3", "4", "5", "6", "7", "8", "9", "T", "J", "Q", "K", "A")
RANK_TO_INT = {rank: idx for idx, rank in enumerate(RANKS, start=2)}

HIGH_RANKS: Tuple[str, ...] = ("A", "K", "Q", "J")
PREMIUM_RANKS: Tuple[str, ...] = ("A", "K", "Q")

_RANK_ALIASES = {"10": "T", "ACE": "A", "KING": "K", "QUEEN": "Q", "JACK": "J"}
_SUIT_ALIASES = {
    "spades": "s",
    "spade": "s",
    "♠": "s",
    "hearts": "h",
    "heart": "h",
    "♥": "h",
    "diamonds": "d",
    "diamond": "d",
    "♦": "d",
    "clubs": "c",
    "club": "c",
    "♣": "c",
}


@dataclass(frozen=True)
class Card:
    rank: str
    suit: str

    def __post_init__(self) -> None:
        if self.rank not in RANK_TO_INT:
            raise ValueError(f"invalid rank {self.rank}")
        if self.suit not in SUITS:
            raise ValueError(f"invalid suit {self.suit}")

    @property
    def value(self) -> int:
        return RANK_TO_INT[self.rank]

    def __str__(self) -> str:
        return f"{self.rank}{self.suit}"


def _normalize_rank(raw: str) -> str:
    token = raw.strip().upper()
    return _RANK_ALIASES.get(token, token)


def _normalize_suit(raw: str) -> str:
    token = raw.strip()
    lowered = token.lower()
    if lowered in _SUIT_ALIASES:
        return _SUIT_ALIASES[lowered]
    return lowered[:1]


def card_from_str(token: str) -> Card:
    token = token.strip()
    if len(token) < 2:
        raise ValueError(f"invalid card token: {token!r}")
    # the suit is always the last character; "10h" has a two-character rank
    return Card(rank=_normalize_rank(token[:-1]), suit=_normalize_suit(token[-1]))


def card_from_payload(raw: Any) -> Card:
    """Parse a card from either a code string or a rank/suit mapping."""
    if isinstance(raw, Card):
        return raw
    if isinstance(raw, str):
        return card_from_str(raw)
    if isinstance(raw, dict):
        rank = raw.get("rank", raw.get("value"))
        suit = raw.get("suit")
        if rank is None or suit is None:
            raise ValueError(f"card object is missing rank or suit: {raw!r}")
        return Card(rank=_normalize_rank(str(rank)), suit=_normalize_suit(str(suit)))
    raise ValueError(f"unsupported card payload: {raw!r}")


def parse_cards(raw_cards: Optional[Iterable[Any]]) -> List[Card]:
    """Parse every recognizable card, silently dropping malformed entries."""
    cards: List[Card] = []
    for raw in raw_cards or ():
        try:
            cards.append(card_from_payload(raw))
        except ValueError:
            continue
    return cards


def format_cards(cards: Sequence[Card]) -> str:
    return " ".join(str(card) for card in cards)


# --- heuristics ---------------------------------------------------------


def has_pair(hand: Sequence[Card]) -> bool:
    return len(hand) == 2 and hand[0].rank == hand[1].rank


def has_high_card(hand: Sequence[Card], ranks: Sequence[str] = HIGH_RANKS) -> bool:
    return any(card.rank in ranks for card in hand)


def has_flush_draw(cards: Sequence[Card]) -> bool:
    counts = {}
    for card in cards:
        counts[card.suit] = counts.get(card.suit, 0) + 1
    return any(count >= 4 for count in counts.values())


def has_straight_draw(cards: Sequence[Card]) -> bool:
    values = sorted({card.value for card in cards})
    run = 1
    best = 1 if values else 0
    for previous, current in zip(values, values[1:]):
        if current == previous + 1:
            run += 1
            best = max(best, run)
        else:
            run = 1
    return best >= 4


def has_draw_potential(hand: Sequence[Card], community: Sequence[Card]) -> bool:
    combined = list(hand) + list(community)
    return has_flush_draw(combined) or has_straight_draw(combined)


def has_strong_hand(hand: Sequence[Card], community: Sequence[Card]) -> bool:
    """
    Pocket pair, a pair with the board, or an A/K/Q with a draw once the flop
    is out.
    """
    if len(hand) < 2:
        return False
    if hand[0].rank == hand[1].rank:
        return True
    board_ranks = {card.rank for card in community}
    if any(card.rank in board_ranks for card in hand):
        return True
    if has_high_card(hand[:2], PREMIUM_RANKS) and len(community) >= 3:
        return has_draw_potential(hand, community)
    return False


def describe_hand_strength(hand: Sequence[Card]) -> str:
    if len(hand) != 2:
        return "unknown"
    if has_pair(hand):
        return "strong - pocket pair"
    if has_high_card(hand):
        return "medium - high card"
    if hand[0].suit == hand[1].suit:
        return "flush potential"
    if abs(hand[0].value - hand[1].value) == 1:
        return "straight potential"
    return "weak"
