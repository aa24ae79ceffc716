"""
Prompt construction for the decision model.
"""

from __future__ import annotations

from typing import List, Optional

from .cards import describe_hand_strength, format_cards
from .schemas import GameState, PlayerState


def pot_odds_label(pot: int, current_bet: int) -> str:
    if current_bet <= 0:
        return "N/A"
    return f"{round(pot / current_bet, 2)}:1"


def chip_rank(state: GameState, player: PlayerState) -> int:
    return sum(1 for other in state.players if other.chips > player.chips) + 1


def build_context(state: GameState, player: PlayerState) -> str:
    total_players = len(state.players)
    active_players = sum(1 for p in state.players if not p.folded)
    lines: List[str] = []
    lines.append(f"Phase: {state.phase}")
    lines.append(f"Pot: {state.pot}")
    lines.append(f"Current bet: {state.current_bet}")
    if state.small_blind is not None or state.big_blind is not None:
        lines.append(f"Blinds: SB {state.small_blind} / BB {state.big_blind}")
    lines.append(f"Your cards: {format_cards(player.hand) if player.hand else 'unknown'}")
    lines.append(f"Estimated hand strength: {describe_hand_strength(player.hand)}")
    lines.append(f"Community cards: {format_cards(state.community_cards) or 'none'}")
    lines.append(f"Your chips: {player.chips}")
    lines.append(f"Your chip rank: {chip_rank(state, player)} of {total_players}")
    lines.append(f"Your current bet: {player.current_bet}")
    lines.append(f"Pot odds: {pot_odds_label(state.pot, state.current_bet)}")
    if state.min_raise is not None or state.max_raise is not None:
        lines.append(f"Raise limits: min {state.min_raise} / max {state.max_raise}")
    lines.append(f"Last action: {state.last_action or 'none'}")
    lines.append(f"Last raise: {state.last_raise_amount}")
    lines.append(f"Active players: {active_players} of {total_players}")
    lines.append("")
    lines.append("Players:")
    for p in state.players:
        status = "folded" if p.folded else "active"
        lines.append(f"  {p.name}: {p.chips} chips, bet {p.current_bet}, {status}")
    lines.append("")
    lines.append("Round history (most recent last):")
    for entry in state.round_history or state.action_history:
        lines.append(f"  {entry}")
    return "\n".join(lines)


def build_system_prompt(agent_name: str, player_count: int, game_id: Optional[str]) -> str:
    return (
        f"You are an experienced No-Limit Texas Hold'em player named {agent_name}.\n"
        f"There are {player_count} players at table {game_id or 'current'}.\n"
        "Your goal is to maximize your winnings. Weigh the strength of your hand, "
        "your chances of improving on the board, the size of the pot and the current bet, "
        "your position and stack, and how the other players are acting.\n"
        "Avoid folding constantly; check, call or raise when appropriate.\n"
        "IMPORTANT: answer ONLY with one of:\n"
        '- "FOLD"\n'
        '- "CHECK"\n'
        '- "CALL"\n'
        '- "RAISE X" where X is the total bet, including the current bet\n'
        "Do not add explanations or comments."
    )
