"""
Scheduler tests driven tick by tick against the in-memory gateway.
"""

import time

import pytest

from helpers import AGENT, FakeGateway, already_in_game, player_payload, state_payload
from remote_poker_client.decision import DecisionPipeline
from remote_poker_client.errors import ErrorKind, JoinRejected, NetworkError, ProtocolError
from remote_poker_client.runtime import ScriptedAgentRuntime
from remote_poker_client.scheduler import PollingScheduler, SchedulerState
from remote_poker_client.schemas import AvailableGame, PlayerGameStatus, PlayerState, PokerDecision
from remote_poker_client.session import MIN_JOIN_BACKOFF_MS


class RecordingSink:
    def __init__(self):
        self.events = []

    def log(self, event_type, payload=None):
        self.events.append((event_type, payload or {}))

    def close(self):
        pass

    @property
    def types(self):
        return [event for event, _ in self.events]


def make_scheduler(gateway, clock, replies=("CHECK",), **kwargs):
    runtime = ScriptedAgentRuntime(AGENT, replies)
    kwargs.setdefault("journal", RecordingSink())
    return PollingScheduler(gateway, DecisionPipeline(runtime), clock=clock, **kwargs)


def seated(scheduler, player_id="p1", ready=False):
    scheduler.session.attach("G", player_id)
    scheduler.session.player_ready_set = ready
    return scheduler


def call_names(gateway):
    return [call[0] for call in gateway.calls]


class TestJoin:
    def test_first_tick_joins(self, gateway, clock):
        scheduler = make_scheduler(gateway, clock)
        scheduler.tick()
        assert ("join_game", "G", AGENT) in gateway.calls
        assert scheduler.state is SchedulerState.IN_GAME
        assert scheduler.session.game_id == "G"
        assert scheduler.session.player_id == "p1"
        assert scheduler.session.player_ready_set is False
        assert "join" in scheduler._journal.types

    def test_backoff_is_monotonic_and_capped(self, gateway, clock):
        gateway.join_result = NetworkError("connection refused")
        scheduler = make_scheduler(gateway, clock)
        backoffs = []
        for _ in range(5):
            scheduler.tick()
            assert scheduler.state is SchedulerState.BACKOFF
            backoffs.append(scheduler.session.join_backoff_ms)
            clock.advance(scheduler.session.join_backoff_ms)
        assert backoffs == [10000, 20000, 30000, 30000, 30000]
        assert call_names(gateway).count("join_game") == 5

    def test_no_join_attempt_inside_backoff_window(self, gateway, clock):
        gateway.join_result = NetworkError("connection refused")
        scheduler = make_scheduler(gateway, clock)
        scheduler.tick()
        clock.advance(9999)
        scheduler.tick()
        assert call_names(gateway).count("join_game") == 1
        clock.advance(1)
        scheduler.tick()
        assert call_names(gateway).count("join_game") == 2

    def test_success_resets_backoff(self, gateway, clock):
        gateway.join_result = NetworkError("connection refused")
        scheduler = make_scheduler(gateway, clock)
        scheduler.tick()
        gateway.join_result = "p1"
        clock.advance(scheduler.session.join_backoff_ms)
        scheduler.tick()
        assert scheduler.session.in_game
        assert scheduler.session.join_backoff_ms == MIN_JOIN_BACKOFF_MS

    def test_reconnects_to_existing_seat(self, gateway, clock):
        gateway.player_game = PlayerGameStatus(
            in_game=True, game_id="G", players=(PlayerState("p4", AGENT, is_ready=True),)
        )
        scheduler = make_scheduler(gateway, clock)
        scheduler.tick()
        assert "join_game" not in call_names(gateway)
        assert gateway.ready_calls == 0
        assert scheduler.session.player_id == "p4"
        assert scheduler.session.player_ready_set is True
        assert scheduler.state is SchedulerState.IN_GAME

    def test_already_in_game_recovery(self, gateway, clock):
        gateway.join_result = already_in_game("G")
        gateway.player_game_after_reject = PlayerGameStatus(
            in_game=True, game_id="G", players=(PlayerState("p5", AGENT),)
        )
        scheduler = make_scheduler(gateway, clock)
        scheduler.session.join_backoff_ms = 20000
        scheduler.tick()
        assert scheduler.state is SchedulerState.IN_GAME
        assert scheduler.session.game_id == "G"
        assert scheduler.session.player_id == "p5"
        assert scheduler.session.join_backoff_ms == MIN_JOIN_BACKOFF_MS
        assert ("set_player_ready", "p5") in gateway.calls
        assert scheduler.session.player_ready_set is True

    def test_recovery_without_seat_backs_off(self, gateway, clock):
        gateway.join_result = already_in_game("G")
        gateway.player_game_after_reject = PlayerGameStatus(
            in_game=True, game_id="G", players=(PlayerState("p5", "Someone"),)
        )
        scheduler = make_scheduler(gateway, clock)
        scheduler.tick()
        assert scheduler.state is SchedulerState.BACKOFF
        assert not scheduler.session.in_game
        assert scheduler.session.join_backoff_ms == 2 * MIN_JOIN_BACKOFF_MS

    def test_seat_without_id_backs_off(self, gateway, clock):
        gateway.player_game = PlayerGameStatus(
            in_game=True, game_id="G", players=(PlayerState("", AGENT),)
        )
        scheduler = make_scheduler(gateway, clock)
        scheduler.tick()
        assert scheduler.state is SchedulerState.BACKOFF
        assert not scheduler.session.in_game
        assert scheduler.session.join_backoff_ms == 2 * MIN_JOIN_BACKOFF_MS
        assert scheduler._journal.events[-1][1]["kind"] == "state_inconsistency"

    def test_game_full_backs_off_once(self, gateway, clock):
        gateway.join_result = JoinRejected(ErrorKind.GAME_FULL, "Game is full", status=400)
        scheduler = make_scheduler(gateway, clock)
        scheduler.tick()
        assert scheduler.session.join_backoff_ms == 2 * MIN_JOIN_BACKOFF_MS
        assert scheduler._journal.events[-1][1]["kind"] == "game_full"

    def test_no_games_stays_idle(self, gateway, clock):
        gateway.games = []
        scheduler = make_scheduler(gateway, clock)
        scheduler.tick()
        assert scheduler.state is SchedulerState.IDLE
        assert "join_game" not in call_names(gateway)
        assert scheduler.session.join_backoff_ms == MIN_JOIN_BACKOFF_MS

    def test_creates_game_when_allowed(self, gateway, clock):
        gateway.games = []
        scheduler = make_scheduler(gateway, clock, create_game_when_empty=True)
        scheduler.tick()
        assert ("create_game",) in gateway.calls
        assert ("join_game", "current", AGENT) in gateway.calls
        assert scheduler.session.game_id == "current"


class TestPolling:
    def test_ready_is_sent_at_most_once(self, gateway, clock):
        scheduler = seated(make_scheduler(gateway, clock))
        gateway.states = [state_payload(phase="waiting") for _ in range(3)]
        for _ in range(3):
            scheduler.tick()
        assert gateway.ready_calls == 1
        assert ("set_player_ready", "p1") in gateway.calls

    def test_failed_ready_is_retried(self, gateway, clock):
        scheduler = seated(make_scheduler(gateway, clock))
        gateway.states = [state_payload(phase="waiting"), state_payload(phase="waiting")]
        gateway.ready_error = NetworkError("HTTP error", status=500)
        scheduler.tick()
        assert scheduler.session.player_ready_set is False
        gateway.ready_error = None
        scheduler.tick()
        assert gateway.ready_calls == 2
        assert scheduler.session.player_ready_set is True

    def test_fetch_failures_reset_after_budget(self, gateway, clock):
        scheduler = seated(make_scheduler(gateway, clock))
        for _ in range(5):
            scheduler.tick()
        assert scheduler.session.in_game
        assert scheduler.session.reset_failed_count == 5
        scheduler.tick()
        assert not scheduler.session.in_game
        assert scheduler.state is SchedulerState.IDLE
        assert ("reset", {"reason": "fetch_failures", "game_id": "G"}) in scheduler._journal.events

    def test_successful_fetch_clears_failures(self, gateway, clock):
        scheduler = seated(make_scheduler(gateway, clock), ready=True)
        gateway.states = [NetworkError("timeout")] * 4 + [state_payload(phase="waiting")]
        for _ in range(5):
            scheduler.tick()
        assert scheduler.session.reset_failed_count == 0

    def test_wrongly_typed_board_resets_after_budget(self, gateway, clock):
        scheduler = seated(make_scheduler(gateway, clock), ready=True)
        gateway.states = [state_payload(phase="flop", communityCards=5) for _ in range(6)]
        for _ in range(5):
            scheduler.tick()
        assert scheduler.session.reset_failed_count == 5
        assert scheduler.session.in_game
        scheduler.tick()
        assert not scheduler.session.in_game
        assert scheduler.state is SchedulerState.IDLE

    def test_malformed_state_counts_as_failure(self, gateway, clock):
        scheduler = seated(make_scheduler(gateway, clock))
        gateway.states = [ProtocolError("bad payload")]
        scheduler.tick()
        assert scheduler.session.reset_failed_count == 1

    def test_game_over_returns_to_idle(self, gateway, clock):
        scheduler = seated(make_scheduler(gateway, clock))
        gateway.states = [state_payload(phase="showdown", isGameOver=True, winner="Villain")]
        scheduler.tick()
        assert scheduler.state is SchedulerState.IDLE
        assert not scheduler.session.in_game
        assert scheduler.session.player_name == AGENT

    def test_submit_error_does_not_stop_polling(self, gateway, clock):
        scheduler = seated(make_scheduler(gateway, clock, replies=("CALL",)), ready=True)
        gateway.states = [
            state_payload(phase="flop", current_player_index=0, current_bet=10),
            state_payload(phase="flop", current_player_index=1, current_bet=10),
        ]
        gateway.submit_error = NetworkError("HTTP error", status=400)
        scheduler.tick()
        assert scheduler.session.in_game
        assert "submit_failed" in scheduler._journal.types
        scheduler.tick()
        assert call_names(gateway).count("get_game_state") == 2

    def test_all_in_is_resolved_before_submit(self, gateway, clock):
        scheduler = seated(make_scheduler(gateway, clock, replies=("ALL IN",)), ready=True)
        gateway.states = [
            state_payload(
                phase="turn",
                current_player_index=0,
                current_bet=40,
                players=[player_payload("p1", AGENT, chips=500, bet=20), player_payload("p2", "Villain")],
            )
        ]
        scheduler.tick()
        assert gateway.submitted == [PokerDecision.raise_to(520)]


def test_waiting_to_check_scenario(gateway, clock):
    scheduler = make_scheduler(gateway, clock, replies=("FOLD",))
    gateway.states = [
        state_payload(phase="waiting"),
        state_payload(phase="preflop", current_player_index=1),
        state_payload(phase="preflop", current_player_index=0, current_bet=0),
    ]
    for _ in range(4):
        scheduler.tick()

    assert gateway.ready_calls == 1
    assert ("set_player_ready", "p1") in gateway.calls
    assert scheduler.session.player_ready_set is True
    assert gateway.submitted == [PokerDecision.check()]
    assert ("submit_action", "G", "p1", PokerDecision.check()) in gateway.calls
    assert ("get_game_state", "G", "p1") in gateway.calls
    assert len(scheduler.pipeline.runtime.prompts) == 1


class TestStop:
    def test_stop_leaves_once(self, gateway, clock):
        scheduler = seated(make_scheduler(gateway, clock))
        scheduler.stop()
        assert call_names(gateway).count("leave_game") == 1
        assert ("leave_game", "G", "p1") in gateway.calls
        assert not scheduler.session.in_game
        scheduler.stop()
        assert call_names(gateway).count("leave_game") == 1

    def test_stop_tolerates_leave_error(self, gateway, clock):
        gateway.leave_error = NetworkError("connection reset")
        scheduler = seated(make_scheduler(gateway, clock))
        scheduler.stop()
        assert scheduler.state is SchedulerState.IDLE
        assert not scheduler.session.in_game

    def test_stop_without_game_does_not_leave(self, gateway, clock):
        scheduler = make_scheduler(gateway, clock)
        scheduler.stop()
        assert "leave_game" not in call_names(gateway)

    def test_background_thread_stops(self, clock):
        gateway = FakeGateway()
        scheduler = make_scheduler(gateway, clock, interval_s=0.01)
        scheduler.start()
        assert scheduler.running
        with pytest.raises(RuntimeError):
            scheduler.start()
        deadline = time.monotonic() + 2.0
        while "join_game" not in call_names(gateway) and time.monotonic() < deadline:
            time.sleep(0.01)
        scheduler.stop()
        assert not scheduler.running
        assert not scheduler.session.in_game


def test_default_games_list_is_used(gateway, clock):
    gateway.games = [AvailableGame("T2", "Second table"), AvailableGame("T3", "Third table")]
    scheduler = make_scheduler(gateway, clock)
    scheduler.tick()
    assert scheduler.session.game_id == "T2"
