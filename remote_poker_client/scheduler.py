"""
Polling scheduler: drives join, reconciliation and action submission.

A single worker runs ``tick()`` to completion, then waits on a stop event for
the poll interval, so ticks never overlap and session state is only touched
from inside a tick. All retry and backoff policy lives here; the gateway
never retries on its own.
"""

from __future__ import annotations

import enum
import logging
import threading
import time
from typing import Callable, Optional

from .decision import DecisionPipeline
from .errors import FETCH_ERRORS, ErrorKind, JoinRejected, PokerClientError, StateInconsistency
from .gateway import RemoteGameGateway
from .logging_utils import EventSink, NullEventSink
from .reconciler import GameStateReconciler, OutcomeKind, ReconcileOutcome
from .schemas import PlayerGameStatus
from .session import LocalSessionState

logger = logging.getLogger(__name__)


class SchedulerState(str, enum.Enum):
    IDLE = "idle"
    ATTEMPTING_JOIN = "attempting_join"
    IN_GAME = "in_game"
    BACKOFF = "backoff"


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class PollingScheduler:
    def __init__(
        self,
        gateway: RemoteGameGateway,
        pipeline: DecisionPipeline,
        *,
        session: Optional[LocalSessionState] = None,
        interval_s: float = 5.0,
        create_game_when_empty: bool = False,
        clock: Optional[Callable[[], float]] = None,
        journal: Optional[EventSink] = None,
    ) -> None:
        self.gateway = gateway
        self.pipeline = pipeline
        self.session = session or LocalSessionState(player_name=pipeline.runtime.agent_name)
        self.reconciler = GameStateReconciler(self.session)
        self.interval_s = interval_s
        self.create_game_when_empty = create_game_when_empty
        self.state = SchedulerState.IDLE
        self._clock = clock or _monotonic_ms
        self._journal = journal or NullEventSink()
        self._stop_event = threading.Event()
        self._tick_lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None

    # --- lifecycle -------------------------------------------------------

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            raise RuntimeError("scheduler is already running")
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="poker-poll", daemon=True)
        self._thread.start()
        logger.info("[Scheduler] started for %s, polling every %.1fs", self.session.player_name, self.interval_s)

    def run_forever(self) -> None:
        """Poll on the calling thread until ``request_stop``/``stop`` is called."""
        self._stop_event.clear()
        logger.info("[Scheduler] polling every %.1fs as %s", self.interval_s, self.session.player_name)
        self._run()

    def request_stop(self) -> None:
        self._stop_event.set()

    def stop(self) -> None:
        """
        Cancel polling, wait for an in-flight tick, then make one best-effort
        attempt to leave the current game.
        """
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()
        self._thread = None

        with self._tick_lock:
            session = self.session
            if session.game_id and session.player_id:
                try:
                    self.gateway.leave_game(session.game_id, session.player_id)
                    self._journal.log("leave", {"game_id": session.game_id, "player_id": session.player_id})
                except Exception as exc:
                    logger.error("[Scheduler] error leaving game %s: %s", session.game_id, exc)
                session.reset()
            self.state = SchedulerState.IDLE
        logger.info("[Scheduler] stopped")

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval_s):
            self.tick()

    # --- tick ------------------------------------------------------------

    def tick(self) -> None:
        with self._tick_lock:
            try:
                if self.session.in_game:
                    self._poll_game()
                else:
                    self._maybe_join()
            except Exception as exc:
                logger.exception("[Scheduler] error in poll tick: %s", exc)

    def _maybe_join(self) -> None:
        session = self.session
        now = self._clock()
        if not session.join_due(now):
            logger.debug(
                "[Scheduler] join backoff active (%dms), skipping",
                session.join_backoff_ms,
            )
            return
        session.last_join_attempt_ms = now
        self.state = SchedulerState.ATTEMPTING_JOIN
        try:
            joined = self._join_or_discover()
        except PokerClientError as exc:
            self._join_failed(exc)
            return
        self.state = SchedulerState.IN_GAME if joined else SchedulerState.IDLE

    def _join_or_discover(self) -> bool:
        session = self.session
        status = self.gateway.check_player_game()
        if status.in_game and status.game_id:
            logger.info("[Scheduler] already seated in game %s, reconnecting", status.game_id)
            self._adopt_existing_game(status)
            return True

        games = self.gateway.list_available_games()
        if games:
            game_id = games[0].id
        elif self.create_game_when_empty:
            game_id = self.gateway.create_game()
            logger.info("[Scheduler] no open games, created %s", game_id)
        else:
            logger.info("[Scheduler] no available games to join")
            return False

        try:
            player_id = self.gateway.join_game(game_id, session.player_name)
        except JoinRejected as exc:
            if exc.kind is ErrorKind.ALREADY_IN_GAME and exc.game_id:
                logger.info("[Scheduler] player already in game %s, recovering seat", exc.game_id)
                self._recover_existing_game()
                return True
            raise

        session.attach(game_id, player_id)
        session.register_join_success()
        logger.info("[Scheduler] joined game %s as %s (id %s)", game_id, session.player_name, player_id)
        self._journal.log("join", {"game_id": game_id, "player_id": player_id, "player_name": session.player_name})
        return True

    def _recover_existing_game(self) -> None:
        status = self.gateway.check_player_game()
        if not (status.in_game and status.game_id):
            raise StateInconsistency("server rejected the join as already seated but reports no game")
        self._adopt_existing_game(status)

    def _adopt_existing_game(self, status: PlayerGameStatus) -> None:
        session = self.session
        player = status.find_player_by_name(session.player_name)
        if player is None:
            raise StateInconsistency(f"{session.player_name} is not seated in game {status.game_id}")
        if not player.id:
            raise StateInconsistency(f"seat of {session.player_name} in game {status.game_id} has no player id")
        session.attach(status.game_id, player.id)
        session.register_join_success()
        self._journal.log("reconnect", {"game_id": status.game_id, "player_id": player.id})

        if player.is_ready:
            logger.info("[Scheduler] player already ready according to server")
            session.player_ready_set = True
        elif not session.player_ready_set:
            try:
                self.gateway.set_player_ready(player.id)
                session.player_ready_set = True
                logger.info("[Scheduler] set player ready after reconnecting")
            except PokerClientError as exc:
                logger.error("[Scheduler] error setting player ready: %s", exc)

    def _join_failed(self, exc: PokerClientError) -> None:
        session = self.session
        session.reset()
        session.register_join_failure()
        self.state = SchedulerState.BACKOFF
        logger.error("[Scheduler] failed to join game (%s), next attempt in %dms", exc, session.join_backoff_ms)
        self._journal.log("join_failed", {"kind": exc.kind.value, "error": exc.message, "backoff_ms": session.join_backoff_ms})

    def _poll_game(self) -> None:
        session = self.session
        try:
            state = self.gateway.get_game_state(session.game_id, session.player_id)
        except FETCH_ERRORS as exc:
            exhausted = session.record_fetch_failure()
            logger.error("[Scheduler] error getting game state (%d in a row): %s", session.reset_failed_count, exc)
            if exhausted:
                logger.info("[Scheduler] too many failures, resetting connection")
                self._journal.log("reset", {"reason": "fetch_failures", "game_id": session.game_id})
                session.reset()
                self.state = SchedulerState.IDLE
            return

        session.record_fetch_success()
        outcome = self.reconciler.reconcile(state)
        self._handle_outcome(outcome)

    def _handle_outcome(self, outcome: ReconcileOutcome) -> None:
        session = self.session
        if outcome.resets_session:
            self.state = SchedulerState.IDLE
            self._journal.log("reset", {"reason": outcome.kind.value, "winner": outcome.state.winner if outcome.state else None})
            return

        if outcome.kind is OutcomeKind.READY_REQUIRED:
            try:
                self.gateway.set_player_ready(session.player_id)
            except PokerClientError as exc:
                logger.error("[Scheduler] error setting player ready: %s", exc)
                return
            self.reconciler.mark_ready()
            logger.info("[Scheduler] player marked ready")
            self._journal.log("ready", {"game_id": session.game_id, "player_id": session.player_id})
            return

        if outcome.kind is OutcomeKind.ACTION_REQUIRED:
            self._act(outcome)

    def _act(self, outcome: ReconcileOutcome) -> None:
        session = self.session
        state, player = outcome.state, outcome.player
        decision = self.pipeline.decide(state, player).resolve(state, player)
        logger.info("[Scheduler] decision: %s", decision.describe())
        if not (session.game_id and session.player_id):
            logger.error("[Scheduler] cannot submit action: game id or player id missing")
            return
        try:
            self.gateway.submit_action(session.game_id, session.player_id, decision)
        except PokerClientError as exc:
            logger.error("[Scheduler] error submitting action: %s", exc)
            self._journal.log("submit_failed", {"decision": decision.describe(), "error": str(exc)})
            return
        self._journal.log(
            "action",
            {"game_id": session.game_id, "phase": state.phase, "decision": decision.describe()},
        )
