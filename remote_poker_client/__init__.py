"""
Remote poker client package.

Connects a language-model agent to a remote Texas Hold'em server. Key
modules:

- gateway: remote game server interface and its HTTP implementation.
- reconciler: merges polled state into the local session, detects turns.
- scheduler: poll loop with join backoff and failure-driven resets.
- parser: turns free-form model replies into typed decisions.
- overrides: heuristic corrections for FOLD decisions.
- cli: command line entry point.
"""

from .decision import DecisionPipeline
from .gateway import HttpGameGateway, RemoteGameGateway
from .overrides import DecisionOverrideEngine
from .parser import ResponseParser
from .reconciler import GameStateReconciler, OutcomeKind, ReconcileOutcome
from .scheduler import PollingScheduler, SchedulerState
from .schemas import GameState, PlayerAction, PlayerState, PokerDecision
from .session import LocalSessionState

__all__ = [
    "DecisionOverrideEngine",
    "DecisionPipeline",
    "GameState",
    "GameStateReconciler",
    "HttpGameGateway",
    "LocalSessionState",
    "OutcomeKind",
    "PlayerAction",
    "PlayerState",
    "PokerDecision",
    "PollingScheduler",
    "ReconcileOutcome",
    "RemoteGameGateway",
    "ResponseParser",
    "SchedulerState",
]
