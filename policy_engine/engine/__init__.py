"""
Engine Module

Ties the codec, policy network and selector together into engine turns.

Key Components:
    - EngineConfig: ratings, selection and model settings
    - EngineHandle: shared, read-only model + move table
    - MoveEngine: per-turn state machine with book, network and fallback paths
    - GameSession: one game, its book, pending-move guard and result

Data Flow:
    GameSession.play_engine_move()
        -> MoveEngine.choose_move()  (book | encode -> infer -> select | random)
        -> MoveEngine.apply_move()   (re-validated push)
"""

from policy_engine.engine.config import EngineConfig
from policy_engine.engine.handle import EngineHandle
from policy_engine.engine.session import (
    EngineState,
    GameSession,
    MatchOutcome,
    MatchResult,
    MoveDecision,
    MoveEngine,
    MoveSource,
)

__all__ = [
    'EngineConfig',
    'EngineHandle',
    'EngineState',
    'GameSession',
    'MatchOutcome',
    'MatchResult',
    'MoveDecision',
    'MoveEngine',
    'MoveSource',
]
