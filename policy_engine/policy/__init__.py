"""
Policy Module

Maps moves to policy slots and policy logits back to one legal move.

Key Components:
    - MoveIndexTable: immutable UCI <-> policy index table
    - PolicySelector: legal-subset softmax, ranking and skill exploration

Data Flow:
    policy logits + legal moves -> PolicySelector.select() -> chess.Move
"""

from policy_engine.policy.move_index import (
    REFERENCE_POLICY_SIZE,
    MoveIndexTable,
    build_reference_moves,
    mirror_move,
)
from policy_engine.policy.selector import (
    SENTINEL_LOGIT,
    PolicySelector,
    ScoredMove,
    softmax,
)

__all__ = [
    'REFERENCE_POLICY_SIZE',
    'MoveIndexTable',
    'build_reference_moves',
    'mirror_move',
    'SENTINEL_LOGIT',
    'PolicySelector',
    'ScoredMove',
    'softmax',
]
