"""
Board Representation Module

This module converts chess positions into the plane tensors consumed by the
policy network.

Key Components:
    - encode_position: mirrors Black-to-move positions, then fills 18 planes
    - encode_board: fills 18 planes for a board as given
    - mirror_board: perspective mirroring (an involution)
    - validate_position: rejects structurally broken positions

Data Flow:
    python-chess Board -> encode_position() -> (18, 8, 8) numpy array -> policy network
"""

from policy_engine.board.representation import (
    NUM_CHANNELS,
    encode_board,
    encode_position,
    mirror_board,
    planes_to_board,
    validate_position,
)

__all__ = [
    'NUM_CHANNELS',
    'encode_board',
    'encode_position',
    'mirror_board',
    'planes_to_board',
    'validate_position',
]
