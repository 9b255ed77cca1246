"""
Opening Module

Fixed two-move opening book used for variety at the start of a game.
"""

from policy_engine.opening.book import (
    BOOK_REPLIES,
    FIXED_OPENINGS,
    OpeningBook,
    OpeningLine,
    get_override_move,
)

__all__ = [
    'BOOK_REPLIES',
    'FIXED_OPENINGS',
    'OpeningBook',
    'OpeningLine',
    'get_override_move',
]
