"""
Fixed Opening Book

The engine picks ONE line at random the first time it is asked to move in
a game and plays that line's two moves as its first two replies,
whatever the opponent does. From the third reply on the book stays silent
and the policy network takes over.

The book is not position-aware. It never checks that its moves are legal;
the orchestrator must validate a book move and fall back to the network
when it is not.

Lines are written from Black's side. When the engine plays White the
moves are mirrored (c7c5 becomes c2c4).
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import chess
import numpy as np

from policy_engine.policy.move_index import mirror_move

logger = logging.getLogger(__name__)

BOOK_REPLIES = 2


@dataclass(frozen=True)
class OpeningLine:
    """Two forced replies and a display name."""

    name: str
    first: str  # UCI, Black's first reply
    second: str  # UCI, Black's second reply
    description: str = ""

    @property
    def moves(self) -> Tuple[str, str]:
        return self.first, self.second


FIXED_OPENINGS: Tuple[OpeningLine, ...] = (
    OpeningLine("Sicilian Defense", "c7c5", "d7d6", "Solid and flexible Sicilian setup"),
    OpeningLine("French Defense", "e7e6", "d7d5", "Solid pawn chain defense"),
    OpeningLine("Caro-Kann Defense", "c7c6", "d7d5", "Very solid and reliable"),
    OpeningLine("Pirc Defense", "d7d6", "g7g6", "Flexible fianchetto setup"),
    OpeningLine("Modern Defense", "g7g6", "d7d6", "Hypermodern fianchetto"),
    OpeningLine("Alekhine Defense", "g8f6", "d7d6", "Provocative knight move"),
    OpeningLine("Scandinavian Defense", "d7d5", "d8d6", "Immediate center challenge"),
    OpeningLine("Nimzowitsch Defense", "b8c6", "d7d6", "Unusual but playable"),
    OpeningLine("King's Pawn", "e7e5", "g8f6", "Classical open game"),
    OpeningLine("King's Indian Setup", "g7g6", "f8g7", "Fianchetto with bishop development"),
)


def get_override_move(
    reply_count: int,
    line: Optional[OpeningLine],
    color: chess.Color = chess.BLACK,
) -> Optional[chess.Move]:
    """
    Book move for the engine's next reply.

    Args:
        reply_count: Number of moves the engine has already played this game
        line: Line chosen for this game, or None if none was chosen
        color: Side the engine plays

    Returns:
        The line's first or second move verbatim (mirrored for White), or
        None once both have been played
    """
    if reply_count < 0:
        raise ValueError(f"reply_count must be non-negative, got {reply_count}")

    if line is None or reply_count >= BOOK_REPLIES:
        return None

    move = chess.Move.from_uci(line.moves[reply_count])
    return mirror_move(move) if color == chess.WHITE else move


class OpeningBook:
    """
    Per-game opening book.

    Attributes:
        color: Side the engine plays
        catalog: Lines to choose from
        line: Line chosen for the current game (None until first consulted)
    """

    def __init__(
        self,
        color: chess.Color = chess.BLACK,
        catalog: Sequence[OpeningLine] = FIXED_OPENINGS,
        rng: Optional[np.random.Generator] = None,
    ):
        if not catalog:
            raise ValueError("Opening catalog is empty")

        self.color = color
        self.catalog = tuple(catalog)
        self.rng = rng if rng is not None else np.random.default_rng()
        self.line: Optional[OpeningLine] = None

    def choose_line(self) -> OpeningLine:
        """Pick the game's line uniformly at random, once."""
        if self.line is None:
            self.line = self.catalog[int(self.rng.integers(len(self.catalog)))]
            logger.info(f"Opening book selected: {self.line.name}")
        return self.line

    def override_move(self, reply_count: int) -> Optional[chess.Move]:
        """Book move for the given reply, choosing the line on first use."""
        if reply_count >= BOOK_REPLIES:
            return None

        line = self.choose_line()
        move = get_override_move(reply_count, line, self.color)
        logger.info(f"{line.name}: book move {reply_count + 1}/{BOOK_REPLIES} {move}")
        return move

    def reset(self) -> None:
        """Forget the chosen line; the next game picks a new one."""
        self.line = None
