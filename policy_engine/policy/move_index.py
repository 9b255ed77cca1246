"""
Move Index Table

Static, bidirectional mapping between UCI move strings and slots of the
policy output vector. The table is built once (from a JSON file shipped
with the model, or from the reference catalog) and never mutated.

Reference Catalog (1880 slots):
    1. For every square a1..h8 (rank-major), every move a lone white queen
       could make on an empty board, then every move a lone white knight
       could make. Castling (e1g1) and rank 7 -> rank 8 pawn pushes
       without a suffix are covered by the queen rays.
    2. Every rank 7 -> rank 8 pawn promotion (straight and both captures)
       to q, r, b and n.

All entries are written from White's perspective. Positions with Black to
move are mirrored before encoding, so their moves must be mirrored before
lookup and mirrored back after reverse lookup.
"""

import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Union

import chess

logger = logging.getLogger(__name__)

REFERENCE_POLICY_SIZE = 1880
PROMOTION_PIECES = "qrbn"


def mirror_move(move: chess.Move) -> chess.Move:
    """Reflect both squares of a move across the board's horizontal axis."""
    return chess.Move(
        chess.square_mirror(move.from_square),
        chess.square_mirror(move.to_square),
        promotion=move.promotion,
    )


def build_reference_moves() -> List[str]:
    """
    Build the reference move catalog in slot order.

    Returns:
        List of UCI strings, position in the list = policy index
    """
    moves: List[str] = []

    for square in chess.SQUARES:
        for piece_type in (chess.QUEEN, chess.KNIGHT):
            board = chess.Board(None)
            board.set_piece_at(square, chess.Piece(piece_type, chess.WHITE))
            moves.extend(move.uci() for move in board.legal_moves)

    for file in range(8):
        from_square = chess.square(file, 6)
        for to_file in (file - 1, file, file + 1):
            if not 0 <= to_file < 8:
                continue
            to_square = chess.square(to_file, 7)
            for piece in PROMOTION_PIECES:
                moves.append(
                    chess.square_name(from_square) + chess.square_name(to_square) + piece
                )

    return moves


class MoveIndexTable:
    """
    Immutable UCI <-> policy index table.

    Attributes:
        move_to_index: Read-only view of the UCI -> index mapping

    Methods:
        to_index(move, mirrored): Slot of a move, or None if absent
        from_index(index, mirrored): Move stored in a slot
    """

    def __init__(self, move_to_index: Mapping[str, int]):
        """
        Build a table from a UCI -> index mapping.

        Args:
            move_to_index: Mapping whose values are exactly 0..len-1

        Raises:
            ValueError: If the mapping is empty, holds invalid UCI strings,
                or its indices are not a permutation of 0..len-1
        """
        if not move_to_index:
            raise ValueError("Move index table is empty")

        size = len(move_to_index)
        index_to_move: List[Optional[str]] = [None] * size

        for uci, index in move_to_index.items():
            try:
                chess.Move.from_uci(uci)
            except ValueError as e:
                raise ValueError(f"Invalid move in index table: {uci!r}") from e

            if not isinstance(index, int) or not 0 <= index < size:
                raise ValueError(f"Index {index!r} for {uci} outside [0, {size})")

            if index_to_move[index] is not None:
                raise ValueError(
                    f"Index {index} assigned to both {index_to_move[index]} and {uci}"
                )
            index_to_move[index] = uci

        self._move_to_index: Dict[str, int] = dict(move_to_index)
        self._index_to_move = tuple(index_to_move)
        self.move_to_index = MappingProxyType(self._move_to_index)

    @classmethod
    def reference(cls) -> "MoveIndexTable":
        """Build the 1880-slot reference catalog."""
        moves = build_reference_moves()
        return cls({uci: i for i, uci in enumerate(moves)})

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "MoveIndexTable":
        """
        Load a table from a JSON object mapping UCI strings to indices.

        Raises:
            ValueError: If the file does not hold a valid table
        """
        path = Path(path)
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError(f"{path} must hold a JSON object, got {type(data).__name__}")

        table = cls(data)
        logger.info(f"Loaded move index table from {path} ({len(table)} moves)")
        return table

    def to_json(self, path: Union[str, Path]) -> None:
        """Write the table as a JSON object in slot order."""
        ordered = {uci: i for i, uci in enumerate(self._index_to_move)}
        with open(path, "w", encoding="utf-8") as f:
            json.dump(ordered, f, indent=0)

    def __len__(self) -> int:
        return len(self._index_to_move)

    def __contains__(self, uci: object) -> bool:
        return uci in self._move_to_index

    def key_for(self, move: chess.Move, mirrored: bool = False) -> str:
        """UCI key used to look up a move, after mirroring if requested."""
        return (mirror_move(move) if mirrored else move).uci()

    def to_index(self, move: chess.Move, mirrored: bool = False) -> Optional[int]:
        """
        Policy slot of a move.

        Args:
            move: Move in real board coordinates
            mirrored: True if the position was mirrored for encoding

        Returns:
            Index in [0, len(self)), or None if the move has no slot
        """
        return self._move_to_index.get(self.key_for(move, mirrored))

    def from_index(self, index: int, mirrored: bool = False) -> chess.Move:
        """
        Move stored in a policy slot, in real board coordinates.

        Args:
            index: Slot in [0, len(self))
            mirrored: True if the position was mirrored for encoding

        Raises:
            IndexError: If index is out of range
        """
        if not 0 <= index < len(self._index_to_move):
            raise IndexError(f"Policy index {index} outside [0, {len(self)})")
        move = chess.Move.from_uci(self._index_to_move[index])
        return mirror_move(move) if mirrored else move

    def __repr__(self) -> str:
        return f"MoveIndexTable(size={len(self)})"
