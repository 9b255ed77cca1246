"""
Position Encoding for Policy Network Input

This module converts python-chess Board objects into the plane tensor the
policy network was trained on, always from the network's trained
perspective (White to move).

18-Channel Representation:
    0: White Pawns      6: Black Pawns
    1: White Knights    7: Black Knights
    2: White Bishops    8: Black Bishops
    3: White Rooks      9: Black Rooks
    4: White Queens    10: Black Queens
    5: White Kings     11: Black Kings
    12: Side to move (all 1s if White, all 0s if Black)
    13: White kingside castling rights (all 1s if available)
    14: White queenside castling rights
    15: Black kingside castling rights
    16: Black queenside castling rights
    17: En passant target square (1 at target square, 0 elsewhere)

Castling planes describe the board being encoded, by absolute color. When
the position is mirrored for Black, they describe the mirrored board.

Board Orientation:
    - Row 0 = Rank 1 (White's back rank)
    - Row 7 = Rank 8 (Black's back rank)
    - Column 0 = A-file
    - Column 7 = H-file
    so that tensor[c].flatten()[square] addresses a python-chess square.

Perspective:
    If Black is to move, the board is mirrored first (ranks reversed, colors
    swapped, side to move swapped, castling pairs swapped, en passant rank
    reflected). Moves scored against that encoding must be mirrored the
    same way (see policy.move_index).
"""

import logging
from typing import Tuple

import chess
import numpy as np

from policy_engine.errors import EncodingDefect

logger = logging.getLogger(__name__)

NUM_CHANNELS = 18
TURN_CHANNEL = 12
CASTLING_CHANNELS = (13, 14, 15, 16)
EN_PASSANT_CHANNEL = 17

# Piece type to channel index mapping
# White pieces: channels 0-5
# Black pieces: channels 6-11
PIECE_TO_CHANNEL = {
    (chess.PAWN, chess.WHITE): 0,
    (chess.KNIGHT, chess.WHITE): 1,
    (chess.BISHOP, chess.WHITE): 2,
    (chess.ROOK, chess.WHITE): 3,
    (chess.QUEEN, chess.WHITE): 4,
    (chess.KING, chess.WHITE): 5,
    (chess.PAWN, chess.BLACK): 6,
    (chess.KNIGHT, chess.BLACK): 7,
    (chess.BISHOP, chess.BLACK): 8,
    (chess.ROOK, chess.BLACK): 9,
    (chess.QUEEN, chess.BLACK): 10,
    (chess.KING, chess.BLACK): 11,
}

# Structural defects that make a position unencodable. Check-related
# status flags are left to the rules collaborator.
STRUCTURAL_DEFECTS = (
    chess.STATUS_NO_WHITE_KING
    | chess.STATUS_NO_BLACK_KING
    | chess.STATUS_TOO_MANY_KINGS
    | chess.STATUS_TOO_MANY_WHITE_PAWNS
    | chess.STATUS_TOO_MANY_BLACK_PAWNS
    | chess.STATUS_PAWNS_ON_BACKRANK
    | chess.STATUS_TOO_MANY_WHITE_PIECES
    | chess.STATUS_TOO_MANY_BLACK_PIECES
)


def square_to_coordinates(square: int) -> Tuple[int, int]:
    """
    Convert python-chess square index to (row, column) coordinates.

    Args:
        square: Square index (0-63) where 0=A1, 63=H8

    Returns:
        Tuple of (row, col) where:
            - row 0 = rank 1 (index 0-7)
            - row 7 = rank 8 (index 56-63)
            - col 0 = A-file
            - col 7 = H-file
    """
    return chess.square_rank(square), chess.square_file(square)


def coordinates_to_square(row: int, col: int) -> int:
    """
    Convert (row, column) coordinates to python-chess square index.

    Args:
        row: Row index (0-7) where 0 is rank 1
        col: Column index (0-7) where 0 is A-file

    Returns:
        Square index (0-63)
    """
    return chess.square(col, row)


def validate_position(board: chess.Board) -> None:
    """
    Reject positions that cannot come from a legal game.

    Args:
        board: python-chess Board object

    Raises:
        EncodingDefect: If kings are missing or duplicated, a side has too
            many pieces or pawns, or pawns stand on a back rank
    """
    status = board.status() & STRUCTURAL_DEFECTS
    if status:
        raise EncodingDefect(
            f"Cannot encode malformed position {board.fen()} (status flags {status:#x})"
        )


def mirror_board(board: chess.Board) -> chess.Board:
    """
    Mirror a position so the other side becomes White.

    Ranks are reversed, piece colors swapped, side to move swapped,
    castling rights swapped between colors, and the en passant square
    reflected (rank' = 9 - rank, same file). Mirroring twice gives back the
    original position. The move stack is not carried over.

    Args:
        board: python-chess Board object

    Returns:
        New mirrored Board; the input is not modified
    """
    return board.mirror()


def encode_board(board: chess.Board) -> np.ndarray:
    """
    Fill the 18 planes for a board exactly as given (no mirroring).

    Args:
        board: python-chess Board object

    Returns:
        numpy array of shape (18, 8, 8) with dtype float32

    Raises:
        EncodingDefect: If the position is structurally invalid
    """
    validate_position(board)

    planes = np.zeros((NUM_CHANNELS, 8, 8), dtype=np.float32)

    for square, piece in board.piece_map().items():
        channel = PIECE_TO_CHANNEL[(piece.piece_type, piece.color)]
        row, col = square_to_coordinates(square)
        planes[channel, row, col] = 1.0

    if board.turn == chess.WHITE:
        planes[TURN_CHANNEL, :, :] = 1.0

    rights = (
        board.has_kingside_castling_rights(chess.WHITE),
        board.has_queenside_castling_rights(chess.WHITE),
        board.has_kingside_castling_rights(chess.BLACK),
        board.has_queenside_castling_rights(chess.BLACK),
    )
    for channel, available in zip(CASTLING_CHANNELS, rights):
        if available:
            planes[channel, :, :] = 1.0

    if board.ep_square is not None:
        row, col = square_to_coordinates(board.ep_square)
        planes[EN_PASSANT_CHANNEL, row, col] = 1.0

    return planes


def encode_position(board: chess.Board) -> Tuple[np.ndarray, bool]:
    """
    Encode a position from the network's trained perspective.

    Args:
        board: python-chess Board object (either side to move)

    Returns:
        Tuple of (planes, mirrored):
            - planes: (18, 8, 8) float32 array, always White to move
            - mirrored: True if the board was mirrored because Black is to
              move; the caller must mirror moves before index lookup

    Raises:
        EncodingDefect: If the position is structurally invalid
    """
    mirrored = board.turn == chess.BLACK
    target = mirror_board(board) if mirrored else board
    planes = encode_board(target)
    logger.debug(f"Encoded {board.fen()} (mirrored={mirrored})")
    return planes, mirrored


def planes_to_board(planes: np.ndarray) -> chess.Board:
    """
    Rebuild a Board from an 18-channel tensor.

    This is the inverse of encode_board() for everything the planes carry
    (pieces, side to move, castling rights, en passant square). Clocks are
    not encoded and come back at their defaults.

    Args:
        planes: numpy array of shape (18, 8, 8)

    Returns:
        python-chess Board object

    Raises:
        ValueError: If planes have invalid shape or multiple pieces on one square
    """
    if planes.shape != (NUM_CHANNELS, 8, 8):
        raise ValueError(
            f"Invalid tensor shape: {planes.shape}. Expected ({NUM_CHANNELS}, 8, 8)"
        )

    board = chess.Board(fen=None)
    channel_to_piece = {v: k for k, v in PIECE_TO_CHANNEL.items()}

    for channel in range(12):
        piece_type, color = channel_to_piece[channel]

        for row, col in np.argwhere(planes[channel] > 0.5):
            square = coordinates_to_square(int(row), int(col))

            if board.piece_at(square) is not None:
                raise ValueError(
                    f"Multiple pieces on square {chess.square_name(square)}"
                )

            board.set_piece_at(square, chess.Piece(piece_type, color))

    board.turn = bool(planes[TURN_CHANNEL, 0, 0] > 0.5)

    castling = ""
    for channel, symbol in zip(CASTLING_CHANNELS, "KQkq"):
        if planes[channel, 0, 0] > 0.5:
            castling += symbol
    board.set_castling_fen(castling or "-")

    ep = np.argwhere(planes[EN_PASSANT_CHANNEL] > 0.5)
    if len(ep):
        row, col = ep[0]
        board.ep_square = coordinates_to_square(int(row), int(col))

    return board
