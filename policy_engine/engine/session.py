"""
Move Engine and Game Session

MoveEngine runs one engine turn:

    IDLE -> CHECKING_BOOK -> APPLY_MOVE -> IDLE                     (book hit)
    IDLE -> CHECKING_BOOK -> ENCODING -> INVOKING -> SELECTING
         -> APPLY_MOVE -> IDLE                                      (network)
    ENCODING / INVOKING / SELECTING -> FALLBACK_RANDOM -> APPLY_MOVE (failure)

Failures while encoding, invoking or selecting fall back to a uniformly
random legal move so the game never stalls. An EncodingDefect is the
exception: it means the position itself is broken and is re-raised. A book
move that is not legal is skipped and the network path runs instead.
APPLY_MOVE re-validates the move against the rules before touching the
board and raises IllegalSelectionError rather than pushing an illegal move.

GameSession owns one game: its board, opening book, in-flight flag and
generation counter. Only one engine move may be pending per session.
reset() and load_position() start a new generation; a selection that
finishes after that is discarded instead of being applied to the new board.

Threading:
    - Caller thread: claims the in-flight flag, snapshots the board
    - Worker thread (start_engine_move): runs inference on the snapshot
    - Communication: lock-guarded flag and generation counter
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Union

import chess
import numpy as np

from policy_engine.board.representation import encode_position
from policy_engine.engine.config import EngineConfig
from policy_engine.engine.handle import EngineHandle
from policy_engine.errors import (
    EncodingDefect,
    EngineBusyError,
    EngineError,
    IllegalMoveError,
    IllegalSelectionError,
)
from policy_engine.opening.book import BOOK_REPLIES, OpeningBook
from policy_engine.policy.selector import PolicySelector

logger = logging.getLogger(__name__)

# Inference failures in one game before the player is told about it
NOTICE_THRESHOLD = 2
ENGINE_UNAVAILABLE_NOTICE = "The engine's neural network is unavailable; it is playing random moves."


class EngineState(Enum):
    IDLE = "idle"
    CHECKING_BOOK = "checking_book"
    ENCODING = "encoding"
    INVOKING = "invoking"
    SELECTING = "selecting"
    FALLBACK_RANDOM = "fallback_random"
    APPLY_MOVE = "apply_move"


class MoveSource(Enum):
    BOOK = "book"
    POLICY = "policy"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class MoveDecision:
    """A chosen move and where it came from."""

    move: chess.Move
    source: MoveSource
    probability: Optional[float] = None  # policy moves only
    error: Optional[str] = None  # why the fallback was used


class MatchOutcome(Enum):
    WIN = "win"
    LOSS = "loss"
    DRAW = "draw"


@dataclass(frozen=True)
class MatchResult:
    """Finished game, from the human player's side."""

    outcome: MatchOutcome
    termination: str
    engine_elo: int
    plies: int


class MoveEngine:
    """
    Per-game turn orchestrator.

    Attributes:
        handle: Shared EngineHandle
        config: Engine settings
        selector: PolicySelector bound to the handle's move table
        state: Current EngineState
        history: States entered during the last turn
    """

    def __init__(
        self,
        handle: EngineHandle,
        config: Optional[EngineConfig] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.handle = handle
        self.config = config if config is not None else EngineConfig()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.random_seed)
        self.selector = PolicySelector(handle.move_table, top_k=self.config.top_k, rng=self.rng)
        self.state = EngineState.IDLE
        self.history: List[EngineState] = []

    def _enter(self, state: EngineState) -> None:
        self.state = state
        self.history.append(state)

    def choose_move(
        self,
        board: chess.Board,
        reply_count: int = 0,
        book: Optional[OpeningBook] = None,
    ) -> Optional[MoveDecision]:
        """
        Choose the engine's move without changing the board.

        Args:
            board: Position with the engine to move
            reply_count: Moves the engine has already played this game
            book: Opening book for this game, or None to skip it

        Returns:
            MoveDecision, or None if the position has no legal moves

        Raises:
            EncodingDefect: If the position is structurally broken
        """
        self.history = []
        legal_moves = list(board.legal_moves)
        if not legal_moves:
            return None

        self._enter(EngineState.CHECKING_BOOK)
        if book is not None:
            book_move = book.override_move(reply_count)
            if book_move is not None:
                if book_move in legal_moves:
                    return MoveDecision(book_move, MoveSource.BOOK)
                logger.warning(
                    f"Book move {book_move.uci()} is illegal in {board.fen()}, using the network"
                )

        try:
            self._enter(EngineState.ENCODING)
            planes, mirrored = encode_position(board)

            self._enter(EngineState.INVOKING)
            logits = self.handle.infer(
                planes, self.config.engine_category, self.config.opponent_category
            )

            self._enter(EngineState.SELECTING)
            scored = self.selector.select_scored(
                legal_moves, logits, mirrored, self.config.effective_epsilon
            )
        except EncodingDefect:
            self._enter(EngineState.IDLE)
            raise
        except Exception as e:
            self._enter(EngineState.FALLBACK_RANDOM)
            move = legal_moves[int(self.rng.integers(len(legal_moves)))]
            logger.warning(f"Move selection failed ({e}), playing random move {move.uci()}")
            return MoveDecision(move, MoveSource.FALLBACK, error=str(e))

        logger.info(
            f"Policy move {scored.move.uci()} ({scored.probability:.2%}) at "
            f"{self.config.engine_elo} Elo, {len(legal_moves)} legal, mirrored={mirrored}"
        )
        return MoveDecision(scored.move, MoveSource.POLICY, probability=scored.probability)

    def apply_move(self, board: chess.Board, decision: MoveDecision) -> None:
        """
        Push a decision onto the real board after re-validating it.

        Raises:
            IllegalSelectionError: If the move is not legal on this board
        """
        self._enter(EngineState.APPLY_MOVE)
        try:
            if decision.move not in board.legal_moves:
                raise IllegalSelectionError(
                    f"{decision.source.value} move {decision.move.uci()} is illegal in {board.fen()}"
                )
            board.push(decision.move)
        finally:
            self._enter(EngineState.IDLE)


@dataclass
class _Turn:
    generation: int
    board: chess.Board
    reply_count: int
    book: Optional[OpeningBook]


class GameSession:
    """
    One game between a player and the engine.

    Attributes:
        board: Real game position
        engine: MoveEngine for this game
        book: Opening book for the current game (None if disabled)
        engine_replies: Moves the engine has played this game
        generation: Bumped whenever the game is replaced
        inference_failures: Fallback moves played this game
        notices: Non-blocking messages for the player

    Methods:
        push_player_move: Apply a validated human move
        play_engine_move: Choose and apply the engine's move
        start_engine_move: Same, on a background thread
        reset / load_position: Replace the game, discarding pending results
        result: MatchResult once the game is over
    """

    def __init__(
        self,
        handle: EngineHandle,
        config: Optional[EngineConfig] = None,
        board: Optional[chess.Board] = None,
        on_notice: Optional[Callable[[str], None]] = None,
    ):
        self.config = config if config is not None else EngineConfig()
        self.rng = np.random.default_rng(self.config.random_seed)
        self.engine = MoveEngine(handle, self.config, rng=self.rng)
        self.on_notice = on_notice

        self._lock = threading.Lock()
        self._in_flight = False
        self.generation = 0

        self._start(board)

    def _start(self, board: Optional[chess.Board]) -> None:
        self.board = board.copy() if board is not None else chess.Board()

        from_start = self.board.root().fen() == chess.STARTING_FEN
        self.engine_replies = sum(
            1 for ply, _ in enumerate(self.board.move_stack)
            if (ply % 2 == 0) == (self.engine_color == chess.WHITE)
        ) if from_start else BOOK_REPLIES

        # A fresh book per game: a stale worker keeps the old one
        self.book = (
            OpeningBook(color=self.engine_color, rng=self.rng)
            if self.config.use_opening_book and from_start
            else None
        )
        self.inference_failures = 0
        self.notices: List[str] = []

    @property
    def engine_color(self) -> chess.Color:
        return self.config.engine_color

    @property
    def is_thinking(self) -> bool:
        return self._in_flight

    def reset(self) -> None:
        """
        Start a new game from the initial position.

        A move still pending from the old game keeps the engine busy until
        its inference returns; push_player_move() and start_engine_move()
        raise EngineBusyError meanwhile. Wait for is_thinking to clear and
        retry. The old result is then discarded.
        """
        self.load_position(None)

    def load_position(self, board: Optional[chess.Board]) -> None:
        """
        Replace the game with a new position.

        Any pending engine move belongs to the old game and will be
        discarded when it completes. Until then the session stays busy,
        as after reset().
        """
        with self._lock:
            self.generation += 1
            self._start(board)
            logger.info(f"New game (generation {self.generation}): {self.board.fen()}")

    def push_player_move(self, move: Union[chess.Move, str]) -> chess.Move:
        """
        Apply the player's move.

        Args:
            move: chess.Move or UCI string

        Returns:
            The applied move

        Raises:
            EngineBusyError: If the engine is still choosing a move
            IllegalMoveError: If it is not the player's turn, the game is
                over, or the move is malformed or illegal
        """
        with self._lock:
            if self._in_flight:
                raise EngineBusyError("Engine is still choosing its move")
            if self.board.turn == self.engine_color:
                raise IllegalMoveError("It is the engine's turn")
            if self.board.is_game_over(claim_draw=True):
                raise IllegalMoveError("Game is over")

            if isinstance(move, str):
                try:
                    move = chess.Move.from_uci(move)
                except ValueError as e:
                    raise IllegalMoveError(f"Invalid move format: {move}") from e

            if move not in self.board.legal_moves:
                raise IllegalMoveError(f"Illegal move {move.uci()} in {self.board.fen()}")

            self.board.push(move)
            return move

    def _begin_turn(self) -> _Turn:
        with self._lock:
            if self._in_flight:
                raise EngineBusyError("Engine is already choosing a move")
            if self.board.turn != self.engine_color:
                raise EngineError("It is not the engine's turn")

            self._in_flight = True
            return _Turn(self.generation, self.board.copy(), self.engine_replies, self.book)

    def _run_turn(self, turn: _Turn) -> Optional[MoveDecision]:
        try:
            decision = self.engine.choose_move(turn.board, turn.reply_count, turn.book)
        except BaseException:
            with self._lock:
                self._in_flight = False
            raise

        with self._lock:
            self._in_flight = False

            if turn.generation != self.generation:
                logger.info(
                    f"Discarding stale engine move from generation {turn.generation} "
                    f"(now {self.generation})"
                )
                return None

            if decision is None:
                return None

            self.engine.apply_move(self.board, decision)
            self.engine_replies += 1

            if decision.source is MoveSource.FALLBACK:
                self._record_failure()

        return decision

    def _record_failure(self) -> None:
        self.inference_failures += 1
        if self.inference_failures == NOTICE_THRESHOLD:
            self.notices.append(ENGINE_UNAVAILABLE_NOTICE)
            logger.error(f"Inference failed {self.inference_failures} times this game")
            if self.on_notice is not None:
                self.on_notice(ENGINE_UNAVAILABLE_NOTICE)

    def play_engine_move(self) -> Optional[MoveDecision]:
        """
        Choose and apply the engine's move.

        Returns:
            The applied MoveDecision, or None if the position is terminal
            or the game was replaced while the move was being chosen

        Raises:
            EngineBusyError: If a move is already pending
            EngineError: If it is not the engine's turn
            EncodingDefect: If the position is structurally broken
        """
        return self._run_turn(self._begin_turn())

    def start_engine_move(
        self, callback: Optional[Callable[[Optional[MoveDecision]], None]] = None
    ) -> threading.Thread:
        """
        Choose and apply the engine's move on a background thread.

        The in-flight flag is claimed before this returns, so a second call
        raises EngineBusyError immediately.

        Args:
            callback: Called with the result of play_engine_move()

        Returns:
            The started thread
        """
        turn = self._begin_turn()

        def worker():
            try:
                decision = self._run_turn(turn)
            except Exception as e:
                logger.error(f"Engine move failed: {e}", exc_info=True)
                raise
            if callback is not None:
                callback(decision)

        thread = threading.Thread(target=worker, daemon=True)
        thread.start()
        return thread

    def is_over(self) -> bool:
        return self.board.is_game_over(claim_draw=True)

    def result(self) -> Optional[MatchResult]:
        """
        Outcome for the host application, once the game has ended.

        Returns:
            MatchResult, or None while the game is in progress
        """
        outcome = self.board.outcome(claim_draw=True)
        if outcome is None:
            return None

        if outcome.winner is None:
            result = MatchOutcome.DRAW
        elif outcome.winner == self.engine_color:
            result = MatchOutcome.LOSS
        else:
            result = MatchOutcome.WIN

        return MatchResult(
            outcome=result,
            termination=outcome.termination.name.lower(),
            engine_elo=self.config.engine_elo,
            plies=len(self.board.move_stack),
        )
