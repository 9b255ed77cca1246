"""
Policy-to-Move Selection

Turns raw policy logits into one legal move.

Algorithm:
    1. Score every legal move by its policy slot (mirrored first when the
       position was mirrored). Moves without a slot get SENTINEL_LOGIT.
    2. Softmax over the legal moves only. Most of the full policy vector
       belongs to moves that are illegal here and must not dilute it.
    3. Rank by probability, highest first. Ties keep legal-move order.
    4. With probability skill_epsilon, pick uniformly among the top_k
       candidates instead of the best one.

SENTINEL_LOGIT ranks a slotless move below every trained move, including
ones the network considers unlikely.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

import chess
import numpy as np

from policy_engine.errors import InferenceFailure
from policy_engine.policy.move_index import MoveIndexTable

logger = logging.getLogger(__name__)

SENTINEL_LOGIT = -1000.0
DEFAULT_TOP_K = 3


@dataclass(frozen=True)
class ScoredMove:
    """A legal move with its policy score."""

    move: chess.Move
    index: Optional[int]  # None when the move has no policy slot
    logit: float
    probability: float


def softmax(logits: np.ndarray) -> np.ndarray:
    """Numerically stable softmax in float64."""
    x = np.asarray(logits, dtype=np.float64)
    exps = np.exp(x - x.max())
    return exps / exps.sum()


class PolicySelector:
    """
    Chooses a move from policy logits restricted to the legal moves.

    Attributes:
        move_table: Shared MoveIndexTable
        top_k: Number of candidates sampled from on an exploration turn
        rng: numpy random Generator used for exploration
    """

    def __init__(
        self,
        move_table: MoveIndexTable,
        top_k: int = DEFAULT_TOP_K,
        rng: Optional[np.random.Generator] = None,
    ):
        if top_k < 1:
            raise ValueError(f"top_k must be at least 1, got {top_k}")

        self.move_table = move_table
        self.top_k = top_k
        self.rng = rng if rng is not None else np.random.default_rng()

    def rank(
        self,
        legal_moves: Sequence[chess.Move],
        policy_logits: np.ndarray,
        mirrored: bool,
    ) -> List[ScoredMove]:
        """
        Score and rank legal moves.

        Args:
            legal_moves: Legal moves in real board coordinates
            policy_logits: Flat policy vector of length len(move_table)
            mirrored: True if the position was mirrored for encoding

        Returns:
            ScoredMove list, highest probability first

        Raises:
            InferenceFailure: If the policy vector has the wrong length or
                a legal move's logit is not finite
        """
        logits = np.asarray(policy_logits).reshape(-1)
        if logits.shape[0] != len(self.move_table):
            raise InferenceFailure(
                f"Expected {len(self.move_table)} policy logits, got {logits.shape[0]}"
            )

        indices: List[Optional[int]] = []
        scores = np.empty(len(legal_moves), dtype=np.float64)

        for i, move in enumerate(legal_moves):
            index = self.move_table.to_index(move, mirrored)
            indices.append(index)
            scores[i] = SENTINEL_LOGIT if index is None else float(logits[index])

        if not np.all(np.isfinite(scores)):
            raise InferenceFailure("Policy logits contain non-finite values")

        probs = softmax(scores)

        # Stable sort keeps legal-move order among equal probabilities
        order = sorted(range(len(legal_moves)), key=lambda i: -probs[i])

        return [
            ScoredMove(
                move=legal_moves[i],
                index=indices[i],
                logit=float(scores[i]),
                probability=float(probs[i]),
            )
            for i in order
        ]

    def select_scored(
        self,
        legal_moves: Sequence[chess.Move],
        policy_logits: np.ndarray,
        mirrored: bool,
        skill_epsilon: float = 0.0,
    ) -> Optional[ScoredMove]:
        """
        Pick one legal move and keep its score.

        Args:
            legal_moves: Legal moves in real board coordinates
            policy_logits: Flat policy vector
            mirrored: True if the position was mirrored for encoding
            skill_epsilon: Chance of sampling uniformly from the top_k
                candidates instead of taking the best one

        Returns:
            The chosen ScoredMove, or None if there are no legal moves
        """
        if not legal_moves:
            return None

        ranked = self.rank(legal_moves, policy_logits, mirrored)

        logger.debug(
            "Top moves: "
            + ", ".join(f"{s.move.uci()} {s.probability:.2%}" for s in ranked[:3])
        )

        if skill_epsilon > 0.0 and self.rng.random() < skill_epsilon:
            candidates = ranked[: self.top_k]
            pick = candidates[int(self.rng.integers(len(candidates)))]
            logger.debug(f"Exploring: picked {pick.move.uci()} from top {len(candidates)}")
            return pick

        return ranked[0]

    def select(
        self,
        legal_moves: Sequence[chess.Move],
        policy_logits: np.ndarray,
        mirrored: bool,
        skill_epsilon: float = 0.0,
    ) -> Optional[chess.Move]:
        """Pick one legal move; None if there are no legal moves."""
        scored = self.select_scored(legal_moves, policy_logits, mirrored, skill_epsilon)
        return scored.move if scored is not None else None
