"""
Engine configuration.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import chess

from policy_engine.skill.elo import (
    DEFAULT_OPPONENT_ELO,
    elo_to_category,
    get_difficulty,
    skill_epsilon,
)

logger = logging.getLogger(__name__)


@dataclass
class EngineConfig:
    """Configuration for one engine player.

    Groups the model location, the ratings the network is conditioned on,
    and the selection settings in one place.
    """

    # Model
    model_path: Optional[Path] = None
    """Policy network: .onnx (ONNX Runtime) or .pt (PolicyNet checkpoint)"""

    move_index_path: Optional[Path] = None
    """JSON move index table shipped with the model (None = reference catalog)"""

    device: str = "cpu"
    """Device for the PyTorch backend: "cpu" or "cuda" """

    prefer_gpu: bool = False
    """Try the CUDA execution provider first for ONNX models"""

    # Skill
    engine_elo: int = 1500
    """Rating the engine plays at"""

    opponent_elo: int = DEFAULT_OPPONENT_ELO
    """Rating assumed for the opponent"""

    skill_epsilon: Optional[float] = None
    """Chance of picking among the top candidates (None = derived from engine_elo)"""

    top_k: int = 3
    """Number of candidates sampled from on an exploration turn"""

    # Game
    engine_color: chess.Color = chess.BLACK
    """Side the engine plays in a GameSession"""

    use_opening_book: bool = True
    """Play a fixed two-move opening line before using the network"""

    # Reproducibility
    random_seed: Optional[int] = None
    """Seed for book choice, exploration and fallback moves (None for random)"""

    def __post_init__(self):
        """Validate configuration after initialization."""
        if self.model_path is not None:
            self.model_path = Path(self.model_path)
        if self.move_index_path is not None:
            self.move_index_path = Path(self.move_index_path)

        if self.skill_epsilon is not None and not 0.0 <= self.skill_epsilon <= 1.0:
            raise ValueError(
                f"skill_epsilon must be in [0, 1], got {self.skill_epsilon}"
            )

        if self.top_k < 1:
            raise ValueError(f"top_k must be at least 1, got {self.top_k}")

        if self.engine_elo <= 0 or self.opponent_elo <= 0:
            raise ValueError(
                f"ratings must be positive, got {self.engine_elo} and {self.opponent_elo}"
            )

        if self.device == "cuda":
            import torch
            if not torch.cuda.is_available():
                logger.warning("CUDA requested but not available, falling back to CPU")
                self.device = "cpu"

    @property
    def engine_category(self) -> int:
        return elo_to_category(self.engine_elo)

    @property
    def opponent_category(self) -> int:
        return elo_to_category(self.opponent_elo)

    @property
    def effective_epsilon(self) -> float:
        """Configured skill_epsilon, or the rate for engine_elo's category."""
        if self.skill_epsilon is not None:
            return self.skill_epsilon
        return skill_epsilon(self.engine_category)

    @classmethod
    def for_difficulty(cls, name: str, **overrides) -> "EngineConfig":
        """Config for a named difficulty preset ("apprentice", "adept", "master")."""
        difficulty = get_difficulty(name)
        return cls(engine_elo=difficulty.elo, **overrides)

    def __repr__(self) -> str:
        """String representation of config."""
        return (
            f"EngineConfig(\n"
            f"  Model: {self.model_path or 'none'} (moves: {self.move_index_path or 'reference'})\n"
            f"  Skill: {self.engine_elo} vs {self.opponent_elo}, epsilon={self.effective_epsilon:.3f}\n"
            f"  Game: color={'white' if self.engine_color == chess.WHITE else 'black'}, "
            f"book={self.use_opening_book}\n"
            f")"
        )
