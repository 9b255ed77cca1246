"""
Model input/output schema.

Exported models do not agree on tensor names. Names are resolved once, when
the model is loaded, into a frozen ModelIOConfig: an exact name match wins,
a substring pattern is the second choice, and anything required that still
does not resolve is an immediate ModelSchemaError.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from policy_engine.errors import ModelSchemaError

BOARDS_NAME = "boards"
ELO_SELF_NAME = "elo_self"
ELO_OPPO_NAME = "elo_oppo"
POLICY_NAME = "logits_maia"

BOARDS_PATTERNS = ("planes", "board")
ELO_SELF_PATTERNS = ("elo_self",)
ELO_OPPO_PATTERNS = ("elo_oppo",)
POLICY_PATTERNS = ("policy", "maia")


def resolve_name(
    names: Sequence[str], exact: str, patterns: Sequence[str]
) -> Optional[str]:
    """Exact match first, then the first name containing a pattern."""
    if exact in names:
        return exact
    for pattern in patterns:
        for name in names:
            if pattern in name:
                return name
    return None


@dataclass(frozen=True)
class ModelIOConfig:
    """Resolved tensor names of one loaded model."""

    boards: str
    policy: str
    elo_self: Optional[str] = None
    elo_oppo: Optional[str] = None

    @property
    def rating_conditioned(self) -> bool:
        return self.elo_self is not None

    @classmethod
    def resolve(
        cls, input_names: Sequence[str], output_names: Sequence[str]
    ) -> "ModelIOConfig":
        """
        Resolve tensor names against the expected schema.

        Args:
            input_names: Model input names
            output_names: Model output names

        Returns:
            Frozen ModelIOConfig

        Raises:
            ModelSchemaError: If the board input or policy output cannot be
                found, or only one of the two Elo inputs exists
        """
        boards = resolve_name(input_names, BOARDS_NAME, BOARDS_PATTERNS)
        if boards is None:
            raise ModelSchemaError(f"No board planes input among {list(input_names)}")

        policy = resolve_name(output_names, POLICY_NAME, POLICY_PATTERNS)
        if policy is None:
            raise ModelSchemaError(f"No policy output among {list(output_names)}")

        elo_self = resolve_name(input_names, ELO_SELF_NAME, ELO_SELF_PATTERNS)
        elo_oppo = resolve_name(input_names, ELO_OPPO_NAME, ELO_OPPO_PATTERNS)
        if (elo_self is None) != (elo_oppo is None):
            raise ModelSchemaError(
                f"Model must take both Elo inputs or neither, got {list(input_names)}"
            )

        extra = set(input_names) - {boards, elo_self, elo_oppo}
        if extra:
            raise ModelSchemaError(f"Unexpected model inputs: {sorted(extra)}")

        return cls(boards=boards, policy=policy, elo_self=elo_self, elo_oppo=elo_oppo)

    def build_feeds(self, planes: np.ndarray, self_category: int, oppo_category: int):
        """
        Assemble the named input arrays for one position.

        Args:
            planes: (18, 8, 8) board planes
            self_category: Skill category of the side to move
            oppo_category: Skill category of its opponent

        Returns:
            Dict of input name -> array, planes batched to (1, 18, 8, 8)
        """
        feeds = {self.boards: np.ascontiguousarray(planes[np.newaxis], dtype=np.float32)}
        if self.rating_conditioned:
            feeds[self.elo_self] = np.array([self_category], dtype=np.int64)
            feeds[self.elo_oppo] = np.array([oppo_category], dtype=np.int64)
        return feeds
