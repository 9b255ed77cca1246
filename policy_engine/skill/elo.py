"""
Elo to skill category mapping.

The policy network is conditioned on two discrete skill categories, one for
the side it plays and one for its opponent. Categories follow 100-point
half-open bands:

    < 1100     -> 0
    1100-1199  -> 1
    1200-1299  -> 2
    ...
    1900-1999  -> 9
    >= 2000    -> 10
"""

from dataclasses import dataclass
from typing import Dict

MIN_ELO = 1100
MAX_ELO = 2000
BAND_WIDTH = 100
NUM_CATEGORIES = 11

# Chance of picking among the top candidates instead of the best one
WEAKEST_EPSILON = 0.15
STRONGEST_EPSILON = 0.03

DEFAULT_OPPONENT_ELO = 1600


def elo_to_category(elo: float) -> int:
    """Map a rating to its skill category in [0, 10]."""
    if elo < MIN_ELO:
        return 0
    if elo >= MAX_ELO:
        return NUM_CATEGORIES - 1
    return int((elo - MIN_ELO) // BAND_WIDTH) + 1


def skill_epsilon(category: int) -> float:
    """
    Exploration rate for a skill category.

    Linear from WEAKEST_EPSILON at category 0 to STRONGEST_EPSILON at
    category 10, so weaker settings stray from the top move more often.

    Raises:
        ValueError: If category is outside [0, 10]
    """
    if not 0 <= category < NUM_CATEGORIES:
        raise ValueError(f"category must be in [0, {NUM_CATEGORIES - 1}], got {category}")
    span = WEAKEST_EPSILON - STRONGEST_EPSILON
    return WEAKEST_EPSILON - span * category / (NUM_CATEGORIES - 1)


@dataclass(frozen=True)
class Difficulty:
    """A named engine strength offered to players."""

    name: str
    label: str
    elo: int

    @property
    def category(self) -> int:
        return elo_to_category(self.elo)


DIFFICULTIES: Dict[str, Difficulty] = {
    "apprentice": Difficulty("apprentice", "Easy (~1100 Elo)", 1100),
    "adept": Difficulty("adept", "Medium (~1300 Elo)", 1300),
    "master": Difficulty("master", "Hard (~1500 Elo)", 1500),
}


def get_difficulty(name: str) -> Difficulty:
    """
    Look up a difficulty preset by name.

    Raises:
        ValueError: If name is not a known preset
    """
    try:
        return DIFFICULTIES[name]
    except KeyError:
        raise ValueError(
            f"difficulty must be one of {sorted(DIFFICULTIES)}, got '{name}'"
        ) from None
