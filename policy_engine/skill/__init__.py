"""
Skill Module

Maps player ratings to the discrete skill categories the policy network is
conditioned on, and to the exploration rate used during move selection.
"""

from policy_engine.skill.elo import (
    DIFFICULTIES,
    Difficulty,
    elo_to_category,
    get_difficulty,
    skill_epsilon,
)

__all__ = [
    'DIFFICULTIES',
    'Difficulty',
    'elo_to_category',
    'get_difficulty',
    'skill_epsilon',
]
