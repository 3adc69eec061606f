"""Progression system: levels, streaks, survival, achievements."""

from .rules import (
    STREAK_MILESTONE,
    WEEKLY_SURVIVOR,
    budget_range,
    compute_level,
    crossed_achievements,
    is_survived,
    needs_new_cycle,
    next_streak,
)

__all__ = [
    "STREAK_MILESTONE",
    "WEEKLY_SURVIVOR",
    "budget_range",
    "compute_level",
    "crossed_achievements",
    "is_survived",
    "needs_new_cycle",
    "next_streak",
]
