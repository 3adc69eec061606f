"""Progression rules: levels, streaks, survival and achievements."""

from __future__ import annotations

from datetime import date


WEEKLY_SURVIVOR = "weekly_survivor"
STREAK_MILESTONE = "streak_milestone"


def compute_level(total_points: int, points_per_level: int) -> int:
    """Level is derived from cumulative points, never stored on its own."""
    if points_per_level <= 0:
        raise ValueError("points_per_level must be positive")
    return total_points // points_per_level + 1


def next_streak(streak: int, last_completion: date | None, today: date) -> int:
    """Streak grows by one for each distinct completion date."""
    if last_completion != today:
        return streak + 1
    return streak


def is_survived(remaining: int, points: int) -> bool:
    """A cycle is survived only with money left AND a positive score."""
    return remaining > 0 and points > 0


def budget_range(min_budget: int, max_budget: int, days: int) -> tuple[int, int]:
    """Closed budget range for a cycle spanning `days` days."""
    if days < 1:
        raise ValueError("days must be >= 1")
    if min_budget > max_budget:
        raise ValueError(f"min_budget {min_budget} exceeds max_budget {max_budget}")
    return min_budget * days, max_budget * days


def needs_new_cycle(last_completion: date | None, today: date) -> bool:
    """A new calendar day invalidates whatever cycle was in progress."""
    return last_completion != today


def crossed_achievements(
    survived: bool,
    previous_streak: int,
    streak: int,
    streak_threshold: int,
) -> list[str]:
    """Achievements unlocked by one cycle completion.

    The streak milestone fires only on the completion that reaches the
    threshold, not on every completion after it.
    """
    unlocked: list[str] = []
    if survived:
        unlocked.append(WEEKLY_SURVIVOR)
    if previous_streak < streak_threshold <= streak:
        unlocked.append(STREAK_MILESTONE)
    return unlocked
