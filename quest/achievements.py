"""Achievement notification hook.

Claiming an achievement (the weekly "NFT") has no ledger behind it; the
notifier only records that the player earned it.
"""

from __future__ import annotations

import logging

from progression import STREAK_MILESTONE, WEEKLY_SURVIVOR

from .models import Progress

logger = logging.getLogger(__name__)

ACHIEVEMENT_NAMES = {
    WEEKLY_SURVIVOR: "Weekly Achievement NFT",
    STREAK_MILESTONE: "Monthly Streak Badge",
}


def achievement_name(achievement_id: str) -> str:
    return ACHIEVEMENT_NAMES.get(achievement_id, achievement_id)


class AchievementNotifier:
    """Log-only notifier; keeps what it announced for the session."""

    def __init__(self) -> None:
        self.announced: list[str] = []

    def notify(self, achievement_id: str, progress: Progress) -> str:
        name = achievement_name(achievement_id)
        self.announced.append(achievement_id)
        logger.info(
            "Achievement unlocked: %s (streak=%d level=%d)",
            name,
            progress.streak,
            progress.level,
        )
        return name

    def claim(self, achievement_id: str) -> str:
        """Acknowledge a claim. There is nothing to mint."""
        name = achievement_name(achievement_id)
        logger.info("Claimed %s", name)
        return f"{name} claimed!"
