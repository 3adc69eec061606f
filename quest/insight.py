"""End-of-cycle coaching insight.

A fixed rule picks one of two sentences. When an Anthropic API key is
configured, Claude writes a short note from the cycle numbers instead,
and the rule sentence is the fallback on any API failure.
"""

from __future__ import annotations

import logging

import anthropic

from .models import CycleOutcome, Progress

logger = logging.getLogger(__name__)

PRAISE = "Great job! Your choices helped you stay within budget and earn points."
ADVICE = "Consider reviewing your spending choices to improve your budget management."

COACH_SYSTEM = """\
You are a friendly personal-finance coach inside a budgeting game.
The player just finished a cycle of everyday spending choices.
Reply with one or two short sentences of encouragement or advice.
No lists, no emojis, no headings. Mention the numbers only if they help.
"""


def rule_insight(points: int) -> str:
    if points >= 0:
        return PRAISE
    return ADVICE


class InsightWriter:
    """Produce the summary-screen insight line."""

    def __init__(
        self,
        api_key: str = "",
        model: str = "claude-sonnet-4-20250514",
        temperature: float = 0.7,
        client=None,
    ):
        if client is None and api_key:
            client = anthropic.Anthropic(api_key=api_key)
        self._client = client
        self._model = model
        self._temperature = temperature

    @classmethod
    def from_config(cls, cfg: dict) -> InsightWriter:
        llm = cfg.get("llm", {})
        if not llm.get("enabled", True):
            return cls()
        return cls(
            api_key=cfg.get("_secrets", {}).get("anthropic_api_key", ""),
            model=llm.get("model", "claude-sonnet-4-20250514"),
            temperature=llm.get("temperature", 0.7),
        )

    @property
    def uses_llm(self) -> bool:
        return self._client is not None

    def write(self, outcome: CycleOutcome, progress: Progress) -> str:
        fallback = rule_insight(outcome.points_earned)
        if self._client is None:
            return fallback

        prompt = (
            f"Outcome: {'survived' if outcome.survived else 'game over'}\n"
            f"Remaining budget: {outcome.remaining}\n"
            f"Points earned this cycle: {outcome.points_earned}\n"
            f"Streak: {progress.streak} days, level {progress.level}\n"
            "Write the coaching note now. Just output the note text, nothing else."
        )
        try:
            msg = self._client.messages.create(
                model=self._model,
                max_tokens=120,
                temperature=self._temperature,
                system=COACH_SYSTEM,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as e:
            logger.warning("Insight generation failed, using rule text: %s", e)
            return fallback

        text = msg.content[0].text.strip() if msg.content else ""
        logger.debug("Generated insight (%d chars): %s", len(text), text[:80])
        return text or fallback
