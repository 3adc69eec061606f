"""Data models for scenarios, cycles and persisted progress."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any

from progression import compute_level


IN_PROGRESS = "in_progress"
PENDING_COMPLETION = "pending_completion"
COMPLETED = "completed"


def _as_int(value: Any) -> int | None:
    # bool is an int subclass; a stored `true` is not a point count
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _parse_date(value: Any) -> date | None:
    if not isinstance(value, str):
        raise ValueError(f"date must be a string, got {type(value).__name__}")
    if not value:
        return None
    return date.fromisoformat(value)


@dataclass(frozen=True)
class Option:
    text: str
    cost: int
    points: int

    @classmethod
    def from_config(cls, data: dict) -> Option:
        cost = _as_int(data.get("cost"))
        points = _as_int(data.get("points"))
        if cost is None or cost < 0:
            raise ValueError(f"option cost must be a non-negative integer: {data!r}")
        if points is None:
            raise ValueError(f"option points must be an integer: {data!r}")
        return cls(text=str(data.get("text", "")), cost=cost, points=points)


@dataclass(frozen=True)
class Scenario:
    prompt: str
    options: tuple[Option, ...]

    @classmethod
    def from_config(cls, data: dict) -> Scenario:
        raw_options = data.get("options") or []
        if not isinstance(raw_options, list) or not raw_options:
            raise ValueError(f"scenario needs at least one option: {data.get('prompt', '')!r}")
        return cls(
            prompt=str(data.get("prompt", "")),
            options=tuple(Option.from_config(o) for o in raw_options),
        )


@dataclass
class Cycle:
    """Working state of one pass through the catalog (a day or a week)."""

    budget_total: int
    remaining: int
    scenario_count: int
    days_per_cycle: int = 1
    points_earned: int = 0  # points of the current day
    carried_points: int = 0  # points banked by earlier days of this cycle
    current_scenario_index: int = 0
    cycle_day_index: int = 0
    status: str = IN_PROGRESS

    @property
    def is_complete(self) -> bool:
        """True once the last scenario is answered and completion is pending."""
        return self.status == PENDING_COMPLETION

    @property
    def is_final_day(self) -> bool:
        return self.cycle_day_index + 1 >= self.days_per_cycle

    @property
    def total_points(self) -> int:
        return self.carried_points + self.points_earned


@dataclass(frozen=True)
class Progress:
    """Long-term progress; the only state that survives a restart."""

    total_points: int = 0
    streak: int = 0
    level: int = 1
    last_completion_date: date | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "points": self.total_points,
            "streak": self.streak,
            "level": self.level,
            "lastDate": self.last_completion_date.isoformat() if self.last_completion_date else "",
        }

    @classmethod
    def from_dict(cls, raw: Any, points_per_level: int) -> Progress | None:
        """Parse a stored record; None when it is malformed."""
        if not isinstance(raw, dict):
            return None
        points = _as_int(raw.get("points"))
        streak = _as_int(raw.get("streak"))
        if points is None or streak is None or streak < 0:
            return None
        try:
            last = _parse_date(raw.get("lastDate", ""))
        except ValueError:
            return None
        return cls(
            total_points=points,
            streak=streak,
            level=compute_level(points, points_per_level),
            last_completion_date=last,
        )


@dataclass
class CycleOutcome:
    """What a completion produced, for the summary screen."""

    survived: bool
    remaining: int
    points_earned: int
    day_index: int
    cycle_finished: bool
    achievements: list[str] = field(default_factory=list)
    persist_error: str = ""
