"""Game session controller - owns the cycle and progress state.

Each session: load progress -> answer scenarios -> complete -> repeat.
Clock, budget randomness and delayed restarts are injected so the
state transitions stay deterministic under test.
"""

from __future__ import annotations

import asyncio
import logging
import random
from datetime import date, datetime, timezone
from typing import Callable, Sequence

from progression import (
    budget_range,
    compute_level,
    crossed_achievements,
    is_survived,
    needs_new_cycle,
    next_streak,
)

from .models import (
    COMPLETED,
    IN_PROGRESS,
    PENDING_COMPLETION,
    Cycle,
    CycleOutcome,
    Option,
    Progress,
    Scenario,
)
from .scheduler import Cancellable, LoopScheduler, Scheduler
from .storage import ProgressStore

logger = logging.getLogger(__name__)

BudgetSource = Callable[[int, int], int]

DEFAULT_STORAGE_KEY = "budgetQuestProgress"


class InvalidStateError(Exception):
    """Raised when the controller is driven out of order."""


class SystemClock:
    """Current UTC calendar date."""

    def today(self) -> date:
        return datetime.now(timezone.utc).date()


class FixedClock:
    def __init__(self, today: date):
        self._today = today

    def today(self) -> date:
        return self._today

    def set(self, today: date) -> None:
        self._today = today


def random_budget(seed: int | None = None) -> BudgetSource:
    """Uniform integer draw over a closed range."""
    return random.Random(seed).randint


class GameController:
    """Apply choices, advance days, fold finished cycles into progress."""

    def __init__(
        self,
        catalog: Sequence[Scenario],
        store: ProgressStore,
        config: dict | None = None,
        clock=None,
        budget_source: BudgetSource | None = None,
        scheduler: Scheduler | None = None,
        on_cycle_started: Callable[[Cycle], None] | None = None,
    ):
        cfg = (config or {}).get("game") or {}
        self._catalog = tuple(catalog)
        if not self._catalog:
            raise ValueError("catalog must contain at least one scenario")

        self._min_budget = int(cfg.get("min_budget", 500))
        self._max_budget = int(cfg.get("max_budget", 1000))
        self._points_per_level = int(cfg.get("points_per_level", 100))
        self._days_per_cycle = int(cfg.get("days_per_cycle", 7))
        self._scenarios_per_day = int(cfg.get("scenarios_per_day") or len(self._catalog))
        self._summary_delay = float(cfg.get("summary_delay_seconds", 3.0))
        self._streak_threshold = int(cfg.get("streak_achievement_threshold", 30))
        self._storage_key = str(cfg.get("storage_key", DEFAULT_STORAGE_KEY))

        if self._points_per_level <= 0:
            raise ValueError("points_per_level must be positive")
        if self._days_per_cycle < 1:
            raise ValueError("days_per_cycle must be >= 1")
        if not 1 <= self._scenarios_per_day <= len(self._catalog):
            raise ValueError(
                f"scenarios_per_day must be between 1 and {len(self._catalog)}, "
                f"got {self._scenarios_per_day}"
            )
        # Fail on a bad range at startup rather than on the first draw.
        budget_range(self._min_budget, self._max_budget, self._days_per_cycle)

        self._store = store
        self._clock = clock or SystemClock()
        self._budget_source = budget_source or random_budget()
        self._scheduler = scheduler or self._default_scheduler()
        self._on_cycle_started = on_cycle_started
        self._restart_handle: Cancellable | None = None
        self._closed = False

        self.cycle: Cycle | None = None
        self.progress = Progress()

    # ── Read-only views ─────────────────────────────────────────

    @property
    def days_per_cycle(self) -> int:
        return self._days_per_cycle

    @property
    def scenario_count(self) -> int:
        return self._scenarios_per_day

    @property
    def points_per_level(self) -> int:
        return self._points_per_level

    @property
    def restart_pending(self) -> bool:
        return self._restart_handle is not None

    def scenario_for(self, cycle: Cycle) -> Scenario:
        """The scenario the cycle is currently asking about."""
        return self._catalog[cycle.current_scenario_index]

    # ── Lifecycle ───────────────────────────────────────────────

    def start_new_cycle(self) -> Cycle:
        """Draw a budget and replace any in-progress cycle."""
        self._cancel_restart()
        low, high = budget_range(self._min_budget, self._max_budget, self._days_per_cycle)
        budget = int(self._budget_source(low, high))
        cycle = Cycle(
            budget_total=budget,
            remaining=budget,
            scenario_count=self._scenarios_per_day,
            days_per_cycle=self._days_per_cycle,
        )
        self.cycle = cycle
        logger.info(
            "New cycle: budget=%d days=%d scenarios/day=%d",
            budget,
            self._days_per_cycle,
            self._scenarios_per_day,
        )
        if self._on_cycle_started:
            self._on_cycle_started(cycle)
        return cycle

    def load_progress(self) -> Progress:
        """Read stored progress; absent or malformed data means a fresh start."""
        try:
            raw = self._store.get(self._storage_key)
        except (OSError, ValueError) as e:
            logger.warning("Progress read failed, starting fresh: %s", e)
            raw = None

        progress = Progress.from_dict(raw, self._points_per_level) if raw is not None else None
        if progress is None:
            if raw is not None:
                logger.warning("Discarding malformed progress record: %r", raw)
            self.progress = Progress()
            self.start_new_cycle()
            return self.progress

        self.progress = progress
        logger.debug(
            "Loaded progress: points=%d streak=%d level=%d last=%s",
            progress.total_points,
            progress.streak,
            progress.level,
            progress.last_completion_date,
        )
        if needs_new_cycle(progress.last_completion_date, self._clock.today()):
            self.start_new_cycle()
        return progress

    def open_session(self) -> tuple[Progress, Cycle]:
        """Load progress and make sure a playable cycle exists."""
        progress = self.load_progress()
        if self.cycle is None or self.cycle.status == COMPLETED:
            self.start_new_cycle()
        return progress, self.cycle

    def close(self) -> None:
        """Tear down: a pending restart must not fire after this."""
        self._closed = True
        self._cancel_restart()

    def reset_progress(self) -> Progress:
        """Forget stored progress and start over.

        Raises OSError when the stored record cannot be removed; the
        in-memory progress and cycle are left as they were.
        """
        self._store.delete(self._storage_key)
        self.progress = Progress()
        self.start_new_cycle()
        logger.info("Progress reset")
        return self.progress

    # ── Transitions ─────────────────────────────────────────────

    def apply_option(self, cycle: Cycle, scenario_index: int, option: Option) -> Cycle:
        """Spend and score one choice. The cycle is untouched on error."""
        if cycle.status != IN_PROGRESS:
            raise InvalidStateError(f"cycle is {cycle.status}; no choices accepted")
        if not 0 <= scenario_index < cycle.scenario_count:
            raise InvalidStateError(
                f"scenario index {scenario_index} out of range [0, {cycle.scenario_count})"
            )
        if scenario_index != cycle.current_scenario_index:
            raise InvalidStateError(
                f"stale scenario index {scenario_index}; current is {cycle.current_scenario_index}"
            )
        scenario = self._catalog[scenario_index]
        if option not in scenario.options:
            raise InvalidStateError(f"option {option.text!r} does not belong to {scenario.prompt!r}")

        # Negative remaining is an overspend, not an error.
        cycle.remaining -= option.cost
        cycle.points_earned += option.points
        if scenario_index + 1 >= cycle.scenario_count:
            cycle.status = PENDING_COMPLETION
        else:
            cycle.current_scenario_index += 1
        logger.debug(
            "Chose %r: remaining=%d points=%d",
            option.text,
            cycle.remaining,
            cycle.points_earned,
        )
        return cycle

    def choose(self, option_index: int) -> Cycle:
        """Apply option `option_index` of the active cycle's current scenario."""
        if self.cycle is None:
            raise InvalidStateError("no active cycle")
        scenario = self.scenario_for(self.cycle)
        if not 0 <= option_index < len(scenario.options):
            raise InvalidStateError(f"option index {option_index} out of range")
        return self.apply_option(self.cycle, self.cycle.current_scenario_index, scenario.options[option_index])

    def complete_cycle(
        self,
        cycle: Cycle,
        progress: Progress,
        today: date | None = None,
    ) -> tuple[Progress, CycleOutcome]:
        """Close a finished day; fold the whole cycle into progress on its last day."""
        if cycle.status != PENDING_COMPLETION:
            raise InvalidStateError(f"cycle is {cycle.status}; nothing to complete")
        today = today or self._clock.today()

        if not cycle.is_final_day:
            return progress, self._advance_day(cycle)

        points = cycle.total_points
        total = progress.total_points + points
        streak = next_streak(progress.streak, progress.last_completion_date, today)
        updated = Progress(
            total_points=total,
            streak=streak,
            level=compute_level(total, self._points_per_level),
            last_completion_date=today,
        )

        # Schedule first: a scheduler failure must leave the cycle pending.
        if self._days_per_cycle > 1:
            handle = self._scheduler.call_later(self._summary_delay, self._restart_after_summary)
            self._cancel_restart()
            self._restart_handle = handle

        persist_error = ""
        try:
            self._store.set(self._storage_key, updated.to_dict())
        except OSError as e:
            persist_error = str(e) or e.__class__.__name__
            logger.warning("Could not save progress, keeping it in memory: %s", persist_error)

        survived = is_survived(cycle.remaining, points)
        outcome = CycleOutcome(
            survived=survived,
            remaining=cycle.remaining,
            points_earned=points,
            day_index=cycle.cycle_day_index,
            cycle_finished=True,
            achievements=crossed_achievements(survived, progress.streak, streak, self._streak_threshold),
            persist_error=persist_error,
        )
        cycle.status = COMPLETED
        self.progress = updated
        logger.info(
            "Cycle complete: survived=%s remaining=%d points=%d | total=%d streak=%d level=%d",
            survived,
            cycle.remaining,
            points,
            total,
            streak,
            updated.level,
        )

        if self._days_per_cycle == 1:
            self.start_new_cycle()
        return updated, outcome

    # ── Internals ───────────────────────────────────────────────

    def _default_scheduler(self) -> Scheduler:
        if self._days_per_cycle == 1:
            return LoopScheduler()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            raise ValueError(
                "multi-day cycles need a scheduler or a running event loop "
                "for the restart after the summary"
            ) from None
        return LoopScheduler(loop)

    def _advance_day(self, cycle: Cycle) -> CycleOutcome:
        outcome = CycleOutcome(
            survived=is_survived(cycle.remaining, cycle.points_earned),
            remaining=cycle.remaining,
            points_earned=cycle.points_earned,
            day_index=cycle.cycle_day_index,
            cycle_finished=False,
        )
        cycle.carried_points += cycle.points_earned
        cycle.points_earned = 0
        cycle.remaining = cycle.budget_total
        cycle.current_scenario_index = 0
        cycle.cycle_day_index += 1
        cycle.status = IN_PROGRESS
        logger.info("Day %d of %d done", cycle.cycle_day_index, cycle.days_per_cycle)
        return outcome

    def _restart_after_summary(self) -> None:
        self._restart_handle = None
        if self._closed:
            return
        self.start_new_cycle()

    def _cancel_restart(self) -> None:
        if self._restart_handle is not None:
            self._restart_handle.cancel()
            self._restart_handle = None
