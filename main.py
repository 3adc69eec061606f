"""Entry point for Budget Quest.

Usage:
    python main.py play                 # Play one cycle in the terminal
    python main.py play --cycles 3      # Keep going for three cycles
    python main.py play --days 1        # Single-day cycles
    python main.py status               # Show streak and level
    python main.py history              # Recent finished cycles
    python main.py reset                # Forget all progress
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import click

from quest.achievements import AchievementNotifier
from quest.catalog import load_catalog
from quest.config import load_config
from quest.controller import GameController
from quest.insight import InsightWriter
from quest.models import Cycle, CycleOutcome, Progress
from quest.storage import HistoryDB, ProgressStore

ROOT = Path(__file__).resolve().parent


def _setup_logging(verbose: bool = False, log_file: str | None = None) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    fmt = "%(asctime)s — %(name)s — %(levelname)s — %(message)s"

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(level=level, format=fmt, handlers=handlers)

    # Quiet down noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("anthropic").setLevel(logging.WARNING)


def _storage_path(cfg: dict, key: str, default: str) -> Path:
    return ROOT / cfg.get("storage", {}).get(key, default)


def _build_controller(cfg: dict, on_cycle_started=None) -> GameController:
    store = ProgressStore(_storage_path(cfg, "progress_file", "data/progress.json"))
    return GameController(
        load_catalog(cfg),
        store,
        config=cfg,
        on_cycle_started=on_cycle_started,
    )


def _echo_progress(progress: Progress) -> None:
    last = progress.last_completion_date.isoformat() if progress.last_completion_date else "never"
    click.echo(
        f"  Points: {progress.total_points} | Streak: {progress.streak} days | "
        f"Level: {progress.level} | Last completed: {last}"
    )


def _echo_cycle_header(cycle: Cycle) -> None:
    click.echo(
        f"\n  Day {cycle.cycle_day_index + 1} of {cycle.days_per_cycle} | "
        f"Scenario {cycle.current_scenario_index + 1} of {cycle.scenario_count}"
    )
    click.echo(f"  Budget: ₱{cycle.budget_total} | Remaining: ₱{cycle.remaining} | Points: {cycle.points_earned}")


def _echo_summary(outcome: CycleOutcome, progress: Progress, insight: str) -> None:
    click.echo("\n  " + ("Congratulations!" if outcome.survived else "Game Over"))
    click.echo(f"  Remaining Budget: ₱{outcome.remaining}")
    click.echo(f"  Points Earned: {outcome.points_earned}")
    click.echo(f"  {insight}")
    click.echo(f"  Streak: {progress.streak} days")
    click.echo(f"  Level: {progress.level}")
    if outcome.persist_error:
        click.echo(f"  Warning: progress could not be saved ({outcome.persist_error})", err=True)


async def _play(cfg: dict, cycles: int) -> None:
    cycle_started = asyncio.Event()
    controller = _build_controller(cfg, on_cycle_started=lambda _cycle: cycle_started.set())
    insight = InsightWriter.from_config(cfg)
    notifier = AchievementNotifier()

    progress, _ = controller.open_session()
    _echo_progress(progress)

    finished = 0
    async with HistoryDB(_storage_path(cfg, "history_db", "data/history.db")) as db:
        try:
            while finished < cycles:
                cycle = controller.cycle
                cycle_started.clear()
                scenario = controller.scenario_for(cycle)

                _echo_cycle_header(cycle)
                click.echo(f"\n  {scenario.prompt}")
                for i, option in enumerate(scenario.options, start=1):
                    click.echo(f"    {i}. {option.text}")
                choice = await asyncio.to_thread(
                    click.prompt,
                    "  Your choice",
                    type=click.IntRange(1, len(scenario.options)),
                )
                controller.apply_option(cycle, cycle.current_scenario_index, scenario.options[choice - 1])
                if not cycle.is_complete:
                    continue

                progress, outcome = controller.complete_cycle(cycle, controller.progress)
                if not outcome.cycle_finished:
                    click.echo(
                        f"\n  Day {outcome.day_index + 1} done: ₱{outcome.remaining} left, "
                        f"{outcome.points_earned} points"
                    )
                    continue

                text = await asyncio.to_thread(insight.write, outcome, progress)
                _echo_summary(outcome, progress, text)
                cycle_id = await db.log_cycle(
                    completed_on=progress.last_completion_date.isoformat(),
                    days_per_cycle=cycle.days_per_cycle,
                    budget_total=cycle.budget_total,
                    remaining=outcome.remaining,
                    points_earned=outcome.points_earned,
                    survived=outcome.survived,
                    total_points=progress.total_points,
                    streak=progress.streak,
                    level=progress.level,
                )
                for achievement in outcome.achievements:
                    name = notifier.notify(achievement, progress)
                    await db.log_achievement(achievement, cycle_id=cycle_id, streak=progress.streak)
                    click.echo(f"  Unlocked: {name}. {notifier.claim(achievement)}")

                finished += 1
                if finished < cycles and controller.restart_pending:
                    click.echo("\n  Next cycle starts shortly...")
                    await cycle_started.wait()
        finally:
            controller.close()


async def _history(cfg: dict, limit: int) -> None:
    async with HistoryDB(_storage_path(cfg, "history_db", "data/history.db")) as db:
        counts = await db.get_cycle_counts()
        rows = await db.get_recent_cycles(limit=limit)
        achievements = await db.get_recent_achievements(limit=limit)

    click.echo(f"\n  Cycles: {counts['total']} (survived {counts['survived']}, failed {counts['failed']})\n")
    for row in rows:
        verdict = "survived" if row["survived"] else "game over"
        click.echo(
            f"  {row['completed_on']}  {verdict:<9}  ₱{row['remaining']:>6} left  "
            f"{row['points_earned']:>4} pts  streak {row['streak']}  level {row['level']}"
        )
    if achievements:
        click.echo("\n  Achievements:")
        for row in achievements:
            click.echo(f"  {row['created_at'][:10]}  {row['achievement']}")


async def _status(cfg: dict) -> None:
    controller = _build_controller(cfg)
    _echo_progress(controller.load_progress())
    controller.close()


async def _reset(cfg: dict) -> None:
    controller = _build_controller(cfg)
    try:
        controller.reset_progress()
    finally:
        controller.close()


@click.group()
@click.option("--verbose", is_flag=True, help="Enable debug logging")
@click.option("--config-dir", type=click.Path(), default=None, help="Config directory")
@click.pass_context
def main(ctx: click.Context, verbose: bool, config_dir: str | None) -> None:
    """Budget Quest: everyday spending choices, one cycle at a time."""
    cfg = load_config(config_dir)
    _setup_logging(verbose=verbose, log_file=cfg.get("storage", {}).get("log_file"))
    ctx.obj = cfg


@main.command()
@click.option("--cycles", type=click.IntRange(min=1), default=1, help="Cycles to play before exiting")
@click.option("--days", type=click.IntRange(min=1), default=None, help="Override days per cycle")
@click.pass_obj
def play(cfg: dict, cycles: int, days: int | None) -> None:
    """Play through the scenario catalog."""
    if days is not None:
        cfg.setdefault("game", {})["days_per_cycle"] = days
    try:
        asyncio.run(_play(cfg, cycles))
    except (KeyboardInterrupt, click.Abort):
        click.echo("\n  Session ended. Progress is saved after each finished cycle.")


@main.command()
@click.pass_obj
def status(cfg: dict) -> None:
    """Show saved progress."""
    asyncio.run(_status(cfg))


@main.command()
@click.option("--limit", type=click.IntRange(min=1), default=10, help="Rows to show")
@click.pass_obj
def history(cfg: dict, limit: int) -> None:
    """Show recently finished cycles."""
    asyncio.run(_history(cfg, limit))


@main.command()
@click.confirmation_option(prompt="Forget all saved progress?")
@click.pass_obj
def reset(cfg: dict) -> None:
    """Delete saved progress."""
    try:
        asyncio.run(_reset(cfg))
    except OSError as e:
        click.echo(f"Could not clear progress: {e}", err=True)
        sys.exit(1)
    click.echo("  Progress cleared.")


if __name__ == "__main__":
    main()
