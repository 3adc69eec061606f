"""Tests for configuration loading and the command line."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

from main import main
from quest.config import load_config


def _write_config(tmp_path: Path, days: int = 1, **game) -> Path:
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    settings = {
        "game": {"days_per_cycle": days, "min_budget": 500, "max_budget": 1000, **game},
        "storage": {
            "progress_file": str(tmp_path / "progress.json"),
            "history_db": str(tmp_path / "history.db"),
        },
        "llm": {"enabled": False},
    }
    (config_dir / "settings.yaml").write_text(yaml.safe_dump(settings), encoding="utf-8")
    return config_dir


def test_load_config_reads_yaml_and_secrets(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
    cfg = load_config(_write_config(tmp_path))
    assert cfg["game"]["days_per_cycle"] == 1
    assert cfg["_secrets"]["anthropic_api_key"] == "sk-test"


def test_load_config_requires_settings(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path)


def test_status_without_progress(tmp_path: Path):
    result = CliRunner().invoke(main, ["--config-dir", str(_write_config(tmp_path)), "status"])
    assert result.exit_code == 0, result.output
    assert "Points: 0" in result.output
    assert "Last completed: never" in result.output


def test_play_one_single_day_cycle(tmp_path: Path):
    config_dir = _write_config(tmp_path)
    # Pick the thrifty second option for all ten built-in scenarios.
    result = CliRunner().invoke(main, ["--config-dir", str(config_dir), "play"], input="2\n" * 10)

    assert result.exit_code == 0, result.output
    assert "Congratulations!" in result.output
    assert "Points Earned: 125" in result.output
    assert "Weekly Achievement NFT" in result.output

    stored = json.loads((tmp_path / "progress.json").read_text())
    assert stored["budgetQuestProgress"]["points"] == 125
    assert stored["budgetQuestProgress"]["streak"] == 1

    history = CliRunner().invoke(main, ["--config-dir", str(config_dir), "history"])
    assert history.exit_code == 0, history.output
    assert "Cycles: 1 (survived 1, failed 0)" in history.output


def test_reset_clears_progress(tmp_path: Path):
    config_dir = _write_config(tmp_path)
    (tmp_path / "progress.json").write_text(
        json.dumps({"budgetQuestProgress": {"points": 10, "streak": 1, "level": 1, "lastDate": "2024-01-01"}})
    )
    result = CliRunner().invoke(main, ["--config-dir", str(config_dir), "reset", "--yes"])
    assert result.exit_code == 0, result.output
    assert json.loads((tmp_path / "progress.json").read_text()) == {}


@pytest.mark.parametrize(
    "game, message",
    [
        (["days_per_cycle", 7], "'game' must be a mapping"),
        ({"days_per_cycle": 0}, "days_per_cycle"),
        ({"days_per_cycle": "seven"}, "days_per_cycle"),
    ],
)
def test_load_config_rejects_bad_game_section(tmp_path: Path, game, message):
    (tmp_path / "settings.yaml").write_text(yaml.safe_dump({"game": game}), encoding="utf-8")
    with pytest.raises(ValueError, match=message):
        load_config(tmp_path)


def test_load_config_rejects_non_mapping_top_level(tmp_path: Path):
    (tmp_path / "settings.yaml").write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError, match="top level"):
        load_config(tmp_path)


def test_play_two_multi_day_cycles(tmp_path: Path):
    config_dir = _write_config(tmp_path, days=2, summary_delay_seconds=0.01)
    # Ten built-in scenarios a day, two days a cycle, two cycles.
    result = CliRunner().invoke(
        main,
        ["--config-dir", str(config_dir), "play", "--days", "2", "--cycles", "2"],
        input="2\n" * 40,
    )

    assert result.exit_code == 0, result.output
    assert "Day 1 done" in result.output
    assert "Next cycle starts shortly" in result.output
    assert result.output.count("Points Earned: 250") == 2

    history = CliRunner().invoke(main, ["--config-dir", str(config_dir), "history"])
    assert history.exit_code == 0, history.output
    assert "Cycles: 2" in history.output


@pytest.mark.skipif(os.geteuid() == 0, reason="root ignores directory permissions")
def test_reset_reports_unwritable_progress(tmp_path: Path):
    config_dir = _write_config(tmp_path)
    (tmp_path / "progress.json").write_text(
        json.dumps({"budgetQuestProgress": {"points": 10, "streak": 1, "level": 1, "lastDate": "2024-01-01"}})
    )
    tmp_path.chmod(0o500)
    try:
        result = CliRunner().invoke(main, ["--config-dir", str(config_dir), "reset", "--yes"])
    finally:
        tmp_path.chmod(0o700)

    assert result.exit_code == 1
    assert "Could not clear progress" in result.output
