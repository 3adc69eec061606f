"""Configuration loading from settings.yaml and .env."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv


_SECTIONS = ("game", "storage", "llm")


def _check_shape(cfg: object, path: Path) -> None:
    """Reject settings whose sections would break `cfg.get(section, {})` lookups."""
    if not isinstance(cfg, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    for section in _SECTIONS:
        value = cfg.get(section)
        if value is not None and not isinstance(value, dict):
            raise ValueError(f"{path}: '{section}' must be a mapping, got {type(value).__name__}")
    scenarios = cfg.get("scenarios")
    if scenarios is not None and not isinstance(scenarios, list):
        raise ValueError(f"{path}: 'scenarios' must be a list")

    game = cfg.get("game") or {}
    days = game.get("days_per_cycle", 7)
    if isinstance(days, bool) or not isinstance(days, int) or days < 1:
        raise ValueError(f"{path}: game.days_per_cycle must be a positive integer, got {days!r}")


def load_config(
    config_dir: str | Path | None = None,
) -> dict:
    """Load settings.yaml and .env, return merged config dict."""
    if config_dir is None:
        config_dir = Path(__file__).resolve().parent.parent / "config"
    config_dir = Path(config_dir)

    # Load .env (silently skip if missing)
    load_dotenv(config_dir / ".env")

    settings_path = config_dir / "settings.yaml"
    if not settings_path.exists():
        raise FileNotFoundError(f"Config not found: {settings_path}")

    with open(settings_path, encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}
    _check_shape(cfg, settings_path)

    cfg["_secrets"] = {
        "anthropic_api_key": os.getenv("ANTHROPIC_API_KEY", ""),
    }

    return cfg
