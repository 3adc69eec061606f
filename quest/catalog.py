"""Scenario catalog - the fixed, ordered list of spending decisions."""

from __future__ import annotations

import logging
from typing import Any

from .models import Scenario

logger = logging.getLogger(__name__)

DEFAULT_SCENARIOS: list[dict[str, Any]] = [
    {
        "prompt": "Choose your morning beverage:",
        "options": [
            {"text": "Coffee (₱100)", "cost": 100, "points": -10},
            {"text": "Water (₱20)", "cost": 20, "points": 10},
        ],
    },
    {
        "prompt": "Lunch plan:",
        "options": [
            {"text": "Fast food (₱200)", "cost": 200, "points": -15},
            {"text": "Home-cooked (₱80)", "cost": 80, "points": 15},
        ],
    },
    {
        "prompt": "Transportation for the day:",
        "options": [
            {"text": "Taxi (₱150)", "cost": 150, "points": -10},
            {"text": "Jeepney (₱50)", "cost": 50, "points": 10},
        ],
    },
    {
        "prompt": "Shopping impulse:",
        "options": [
            {"text": "New shirt (₱300)", "cost": 300, "points": -20},
            {"text": "Save the money (₱0)", "cost": 0, "points": 20},
        ],
    },
    {
        "prompt": "Snack choice:",
        "options": [
            {"text": "Chips (₱120)", "cost": 120, "points": -10},
            {"text": "Fruit (₱80)", "cost": 80, "points": 10},
        ],
    },
    {
        "prompt": "Entertainment:",
        "options": [
            {"text": "Movie ticket (₱250)", "cost": 250, "points": -15},
            {"text": "Free online content", "cost": 0, "points": 15},
        ],
    },
    {
        "prompt": "Transportation to work:",
        "options": [
            {"text": "Ride-share (₱180)", "cost": 180, "points": -10},
            {"text": "Public bus (₱60)", "cost": 60, "points": 10},
        ],
    },
    {
        "prompt": "Coffee shop vs. home brew:",
        "options": [
            {"text": "Coffee shop (₱150)", "cost": 150, "points": -10},
            {"text": "Home brew (₱30)", "cost": 30, "points": 10},
        ],
    },
    {
        "prompt": "Grocery shopping:",
        "options": [
            {"text": "Impulse buy (₱200)", "cost": 200, "points": -15},
            {"text": "Plan list (₱0)", "cost": 0, "points": 15},
        ],
    },
    {
        "prompt": "Daily transport:",
        "options": [
            {"text": "Taxi (₱200)", "cost": 200, "points": -10},
            {"text": "Bike (₱0)", "cost": 0, "points": 10},
        ],
    },
]


def parse_catalog(raw: list[dict[str, Any]]) -> tuple[Scenario, ...]:
    if not raw:
        raise ValueError("scenario catalog is empty")
    return tuple(Scenario.from_config(item) for item in raw)


def load_catalog(cfg: dict | None = None) -> tuple[Scenario, ...]:
    """Catalog from `scenarios:` in settings, else the built-in one."""
    raw = (cfg or {}).get("scenarios")
    if raw:
        catalog = parse_catalog(raw)
        logger.debug("Loaded %d scenarios from config", len(catalog))
        return catalog
    return parse_catalog(DEFAULT_SCENARIOS)
