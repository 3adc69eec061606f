"""Tests for scenario, cycle and progress models."""

from datetime import date

import pytest

from quest.catalog import DEFAULT_SCENARIOS, load_catalog, parse_catalog
from quest.models import PENDING_COMPLETION, Cycle, Option, Progress, Scenario


class TestOption:
    def test_from_config(self):
        opt = Option.from_config({"text": "Water (₱20)", "cost": 20, "points": 10})
        assert opt == Option(text="Water (₱20)", cost=20, points=10)

    def test_negative_points_allowed(self):
        assert Option.from_config({"text": "Taxi", "cost": 150, "points": -10}).points == -10

    def test_negative_cost_rejected(self):
        with pytest.raises(ValueError):
            Option.from_config({"text": "Refund", "cost": -5, "points": 0})

    def test_non_integer_cost_rejected(self):
        with pytest.raises(ValueError):
            Option.from_config({"text": "Coffee", "cost": "100", "points": 0})
        with pytest.raises(ValueError):
            Option.from_config({"text": "Coffee", "cost": True, "points": 0})


class TestScenario:
    def test_from_config_keeps_option_order(self):
        s = Scenario.from_config({
            "prompt": "Lunch plan:",
            "options": [
                {"text": "Fast food", "cost": 200, "points": -15},
                {"text": "Home-cooked", "cost": 80, "points": 15},
            ],
        })
        assert s.prompt == "Lunch plan:"
        assert [o.text for o in s.options] == ["Fast food", "Home-cooked"]

    def test_needs_options(self):
        with pytest.raises(ValueError):
            Scenario.from_config({"prompt": "Empty", "options": []})


class TestCatalog:
    def test_default_catalog(self):
        catalog = load_catalog({})
        assert len(catalog) == len(DEFAULT_SCENARIOS) == 10
        assert catalog[0].prompt == "Choose your morning beverage:"
        assert all(len(s.options) == 2 for s in catalog)

    def test_config_overrides_default(self):
        catalog = load_catalog({
            "scenarios": [
                {"prompt": "Only one", "options": [{"text": "x", "cost": 1, "points": 1}]},
            ]
        })
        assert len(catalog) == 1
        assert catalog[0].prompt == "Only one"

    def test_empty_catalog_rejected(self):
        with pytest.raises(ValueError):
            parse_catalog([])


class TestCycle:
    def test_total_points_includes_banked_days(self):
        cycle = Cycle(budget_total=700, remaining=700, scenario_count=10, days_per_cycle=7,
                      points_earned=15, carried_points=40)
        assert cycle.total_points == 55

    def test_is_complete_tracks_pending_status(self):
        cycle = Cycle(budget_total=100, remaining=100, scenario_count=2)
        assert cycle.is_complete is False
        cycle.status = PENDING_COMPLETION
        assert cycle.is_complete is True

    def test_is_final_day(self):
        assert Cycle(budget_total=1, remaining=1, scenario_count=1).is_final_day is True
        week = Cycle(budget_total=1, remaining=1, scenario_count=1, days_per_cycle=7)
        assert week.is_final_day is False
        week.cycle_day_index = 6
        assert week.is_final_day is True


class TestProgress:
    def test_to_dict_uses_stored_field_names(self):
        p = Progress(total_points=105, streak=3, level=2, last_completion_date=date(2024, 1, 2))
        assert p.to_dict() == {"points": 105, "streak": 3, "level": 2, "lastDate": "2024-01-02"}

    def test_empty_date_serializes_as_empty_string(self):
        assert Progress().to_dict()["lastDate"] == ""

    def test_roundtrip(self):
        p = Progress(total_points=105, streak=3, level=2, last_completion_date=date(2024, 1, 2))
        assert Progress.from_dict(p.to_dict(), points_per_level=100) == p
        assert Progress.from_dict(Progress().to_dict(), points_per_level=100) == Progress()

    def test_level_is_recomputed_on_load(self):
        p = Progress.from_dict({"points": 250, "streak": 1, "level": 99, "lastDate": ""}, points_per_level=100)
        assert p.level == 3

    @pytest.mark.parametrize(
        "raw",
        [
            None,
            [],
            "garbage",
            {},
            {"points": "10", "streak": 1, "lastDate": ""},
            {"points": 10, "streak": -1, "lastDate": ""},
            {"points": 10, "streak": True, "lastDate": ""},
            {"points": 10, "streak": 1, "lastDate": "not-a-date"},
            {"points": 10, "streak": 1, "lastDate": 20240102},
        ],
    )
    def test_malformed_records_are_rejected(self, raw):
        assert Progress.from_dict(raw, points_per_level=100) is None
