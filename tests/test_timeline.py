import random
from datetime import date

from agrisim.simulation.timeline import (
    CROP_STAGES,
    FARM_EVENTS,
    WEATHER_TYPES,
    build_week_calendar,
    crop_stage_for_week,
    season_for_month,
)


def test_calendar_covers_every_week():
    weeks = build_week_calendar(52, rng=random.Random(0))
    assert [w.week for w in weeks] == list(range(1, 53))
    assert weeks[0].date == date(2024, 1, 1)
    assert weeks[9].date == date(2024, 3, 4)
    assert all(w.weather in WEATHER_TYPES for w in weeks)
    assert all(len(w.events) <= 1 for w in weeks)
    assert all(e in FARM_EVENTS for w in weeks for e in w.events)


def test_calendar_is_reproducible():
    assert build_week_calendar(30, rng=random.Random(5)) == build_week_calendar(30, rng=random.Random(5))


def test_seasons():
    assert season_for_month(1) == "Winter"
    assert season_for_month(4) == "Spring"
    assert season_for_month(7) == "Summer"
    assert season_for_month(10) == "Fall"
    assert season_for_month(12) == "Winter"


def test_crop_stages_cycle():
    assert crop_stage_for_week(1) == "Planting"
    assert crop_stage_for_week(7) == "Planting"
    assert crop_stage_for_week(8) == "Germination"
    assert crop_stage_for_week(7 * len(CROP_STAGES) + 1) == "Planting"
