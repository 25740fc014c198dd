# Week calendar for the simulation timeline
#
# One WeekInfo per simulated week: calendar date, season, a sampled weather
# label, the crop stage, and occasional farm events.

import random
from dataclasses import dataclass, field
from datetime import date, timedelta


WEATHER_TYPES = ("Sunny", "Rainy", "Cloudy", "Drought", "Storm")
CROP_STAGES = (
    "Planting", "Germination", "Vegetative", "Flowering",
    "Fruit Development", "Maturity", "Harvest", "Fallow",
)
FARM_EVENTS = (
    "Irrigation scheduled",
    "Fertilizer application",
    "Pest monitoring",
    "Weather alert",
    "Harvest window",
)
WEEKS_PER_STAGE = 7
EVENT_PROBABILITY = 0.3


@dataclass(frozen=True)
class WeekInfo:
    week: int
    date: date
    season: str
    weather: str
    crop_stage: str
    events: tuple = field(default_factory=tuple)


def season_for_month(month):
    """Northern-hemisphere meteorological season for a month (1-12)."""
    if 3 <= month <= 5:
        return "Spring"
    if 6 <= month <= 8:
        return "Summer"
    if 9 <= month <= 11:
        return "Fall"
    return "Winter"


def crop_stage_for_week(week):
    return CROP_STAGES[((week - 1) // WEEKS_PER_STAGE) % len(CROP_STAGES)]


def build_week_calendar(total_weeks, rng=None, start_date=date(2024, 1, 1)):
    """Build the timeline for a scenario.

    Args:
        total_weeks: Number of weeks (scenario duration)
        rng: random.Random-like source with random() and choice()
        start_date: Date of week 1

    Returns:
        list of WeekInfo, index w - 1 holding week w
    """
    rng = rng if rng is not None else random.Random()
    weeks = []
    for week in range(1, total_weeks + 1):
        week_date = start_date + timedelta(weeks=week - 1)
        events = ()
        weather = rng.choice(WEATHER_TYPES)
        if rng.random() < EVENT_PROBABILITY:
            events = (rng.choice(FARM_EVENTS),)
        weeks.append(WeekInfo(
            week=week,
            date=week_date,
            season=season_for_month(week_date.month),
            weather=weather,
            crop_stage=crop_stage_for_week(week),
            events=events,
        ))
    return weeks
