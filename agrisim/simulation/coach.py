# Contextual coaching tips for the agrisim weekly simulation
#
# Rules inspect the current session and emit short, week-stamped tips.

from dataclasses import dataclass, field


MAX_ACTIVE_TIPS = 3
SEASON_LENGTH_WEEKS = 13


@dataclass(frozen=True)
class CoachTip:
    """One coaching tip. id is "{trigger}-{week}" so a dismissal sticks for that week."""
    id: str
    type: str  # suggestion, warning, success, info
    title: str
    message: str
    actionable: bool
    priority: str  # high, medium, low
    week: int
    triggers: tuple = field(default_factory=tuple)


def _tip(trigger, week, **kwargs):
    return CoachTip(id=f"{trigger}-{week}", week=week, triggers=(trigger,), **kwargs)


def generate_coach_tips(state, dismissed=(), active=()):
    """Build the tips to show for the current week.

    Args:
        state: SimulationState
        dismissed: Tip ids the player has dismissed
        active: Tips already on screen; new tips are appended after them

    Returns:
        list of at most MAX_ACTIVE_TIPS CoachTip, most recent last
    """
    week = state.current_week
    outcome = state.outcome
    forecast = state.weather_forecast
    tips = []

    if outcome.soil_moisture_pct < 15:
        tips.append(_tip(
            "moisture-low", week, type="warning", priority="high", actionable=True,
            title="Low Soil Moisture Detected",
            message="Soil moisture is critically low. Consider immediate irrigation "
                    "to prevent crop stress and yield loss.",
        ))
    elif outcome.soil_moisture_pct > 40:
        tips.append(_tip(
            "moisture-high", week, type="suggestion", priority="medium", actionable=True,
            title="High Soil Moisture",
            message="Soil moisture is very high. You may want to delay irrigation "
                    "and monitor for waterlogging risks.",
        ))

    if "Rainy" in forecast or "Storm" in forecast:
        tips.append(_tip(
            "weather-rain", week, type="info", priority="medium", actionable=True,
            title="Heavy Rain Forecasted",
            message="Rain is predicted in the coming days. Consider delaying nitrogen "
                    "application by 1 week to avoid nutrient washout.",
        ))

    if "Drought" in forecast:
        tips.append(_tip(
            "weather-drought", week, type="warning", priority="high", actionable=True,
            title="Drought Conditions Expected",
            message="Extended dry period ahead. Switch to deficit irrigation strategy "
                    "to conserve water while maintaining 80% yield target.",
        ))

    if outcome.yield_t_ha / outcome.target_yield < 0.8:
        tips.append(_tip(
            "yield-low", week, type="suggestion", priority="high", actionable=True,
            title="Yield Below Target",
            message="Current yield projection is below 80% of target. Review your "
                    "irrigation and fertilization strategy.",
        ))

    if (100 - outcome.et_gap_pct) / 100 > 0.9:
        tips.append(_tip(
            "efficiency-excellent", week, type="success", priority="low", actionable=False,
            title="Excellent Water Efficiency!",
            message="Your water use efficiency is outstanding. This sustainable approach "
                    "will benefit long-term soil health.",
        ))

    season = (week - 1) // SEASON_LENGTH_WEEKS
    if season == 1 and week % SEASON_LENGTH_WEEKS == 1:
        tips.append(_tip(
            "season-summer", week, type="info", priority="medium", actionable=True,
            title="Summer Season Tips",
            message="Growing season is beginning. Focus on consistent moisture levels "
                    "and split nitrogen applications for optimal growth.",
        ))

    dismissed = set(dismissed)
    active = list(active)
    active_ids = {t.id for t in active}
    fresh = [t for t in tips if t.id not in dismissed and t.id not in active_ids]
    return (active + fresh)[-MAX_ACTIVE_TIPS:]
