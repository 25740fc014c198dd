# State management for the agrisim weekly farm simulation
# Layer 3: Simulation Engine
#
# Dataclasses for tracking simulation state across weekly time steps.
# State is updated in-place by the weekly stepper and the decision model;
# display code only reads it.

from dataclasses import dataclass, field
from typing import Optional

from agrisim.errors import NotFoundError
from agrisim.settings.loader import get_crop, get_default_settings, get_scenario


# Simulation lifecycle
STATUS_STOPPED = "stopped"
STATUS_RUNNING = "running"
STATUS_COMPLETED = "completed"


@dataclass(frozen=True)
class LocationRef:
    """Selected field location."""
    lat: float
    lon: float
    name: str = ""

    def __post_init__(self):
        if not self.name:
            object.__setattr__(self, "name", f"{self.lat:.2f}, {self.lon:.2f}")


@dataclass(frozen=True)
class Decision:
    """A priced, scheduled player decision.

    Immutable once created; the session keeps an append-only log of them.
    amount holds the decision magnitude: mm for irrigation, kg/ha for
    fertilizer, animals/ha for livestock.
    """
    id: str
    type: str
    title: str
    status: str
    impact: str
    cost: float
    effective_week: int
    amount: float = 0.0
    params: dict = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class WeeklyPoint:
    """One simulated week, appended to the outcome history."""
    week: int
    yield_t_ha: float
    moisture: float
    et: float
    nitrogen: float


@dataclass
class Costs:
    """Accumulated spend by decision type (USD). Livestock is never charged."""
    irrigation: float = 0.0
    fertilizer: float = 0.0
    total: float = 0.0


@dataclass
class OutcomeSnapshot:
    """Current agronomic and financial outcome of the session.

    Scalar fields are recomputed every week; weekly_history only grows.
    """
    yield_t_ha: float
    target_yield: float
    soil_moisture_pct: float
    et_gap_pct: float
    nitrogen_leached_pct: float
    total_score: float
    weekly_history: list = field(default_factory=list)  # List of WeeklyPoint
    costs: Costs = field(default_factory=Costs)
    revenue: float = 0.0
    profit: float = 0.0


@dataclass
class SimulationState:
    """Top-level state for one simulation session."""
    scenario_key: str
    crop: str
    soil_type: str
    duration_weeks: int
    budget: float
    outcome: OutcomeSnapshot
    current_week: int = 1
    is_playing: bool = False
    playback_speed: float = 1.0
    status: str = STATUS_STOPPED
    location: Optional[LocationRef] = None
    decisions: list = field(default_factory=list)  # List of Decision
    weather_forecast: list = field(default_factory=list)

    def is_simulation_complete(self):
        """Check if simulation has reached its final week."""
        return self.status == STATUS_COMPLETED

    def decisions_for_week(self, week):
        """Decisions scheduled to take effect in the given week."""
        return [d for d in self.decisions if d.effective_week == week]


def initialize_outcome(target_yield, settings):
    """Build the week-1 outcome snapshot from initial settings.

    The history is seeded with a baseline point for week 1 so that
    weekly_history[w - 1] is always the record for week w.
    """
    init = settings.initial_state
    outcome = OutcomeSnapshot(
        yield_t_ha=0.0,
        target_yield=target_yield,
        soil_moisture_pct=init.soil_moisture_pct,
        et_gap_pct=init.et_gap_pct,
        nitrogen_leached_pct=init.nitrogen_leached_pct,
        total_score=init.total_score,
    )
    outcome.weekly_history.append(WeeklyPoint(
        week=1,
        yield_t_ha=outcome.yield_t_ha,
        moisture=outcome.soil_moisture_pct,
        et=outcome.et_gap_pct,
        nitrogen=outcome.nitrogen_leached_pct,
    ))
    return outcome


def initialize_simulation_state(scenario_key, crop="wheat", soil_type="loam", settings=None):
    """Initialize simulation state for a newly selected scenario.

    Args:
        scenario_key: Key into the scenario catalog (sandbox, drought, monsoon)
        crop: Crop name; determines the target yield
        soil_type: Soil type label
        settings: SimulationSettings (packaged defaults if None)

    Returns:
        SimulationState in the stopped status at week 1

    Raises:
        NotFoundError: If scenario, crop or soil type is unknown
    """
    settings = settings or get_default_settings()
    scenario = get_scenario(scenario_key, settings)
    crop_profile = get_crop(crop, settings)
    if soil_type not in settings.soil_types:
        valid = ", ".join(settings.soil_types)
        raise NotFoundError(f"Unknown soil type '{soil_type}'. Valid: {valid}")

    return SimulationState(
        scenario_key=scenario.key,
        crop=crop_profile.name,
        soil_type=soil_type,
        duration_weeks=scenario.duration_weeks,
        budget=settings.initial_state.budget_usd,
        outcome=initialize_outcome(crop_profile.target_yield_t_ha, settings),
        weather_forecast=list(settings.initial_state.weather_forecast),
    )
