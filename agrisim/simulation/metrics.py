# Outcome scoring for the agrisim weekly simulation
# Layer 3: Simulation Engine
#
# Pure functions deriving the composite score, financial summary and
# display classifications from an OutcomeSnapshot. No I/O.

from dataclasses import dataclass, replace

from agrisim.settings.loader import get_default_settings


GRADE_BANDS = (
    (90, "A+"),
    (80, "A"),
    (70, "B"),
    (60, "C"),
)


def _clip(value, low=0.0, high=100.0):
    return max(low, min(high, value))


def compute_yield_score(yield_t_ha, target_yield):
    """Yield as a percentage of target, capped at 100."""
    if target_yield <= 0:
        raise ValueError(f"target_yield must be > 0, got {target_yield}")
    return min(100.0, (yield_t_ha / target_yield) * 100)


def compute_moisture_score(moisture_pct, threshold_pct=20.0):
    """Full marks above the threshold, linear below it."""
    if moisture_pct > threshold_pct:
        return 100.0
    return (moisture_pct / threshold_pct) * 100


def compute_revenue(yield_t_ha, economics=None):
    """Revenue = yield * price per ton * area factor."""
    economics = economics or get_default_settings().economics
    return yield_t_ha * economics.crop_price_usd_per_ton * economics.area_factor


def score_outcome(outcome, settings=None):
    """Recompute score and financials for an outcome snapshot.

    Formulas:
        yield_score    = min(100, yield / target * 100)
        moisture_score = 100 if moisture > 20 else moisture / 20 * 100
        total_score    = (yield_score + moisture_score) / 2
        revenue        = yield * 500 * 10
        profit         = revenue - costs.total

    Args:
        outcome: OutcomeSnapshot with current yield, moisture and costs
        settings: SimulationSettings (packaged defaults if None)

    Returns:
        New OutcomeSnapshot with total_score, revenue and profit updated.
        The weekly history list is shared, not copied.
    """
    settings = settings or get_default_settings()
    econ = settings.economics

    yield_score = compute_yield_score(outcome.yield_t_ha, outcome.target_yield)
    moisture_score = compute_moisture_score(
        outcome.soil_moisture_pct, econ.moisture_score_threshold_pct
    )
    total_score = _clip((yield_score + moisture_score) / 2)
    revenue = compute_revenue(outcome.yield_t_ha, econ)

    return replace(
        outcome,
        total_score=total_score,
        revenue=revenue,
        profit=revenue - outcome.costs.total,
    )


def grade(score):
    """Letter grade for a 0-100 score (display only)."""
    for threshold, letter in GRADE_BANDS:
        if score >= threshold:
            return letter
    return "D"


@dataclass
class OutcomeMetrics:
    """Display classifications derived from an outcome snapshot."""
    grade: str
    yield_progress_pct: float
    moisture_health: str  # optimal, adequate, low
    et_efficiency: str  # excellent, good, poor
    leaching_risk: str  # low, medium, high
    water_use_efficiency_pct: float
    sustainability_pct: float


def classify_moisture(moisture_pct):
    if moisture_pct > 20:
        return "optimal"
    if moisture_pct > 10:
        return "adequate"
    return "low"


def classify_et_efficiency(et_gap_pct):
    if et_gap_pct < 20:
        return "excellent"
    if et_gap_pct < 40:
        return "good"
    return "poor"


def classify_leaching_risk(nitrogen_leached_pct):
    if nitrogen_leached_pct < 10:
        return "low"
    if nitrogen_leached_pct < 25:
        return "medium"
    return "high"


def compute_outcome_metrics(outcome):
    """Derive the display metrics shown alongside the score.

    Sustainability = max(0, 100 - nitrogen_leached - et_gap / 2)
    """
    return OutcomeMetrics(
        grade=grade(outcome.total_score),
        yield_progress_pct=min(100.0, outcome.yield_t_ha / outcome.target_yield * 100),
        moisture_health=classify_moisture(outcome.soil_moisture_pct),
        et_efficiency=classify_et_efficiency(outcome.et_gap_pct),
        leaching_risk=classify_leaching_risk(outcome.nitrogen_leached_pct),
        water_use_efficiency_pct=100 - outcome.et_gap_pct,
        sustainability_pct=max(0.0, 100 - outcome.nitrogen_leached_pct - outcome.et_gap_pct / 2),
    )


def compute_financial_summary(state):
    """Budget and profit summary for a session."""
    outcome = state.outcome
    return {
        "budget_remaining_usd": state.budget,
        "irrigation_cost_usd": outcome.costs.irrigation,
        "fertilizer_cost_usd": outcome.costs.fertilizer,
        "total_cost_usd": outcome.costs.total,
        "revenue_usd": outcome.revenue,
        "profit_usd": outcome.profit,
    }
