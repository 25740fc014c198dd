import pytest

from agrisim.simulation.metrics import (
    classify_et_efficiency,
    classify_leaching_risk,
    classify_moisture,
    compute_financial_summary,
    compute_moisture_score,
    compute_outcome_metrics,
    compute_yield_score,
    grade,
    score_outcome,
)
from agrisim.simulation.state import Costs, OutcomeSnapshot
from agrisim.simulation.simulation import start_simulation


def _outcome(yield_t_ha=2.25, moisture=25.0, et=20.0, nitrogen=15.0, spent=0.0):
    return OutcomeSnapshot(
        yield_t_ha=yield_t_ha,
        target_yield=4.5,
        soil_moisture_pct=moisture,
        et_gap_pct=et,
        nitrogen_leached_pct=nitrogen,
        total_score=75.0,
        costs=Costs(total=spent),
    )


def test_yield_score_is_capped():
    assert compute_yield_score(2.25, 4.5) == pytest.approx(50)
    assert compute_yield_score(9.0, 4.5) == 100


def test_yield_score_rejects_bad_target():
    with pytest.raises(ValueError):
        compute_yield_score(1.0, 0)


def test_moisture_score():
    assert compute_moisture_score(25) == 100
    assert compute_moisture_score(20) == pytest.approx(100)
    assert compute_moisture_score(10) == pytest.approx(50)


def test_score_outcome(settings):
    scored = score_outcome(_outcome(spent=1000), settings)
    assert scored.total_score == pytest.approx(75)
    assert scored.revenue == pytest.approx(2.25 * 500 * 10)
    assert scored.profit == pytest.approx(11250 - 1000)


def test_score_outcome_shares_history(settings):
    outcome = _outcome()
    assert score_outcome(outcome, settings).weekly_history is outcome.weekly_history


@pytest.mark.parametrize("yield_t_ha", [0.0, 1.0, 4.5, 20.0])
@pytest.mark.parametrize("moisture", [0.0, 10.0, 20.0, 100.0])
def test_total_score_bounds(settings, yield_t_ha, moisture):
    scored = score_outcome(_outcome(yield_t_ha=yield_t_ha, moisture=moisture), settings)
    assert 0 <= scored.total_score <= 100


@pytest.mark.parametrize("score, letter", [
    (95, "A+"), (90, "A+"), (85, "A"), (75, "B"), (60, "C"), (59.9, "D"), (0, "D"),
])
def test_grade(score, letter):
    assert grade(score) == letter


def test_classifications():
    assert classify_moisture(25) == "optimal"
    assert classify_moisture(15) == "adequate"
    assert classify_moisture(10) == "low"
    assert classify_et_efficiency(10) == "excellent"
    assert classify_et_efficiency(30) == "good"
    assert classify_et_efficiency(40) == "poor"
    assert classify_leaching_risk(5) == "low"
    assert classify_leaching_risk(15) == "medium"
    assert classify_leaching_risk(25) == "high"


def test_outcome_metrics():
    metrics = compute_outcome_metrics(_outcome())
    assert metrics.grade == "B"
    assert metrics.yield_progress_pct == pytest.approx(50)
    assert metrics.water_use_efficiency_pct == 80
    assert metrics.sustainability_pct == pytest.approx(75)


def test_financial_summary(settings):
    state = start_simulation("sandbox", settings=settings)
    summary = compute_financial_summary(state)
    assert summary["budget_remaining_usd"] == 50000
    assert summary["total_cost_usd"] == 0
