from dataclasses import replace

import pytest

from agrisim.errors import NotFoundError
from agrisim.policies import schedule_decision
from agrisim.simulation.simulation import (
    pause,
    reset_simulation,
    resume,
    run_simulation,
    start_simulation,
    tick,
)
from agrisim.simulation.state import STATUS_COMPLETED, STATUS_RUNNING, STATUS_STOPPED

from conftest import FixedRng


def test_start_initial_state(settings):
    state = start_simulation("drought", crop="rice", settings=settings)
    assert state.current_week == 1
    assert state.duration_weeks == 30
    assert state.status == STATUS_STOPPED
    assert not state.is_playing
    assert state.budget == 50000
    assert state.outcome.target_yield == 6.0
    assert state.outcome.total_score == 75
    assert [p.week for p in state.outcome.weekly_history] == [1]
    assert state.weather_forecast == ["Sunny", "Cloudy", "Rainy"]


def test_start_unknown_inputs(settings):
    with pytest.raises(NotFoundError):
        start_simulation("tundra", settings=settings)
    with pytest.raises(NotFoundError):
        start_simulation("sandbox", crop="barley", settings=settings)
    with pytest.raises(NotFoundError):
        start_simulation("sandbox", soil_type="peat", settings=settings)


def test_tick_advances_one_week(settings, zero_noise):
    state = start_simulation("sandbox", settings=settings)
    tick(state, zero_noise, settings)

    assert state.current_week == 2
    assert len(state.outcome.weekly_history) == 2
    point = state.outcome.weekly_history[-1]
    assert point.week == 2
    assert point.yield_t_ha == pytest.approx(0.05)
    assert point.moisture == pytest.approx(24.98)
    assert point.et == 20
    assert point.nitrogen == 15


def test_moisture_recurrence(settings, seeded_rng):
    state = start_simulation("sandbox", settings=settings)
    for _ in range(20):
        tick(state, seeded_rng, settings)

    history = state.outcome.weekly_history
    for prev, cur in zip(history, history[1:]):
        assert cur.week == prev.week + 1
        assert cur.moisture == pytest.approx(max(10.0, prev.moisture - 0.02))


def test_moisture_never_below_floor(settings, zero_noise):
    dry = replace(settings, initial_state=replace(settings.initial_state, soil_moisture_pct=10.1))
    state = start_simulation("sandbox", settings=dry)
    for _ in range(30):
        tick(state, zero_noise, dry)
    assert state.outcome.soil_moisture_pct == 10.0
    assert min(p.moisture for p in state.outcome.weekly_history) >= 10.0


def test_yield_never_negative(settings):
    state = start_simulation("sandbox", settings=settings)
    for _ in range(10):
        tick(state, FixedRng(-0.5), settings)
    assert state.outcome.yield_t_ha == 0.0


def test_drought_runs_to_completion(settings, zero_noise):
    state = start_simulation("drought", settings=settings)
    resume(state)
    for _ in range(29):
        tick(state, zero_noise, settings)

    assert state.current_week == 30
    assert state.status == STATUS_COMPLETED
    assert not state.is_playing
    assert len(state.outcome.weekly_history) == 30
    assert state.outcome.soil_moisture_pct == pytest.approx(25 - 29 * 0.02)
    assert state.outcome.yield_t_ha == pytest.approx(1.45)
    assert state.outcome.total_score == pytest.approx((1.45 / 4.5 * 100 + 100) / 2)


def test_tick_after_completion_is_noop(settings, zero_noise):
    state = start_simulation("drought", settings=settings)
    for _ in range(30):
        tick(state, zero_noise, settings)

    assert state.current_week == 30
    assert len(state.outcome.weekly_history) == 30
    assert zero_noise.calls == 29


def test_score_stays_in_range(settings):
    state = start_simulation("sandbox", crop="wheat", settings=settings)
    for _ in range(51):
        tick(state, FixedRng(0.05), settings)
        assert 0 <= state.outcome.total_score <= 100
    assert state.outcome.total_score == 100


def test_revenue_and_profit_follow_yield(settings, zero_noise):
    state = start_simulation("sandbox", settings=settings)
    schedule_decision(state, "irrigation", {"amount_mm": 10}, settings.pricing)
    tick(state, zero_noise, settings)

    assert state.outcome.revenue == pytest.approx(0.05 * 500 * 10)
    assert state.outcome.profit == pytest.approx(250 - 20)


def test_pause_and_resume(settings):
    state = start_simulation("sandbox", settings=settings)
    assert resume(state)
    assert state.status == STATUS_RUNNING and state.is_playing
    pause(state)
    assert state.status == STATUS_STOPPED and not state.is_playing


def test_resume_rejected_when_completed(settings, zero_noise):
    state = start_simulation("drought", settings=settings)
    for _ in range(29):
        tick(state, zero_noise, settings)
    assert not resume(state)
    pause(state)
    assert state.status == STATUS_COMPLETED


def test_reset_returns_fresh_state(settings, zero_noise):
    state = start_simulation("monsoon", crop="maize", soil_type="clay", settings=settings)
    schedule_decision(state, "fertilizer", {"dose_kg_ha": 20}, settings.pricing)
    for _ in range(5):
        tick(state, zero_noise, settings)

    fresh = reset_simulation(state, settings)
    assert (fresh.scenario_key, fresh.crop, fresh.soil_type) == ("monsoon", "maize", "clay")
    assert fresh.current_week == 1
    assert fresh.decisions == []
    assert fresh.budget == 50000
    assert len(fresh.outcome.weekly_history) == 1


def test_decision_effects_disabled_by_default(settings, zero_noise):
    state = start_simulation("sandbox", settings=settings)
    schedule_decision(state, "irrigation", {"amount_mm": 25}, settings.pricing)
    tick(state, zero_noise, settings)
    assert state.outcome.soil_moisture_pct == pytest.approx(24.98)


def test_irrigation_effect_when_enabled(effects_settings, zero_noise):
    state = start_simulation("sandbox", settings=effects_settings)
    schedule_decision(state, "irrigation", {"amount_mm": 25}, effects_settings.pricing)
    tick(state, zero_noise, effects_settings)

    expected = 24.98 + 25 * 0.2 * (1 - 24.98 / 100)
    assert state.outcome.soil_moisture_pct == pytest.approx(expected)
    assert state.outcome.weekly_history[-1].moisture == pytest.approx(expected)


def test_fertilizer_effect_when_enabled(effects_settings, zero_noise):
    state = start_simulation("sandbox", settings=effects_settings)
    schedule_decision(
        state, "fertilizer", {"dose_kg_ha": 60, "use_inhibitor": True}, effects_settings.pricing
    )
    tick(state, zero_noise, effects_settings)

    assert state.outcome.yield_t_ha == pytest.approx(0.05 + 0.15 * 0.5)
    assert state.outcome.nitrogen_leached_pct == pytest.approx(15 + 60 * 0.05 * 0.5)


def test_run_simulation_with_plan(settings):
    plan = {
        1: [("irrigation", {"amount_mm": 20})],
        5: [("fertilizer", {"dose_kg_ha": 40}), ("irrigation", {"amount_mm": 100000})],
    }
    state = run_simulation("drought", seed=7, decision_plan=plan, settings=settings)

    assert state.status == STATUS_COMPLETED
    assert len(state.outcome.weekly_history) == 30
    assert [d.type for d in state.decisions] == ["irrigation", "fertilizer"]
    assert state.outcome.costs.total == pytest.approx(40 + 200)
    assert state.budget == pytest.approx(50000 - 240)


def test_run_simulation_is_reproducible(settings):
    a = run_simulation("sandbox", seed=3, settings=settings)
    b = run_simulation("sandbox", seed=3, settings=settings)
    assert a.outcome.weekly_history == b.outcome.weekly_history
