# Weekly simulation loop for the agrisim farm game
# Layer 3: Simulation Engine
#
# Advances farm state one week at a time: baseline yield growth with
# weather noise, soil moisture decay, history append and outcome rescoring.
# Scheduled decisions are charged when proposed; folding their effects into
# the weekly arithmetic is opt-in via settings.decision_effects.

import logging
import random

from agrisim.errors import InsufficientBudgetError
from agrisim.policies.decision_policies import schedule_decision
from agrisim.settings.loader import get_default_settings, get_scenario
from agrisim.simulation.metrics import grade, score_outcome
from agrisim.simulation.state import (
    STATUS_COMPLETED,
    STATUS_RUNNING,
    STATUS_STOPPED,
    WeeklyPoint,
    initialize_simulation_state,
)

logger = logging.getLogger(__name__)


def start_simulation(scenario_key, crop="wheat", soil_type="loam", settings=None):
    """Create a fresh session for the selected scenario.

    Raises:
        NotFoundError: If the scenario, crop or soil type is unknown
    """
    settings = settings or get_default_settings()
    state = initialize_simulation_state(scenario_key, crop, soil_type, settings)
    scenario = get_scenario(scenario_key, settings)
    logger.info("%s started (%s, %s soil, %d weeks)",
                scenario.title, crop, soil_type, scenario.duration_weeks)
    return state


def resume(state):
    """stopped -> running. Returns False if the run is already complete."""
    if state.status == STATUS_COMPLETED:
        return False
    state.status = STATUS_RUNNING
    state.is_playing = True
    return True


def pause(state):
    """running -> stopped. A completed run stays completed."""
    if state.status == STATUS_RUNNING:
        state.status = STATUS_STOPPED
    state.is_playing = False


def reset_simulation(state, settings=None):
    """Return a fresh stopped session for the same scenario, crop and soil."""
    return initialize_simulation_state(state.scenario_key, state.crop, state.soil_type, settings)


def apply_decision_effects(state, week, settings=None):
    """Apply decisions taking effect this week to the outcome variables.

    Only used when settings.decision_effects.enabled is true.
    - Irrigation: moisture += mm * k * (1 - moisture / 100)
    - Fertilizer: yield += max_bonus * dose / (dose + half_saturation);
      leaching += dose * per_kg, reduced when an inhibitor is used
    - Livestock: ET gap shifts with stocking rate relative to 2 animals/ha

    Args:
        state: SimulationState to update in place
        week: Week whose decisions should be applied
        settings: SimulationSettings (packaged defaults if None)

    Returns:
        list of applied Decision records
    """
    settings = settings or get_default_settings()
    fx = settings.decision_effects
    outcome = state.outcome
    applied = state.decisions_for_week(week)

    for decision in applied:
        if decision.type == "irrigation":
            headroom = 1.0 - outcome.soil_moisture_pct / 100.0
            gain = decision.amount * fx.irrigation_moisture_per_mm * headroom
            outcome.soil_moisture_pct = min(100.0, outcome.soil_moisture_pct + gain)
        elif decision.type == "fertilizer":
            dose = decision.amount
            if dose > 0:
                bonus = fx.fertilizer_max_yield_bonus_t_ha * dose / (dose + fx.fertilizer_half_saturation_kg_ha)
                outcome.yield_t_ha += bonus
            leached = dose * fx.fertilizer_leaching_per_kg
            if decision.params.get("use_inhibitor"):
                leached *= (1.0 - fx.inhibitor_leaching_reduction)
            outcome.nitrogen_leached_pct = min(100.0, outcome.nitrogen_leached_pct + leached)
        elif decision.type == "livestock":
            shift = (decision.amount - 2.0) * fx.livestock_et_gap_per_animal
            outcome.et_gap_pct = max(0.0, min(100.0, outcome.et_gap_pct + shift))

    return applied


def tick(state, rng=None, settings=None):
    """Advance the simulation by exactly one week.

    Algorithm:
        1. new_week = current_week + 1; past the final week -> completed, no update
        2. yield' = yield + 0.05 + U(-0.05, 0.05)
        3. moisture' = max(10, moisture - 0.02)
        4. append WeeklyPoint(new_week, yield', moisture', et_gap, nitrogen)
        5. rescore outcome
        6. reaching the final week -> completed

    Args:
        state: SimulationState, updated in place
        rng: Random source with uniform(a, b), e.g. random.Random or a numpy
            Generator. Defaults to the global random module.
        settings: SimulationSettings (packaged defaults if None)

    Returns:
        The same SimulationState
    """
    if state.status == STATUS_COMPLETED:
        return state

    settings = settings or get_default_settings()
    rng = rng if rng is not None else random
    stepper = settings.stepper
    outcome = state.outcome

    new_week = state.current_week + 1
    if new_week > state.duration_weeks:
        state.status = STATUS_COMPLETED
        state.is_playing = False
        return state

    noise = rng.uniform(-stepper.weather_noise_t_ha, stepper.weather_noise_t_ha)
    outcome.yield_t_ha = max(0.0, outcome.yield_t_ha + stepper.base_weekly_yield_t_ha + noise)
    outcome.soil_moisture_pct = max(
        stepper.moisture_floor_pct, outcome.soil_moisture_pct - stepper.moisture_decay_pct
    )

    if settings.decision_effects.enabled:
        apply_decision_effects(state, new_week, settings)

    outcome.weekly_history.append(WeeklyPoint(
        week=new_week,
        yield_t_ha=outcome.yield_t_ha,
        moisture=outcome.soil_moisture_pct,
        et=outcome.et_gap_pct,
        nitrogen=outcome.nitrogen_leached_pct,
    ))

    state.outcome = score_outcome(outcome, settings)
    state.current_week = new_week

    if new_week == state.duration_weeks:
        state.status = STATUS_COMPLETED
        state.is_playing = False
        logger.info("Simulation complete: week %d, final score %.1f (%s)",
                    new_week, state.outcome.total_score, grade(state.outcome.total_score))

    return state


def run_simulation(scenario_key="sandbox", crop="wheat", soil_type="loam", seed=None,
                   rng=None, decision_plan=None, settings=None, verbose=False):
    """Run a session headless from week 1 to completion.

    Args:
        scenario_key: Scenario to play
        crop: Crop name
        soil_type: Soil type
        seed: Seed for a fresh random.Random (ignored if rng is given)
        rng: Random source with uniform(a, b)
        decision_plan: Optional {week: [(decision_type, params), ...]};
            each decision is scheduled when the session reaches that week.
            Over-budget decisions are skipped.
        settings: SimulationSettings (packaged defaults if None)
        verbose: If True, print progress messages

    Returns:
        SimulationState in the completed status
    """
    settings = settings or get_default_settings()
    rng = rng if rng is not None else random.Random(seed)
    decision_plan = decision_plan or {}

    state = start_simulation(scenario_key, crop, soil_type, settings)
    resume(state)

    if verbose:
        print(f"Starting simulation: {scenario_key} ({crop}, {soil_type} soil), "
              f"{state.duration_weeks} weeks, budget ${state.budget:,.0f}")

    while not state.is_simulation_complete():
        for decision_type, params in decision_plan.get(state.current_week, []):
            try:
                decision = schedule_decision(state, decision_type, params, settings.pricing)
            except InsufficientBudgetError as e:
                if verbose:
                    print(f"  Week {state.current_week}: skipped {decision_type} ({e})")
                continue
            if verbose:
                print(f"  Week {state.current_week}: scheduled {decision.title} "
                      f"(${decision.cost:,.2f}, effective week {decision.effective_week})")
        tick(state, rng, settings)

    if verbose:
        outcome = state.outcome
        print(f"Simulation complete: {state.current_week} weeks, "
              f"{len(outcome.weekly_history)} weekly records")

    return state


def main():
    """Run simulation from command line."""
    import argparse

    parser = argparse.ArgumentParser(description="Run a headless agrisim session")
    parser.add_argument("scenario", nargs="?", default="sandbox", help="Scenario key")
    parser.add_argument("--crop", default="wheat")
    parser.add_argument("--soil", default="loam")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--settings", default=None, help="Path to settings YAML")
    parser.add_argument("--output", default=None, help="Write results under this directory")
    args = parser.parse_args()

    from agrisim.settings.loader import load_settings

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    settings = load_settings(args.settings)
    state = run_simulation(args.scenario, args.crop, args.soil, seed=args.seed,
                           settings=settings, verbose=True)

    outcome = state.outcome
    print("\n=== SIMULATION SUMMARY ===")
    print(f"Final yield: {outcome.yield_t_ha:.2f} t/ha (target {outcome.target_yield:.1f})")
    print(f"Soil moisture: {outcome.soil_moisture_pct:.2f}%")
    print(f"Score: {outcome.total_score:.1f} ({grade(outcome.total_score)})")
    print(f"Revenue: ${outcome.revenue:,.2f}  Costs: ${outcome.costs.total:,.2f}  "
          f"Profit: ${outcome.profit:,.2f}")

    if args.output:
        from agrisim.simulation.results import write_results
        output_dir = write_results(state, args.output)
        print(f"Results written to {output_dir}")


if __name__ == "__main__":
    main()
