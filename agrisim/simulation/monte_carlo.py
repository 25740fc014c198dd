"""Monte Carlo evaluation for the agrisim weekly simulation.

Plays the same scenario many times with independently seeded weather noise
to show how much the final score and profit depend on luck rather than on
the decision plan.
"""

import random
import time
from collections import Counter
from typing import Dict, List, Optional

import numpy as np

from agrisim.settings.loader import get_default_settings
from agrisim.simulation.metrics import grade
from agrisim.simulation.simulation import run_simulation


PERCENTILES = (5, 25, 50, 75, 95)


def extract_run_outcomes(state) -> Dict:
    """Pull the final outcome of one run into a flat dict."""
    outcome = state.outcome
    return {
        "final_week": state.current_week,
        "yield_t_ha": outcome.yield_t_ha,
        "soil_moisture_pct": outcome.soil_moisture_pct,
        "total_score": outcome.total_score,
        "grade": grade(outcome.total_score),
        "revenue_usd": outcome.revenue,
        "total_cost_usd": outcome.costs.total,
        "profit_usd": outcome.profit,
        "budget_remaining_usd": state.budget,
    }


def _percentiles(values):
    arr = np.asarray(values, dtype=float)
    return {f"p{p}": float(np.percentile(arr, p)) for p in PERCENTILES}


def compute_monte_carlo_summary(run_results: List[Dict]) -> Dict:
    """Aggregate per-run outcomes into distributions.

    Returns:
        dict with:
            n_runs: number of runs
            avg_score / std_score: mean and sample std of final score
            score_percentiles: {p5, p25, p50, p75, p95}
            avg_profit_usd / std_profit_usd
            profit_percentiles: {p5, p25, p50, p75, p95}
            probability_of_loss_pct: % of runs with negative profit
            grade_distribution: {grade: count}
    """
    if not run_results:
        raise ValueError("run_results must contain at least one run")

    scores = np.array([r["total_score"] for r in run_results], dtype=float)
    profits = np.array([r["profit_usd"] for r in run_results], dtype=float)
    n = len(run_results)

    return {
        "n_runs": n,
        "avg_score": float(scores.mean()),
        "std_score": float(scores.std(ddof=1)) if n > 1 else 0.0,
        "score_percentiles": _percentiles(scores),
        "avg_profit_usd": float(profits.mean()),
        "std_profit_usd": float(profits.std(ddof=1)) if n > 1 else 0.0,
        "profit_percentiles": _percentiles(profits),
        "probability_of_loss_pct": float((profits < 0).sum() / n * 100),
        "grade_distribution": dict(Counter(r["grade"] for r in run_results)),
    }


def run_monte_carlo(
    scenario_key: str = "sandbox",
    n_runs: int = 100,
    seed: int = 42,
    crop: str = "wheat",
    soil_type: str = "loam",
    decision_plan: Optional[Dict] = None,
    settings=None,
    verbose: bool = False,
) -> Dict:
    """Run the scenario n_runs times with independent weather noise.

    Each run draws its own seed from a master random.Random(seed), so the
    whole batch is reproducible.

    Returns:
        dict with:
            runs: list of per-run outcome dicts (including the run seed)
            summary: output of compute_monte_carlo_summary()
    """
    if n_runs < 1:
        raise ValueError(f"n_runs must be >= 1, got {n_runs}")

    settings = settings or get_default_settings()
    master = random.Random(seed)

    if verbose:
        print(f"Monte Carlo: {n_runs} runs, seed={seed}, scenario={scenario_key} ({crop}, {soil_type})")

    run_results = []
    t_start = time.time()
    for run_idx in range(n_runs):
        run_seed = master.getrandbits(32)
        state = run_simulation(
            scenario_key, crop, soil_type,
            rng=random.Random(run_seed),
            decision_plan=decision_plan,
            settings=settings,
        )
        outcomes = extract_run_outcomes(state)
        outcomes["run_index"] = run_idx
        outcomes["seed"] = run_seed
        run_results.append(outcomes)

        if verbose and (run_idx + 1) % max(1, n_runs // 10) == 0:
            print(f"  Run {run_idx + 1}/{n_runs} ({time.time() - t_start:.1f}s elapsed)")

    summary = compute_monte_carlo_summary(run_results)
    summary["elapsed_seconds"] = time.time() - t_start
    return {"runs": run_results, "summary": summary}


def main():
    """Run Monte Carlo from command line."""
    import sys

    if len(sys.argv) < 2:
        print("Usage: python -m agrisim.simulation.monte_carlo <scenario_key> [n_runs]")
        sys.exit(1)

    scenario_key = sys.argv[1]
    n_runs = int(sys.argv[2]) if len(sys.argv) > 2 else 100

    results = run_monte_carlo(scenario_key, n_runs=n_runs, verbose=True)
    summary = results["summary"]

    print(f"\n{'='*60}")
    print(f"MONTE CARLO RESULTS ({summary['n_runs']} runs)")
    print(f"{'='*60}")
    print(f"Score: {summary['avg_score']:.1f} ± {summary['std_score']:.1f}")
    for key in ["p5", "p25", "p50", "p75", "p95"]:
        print(f"  {key.upper()}: {summary['score_percentiles'][key]:.1f}")
    print(f"Profit: ${summary['avg_profit_usd']:,.0f} ± ${summary['std_profit_usd']:,.0f}")
    print(f"P(loss): {summary['probability_of_loss_pct']:.1f}%")
    print(f"Grades: {summary['grade_distribution']}")


if __name__ == "__main__":
    main()
