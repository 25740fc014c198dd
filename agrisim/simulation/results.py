# Results output for the agrisim weekly simulation
# Layer 3: Simulation Engine
#
# Writes a finished (or in-progress) session to disk.
# Output structure:
#   <base>/<scenario>_YYYYMMDD_HHMMSS/
#     weekly_history.csv
#     decisions.csv
#     summary.json

import json
from dataclasses import asdict
from datetime import datetime
from pathlib import Path

import pandas as pd

from agrisim.policies.decision_policies import decision_status
from agrisim.simulation.metrics import compute_financial_summary, compute_outcome_metrics


DECISION_COLUMNS = ["id", "type", "title", "status", "impact", "cost_usd", "effective_week", "amount"]


def create_output_directory(base_path="results", scenario_name="simulation"):
    """Create timestamped output directory.

    Returns:
        Path to created directory
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    output_dir = Path(base_path) / f"{scenario_name}_{timestamp}"
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


def weekly_history_frame(state):
    """Weekly history as a DataFrame indexed by week."""
    rows = [
        {
            "week": p.week,
            "yield_t_ha": p.yield_t_ha,
            "soil_moisture_pct": p.moisture,
            "et_gap_pct": p.et,
            "nitrogen_leached_pct": p.nitrogen,
        }
        for p in state.outcome.weekly_history
    ]
    df = pd.DataFrame(rows, columns=["week", "yield_t_ha", "soil_moisture_pct", "et_gap_pct", "nitrogen_leached_pct"])
    return df.set_index("week")


def decisions_frame(state):
    """Decision log as a DataFrame, with status as of the current week."""
    rows = [
        {
            "id": d.id,
            "type": d.type,
            "title": d.title,
            "status": decision_status(d, state.current_week),
            "impact": d.impact,
            "cost_usd": d.cost,
            "effective_week": d.effective_week,
            "amount": d.amount,
        }
        for d in state.decisions
    ]
    return pd.DataFrame(rows, columns=DECISION_COLUMNS)


def summary_dict(state):
    """Flat JSON-serialisable summary of a session."""
    outcome = state.outcome
    metrics = compute_outcome_metrics(outcome)
    return {
        "scenario": state.scenario_key,
        "crop": state.crop,
        "soil_type": state.soil_type,
        "location": asdict(state.location) if state.location else None,
        "status": state.status,
        "current_week": state.current_week,
        "duration_weeks": state.duration_weeks,
        "yield_t_ha": outcome.yield_t_ha,
        "target_yield_t_ha": outcome.target_yield,
        "soil_moisture_pct": outcome.soil_moisture_pct,
        "et_gap_pct": outcome.et_gap_pct,
        "nitrogen_leached_pct": outcome.nitrogen_leached_pct,
        "total_score": outcome.total_score,
        "metrics": asdict(metrics),
        "financials": compute_financial_summary(state),
        "decision_count": len(state.decisions),
    }


def write_results(state, base_path="results"):
    """Write weekly history, decisions and summary for a session.

    Returns:
        Path to the output directory
    """
    output_dir = create_output_directory(base_path, state.scenario_key)
    weekly_history_frame(state).to_csv(output_dir / "weekly_history.csv")
    decisions_frame(state).to_csv(output_dir / "decisions.csv", index=False)
    with open(output_dir / "summary.json", "w") as f:
        json.dump(summary_dict(state), f, indent=2)
    return output_dir
