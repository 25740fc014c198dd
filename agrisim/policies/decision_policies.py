# Farm decision policies for the agrisim weekly simulation
# Layer 2: Decision model
#
# Converts player-selected parameters into priced, scheduled Decision records:
# - IrrigationDecisionPolicy: $/mm of water, method is descriptive only
# - FertilizerDecisionPolicy: $/kg of product, +30% with a nitrification inhibitor
# - LivestockDecisionPolicy: stocking-rate change, free of charge
#
# A decision costing more than the remaining budget is rejected at submission.

import logging
import uuid
from dataclasses import dataclass, field

from agrisim.errors import InsufficientBudgetError, NotFoundError
from agrisim.settings.loader import get_default_settings
from agrisim.simulation.state import Decision

logger = logging.getLogger(__name__)


IRRIGATION_METHODS = ("fixed", "soil-trigger", "deficit")
IRRIGATION_FREQUENCIES = ("daily", "weekly", "biweekly")
FERTILIZER_TYPES = ("NPK", "Nitrogen", "Phosphorus", "Organic")


def _pricing(pricing):
    return pricing if pricing is not None else get_default_settings().pricing


def price_irrigation(amount_mm, method="soil-trigger", pricing=None):
    """Irrigation cost in USD. The method does not change the price."""
    if amount_mm < 0:
        raise ValueError(f"Irrigation amount must be >= 0, got {amount_mm}")
    if method not in IRRIGATION_METHODS:
        raise ValueError(f"Unknown irrigation method '{method}'. Valid: {', '.join(IRRIGATION_METHODS)}")
    return amount_mm * _pricing(pricing).irrigation_usd_per_mm


def price_fertilizer(dose_kg_ha, use_inhibitor=False, pricing=None):
    """Fertilizer cost in USD: dose * unit price, plus the inhibitor premium."""
    if dose_kg_ha < 0:
        raise ValueError(f"Fertilizer dose must be >= 0, got {dose_kg_ha}")
    p = _pricing(pricing)
    base_cost = dose_kg_ha * p.fertilizer_usd_per_kg
    return base_cost * (1 + p.inhibitor_premium) if use_inhibitor else base_cost


@dataclass
class DecisionContext:
    """Input context for a decision proposal.

    Args:
        current_week: Simulation week the proposal is made in
        budget: Remaining budget (USD)
        params: Type-specific parameters from the decision controls
    """
    current_week: int
    budget: float
    params: dict = field(default_factory=dict)


class BaseDecisionPolicy:
    """Base class for decision policies."""

    name = "base"

    def __init__(self, pricing=None):
        self.pricing = _pricing(pricing)

    def price(self, params: dict) -> float:
        raise NotImplementedError

    def magnitude(self, params: dict) -> float:
        raise NotImplementedError

    def impact(self, params: dict) -> str:
        return "medium"

    def title(self, params: dict) -> str:
        raise NotImplementedError

    def describe(self) -> str:
        return f"{self.name}: {self.__class__.__doc__}"

    def decide(self, ctx: DecisionContext) -> Decision:
        """Price and schedule a decision for the following week.

        Raises:
            InsufficientBudgetError: If the cost exceeds ctx.budget
        """
        cost = self.price(ctx.params)
        if cost > ctx.budget:
            raise InsufficientBudgetError(cost, ctx.budget)

        return Decision(
            id=f"{self.name}-{uuid.uuid4().hex[:12]}",
            type=self.name,
            title=self.title(ctx.params),
            status="scheduled",
            impact=self.impact(ctx.params),
            cost=cost,
            effective_week=ctx.current_week + 1,
            amount=self.magnitude(ctx.params),
            params=dict(ctx.params),
        )


class IrrigationDecisionPolicy(BaseDecisionPolicy):
    """Schedule an irrigation event of a given depth."""

    name = "irrigation"

    def magnitude(self, params):
        return float(params["amount_mm"])

    def price(self, params):
        frequency = params.get("frequency", "weekly")
        if frequency not in IRRIGATION_FREQUENCIES:
            raise ValueError(
                f"Unknown irrigation frequency '{frequency}'. Valid: {', '.join(IRRIGATION_FREQUENCIES)}"
            )
        return price_irrigation(
            self.magnitude(params), params.get("method", "soil-trigger"), self.pricing
        )

    def impact(self, params):
        return "high" if self.magnitude(params) > self.pricing.irrigation_high_impact_mm else "medium"

    def title(self, params):
        return f"{params.get('method', 'soil-trigger')} irrigation - {params['amount_mm']}mm"


class FertilizerDecisionPolicy(BaseDecisionPolicy):
    """Schedule a fertilizer application at a given dose."""

    name = "fertilizer"

    def magnitude(self, params):
        return float(params["dose_kg_ha"])

    def price(self, params):
        fertilizer_type = params.get("fertilizer_type", "NPK")
        if fertilizer_type not in FERTILIZER_TYPES:
            raise ValueError(
                f"Unknown fertilizer type '{fertilizer_type}'. Valid: {', '.join(FERTILIZER_TYPES)}"
            )
        return price_fertilizer(
            self.magnitude(params), bool(params.get("use_inhibitor", False)), self.pricing
        )

    def impact(self, params):
        return "high" if self.magnitude(params) > self.pricing.fertilizer_high_impact_kg_ha else "medium"

    def title(self, params):
        fertilizer_type = params.get("fertilizer_type", "NPK")
        return f"{fertilizer_type} application - {params['dose_kg_ha']}kg/ha"


class LivestockDecisionPolicy(BaseDecisionPolicy):
    """Adjust the grazing stocking rate. Always free, always medium impact."""

    name = "livestock"

    def magnitude(self, params):
        rate = float(params["stocking_rate"])
        if rate < 0:
            raise ValueError(f"Stocking rate must be >= 0, got {rate}")
        return rate

    def price(self, params):
        self.magnitude(params)
        return 0.0

    def title(self, params):
        return f"Adjust stocking rate to {params['stocking_rate']} animals/ha"


# --- Registry and factory ---

DECISION_POLICIES = {
    "irrigation": IrrigationDecisionPolicy,
    "fertilizer": FertilizerDecisionPolicy,
    "livestock": LivestockDecisionPolicy,
}


def get_decision_policy(name, **kwargs):
    """Get a decision policy instance by decision type.

    Raises:
        NotFoundError: If the decision type is not registered
    """
    if name not in DECISION_POLICIES:
        valid = ", ".join(DECISION_POLICIES.keys())
        raise NotFoundError(f"Unknown decision type '{name}'. Valid: {valid}")
    return DECISION_POLICIES[name](**kwargs)


def propose_decision(decision_type, params, current_week, budget, pricing=None):
    """Price a decision and schedule it for current_week + 1.

    Pure: does not touch any session state.

    Args:
        decision_type: "irrigation", "fertilizer" or "livestock"
        params: Type-specific parameters
            irrigation: amount_mm, method, frequency
            fertilizer: dose_kg_ha, use_inhibitor, fertilizer_type, split_application
            livestock: stocking_rate, rotation_enabled
        current_week: Current simulation week
        budget: Remaining budget (USD)
        pricing: PricingConfig (packaged defaults if None)

    Returns:
        Decision with status "scheduled"

    Raises:
        InsufficientBudgetError: If the computed cost exceeds budget
        NotFoundError: If decision_type is unknown
    """
    policy = get_decision_policy(decision_type, pricing=pricing)
    ctx = DecisionContext(current_week=current_week, budget=budget, params=dict(params))
    return policy.decide(ctx)


def can_afford(decision_type, params, budget, pricing=None):
    """True if the decision would be accepted against budget."""
    policy = get_decision_policy(decision_type, pricing=pricing)
    return policy.price(params) <= budget


def schedule_decision(state, decision_type, params, pricing=None):
    """Propose a decision against the session and record it on acceptance.

    Cost is charged immediately: deducted from the budget and added to
    costs.<type> and costs.total. Effects (if enabled) apply in the
    effective week. On rejection the state is left untouched.

    Returns:
        The accepted Decision

    Raises:
        InsufficientBudgetError: If cost exceeds state.budget
    """
    try:
        decision = propose_decision(
            decision_type, params, state.current_week, state.budget, pricing=pricing
        )
    except InsufficientBudgetError as e:
        logger.warning("Rejected %s decision: %s", decision_type, e)
        raise

    costs = state.outcome.costs
    state.budget -= decision.cost
    state.decisions.append(decision)
    if hasattr(costs, decision.type):
        setattr(costs, decision.type, getattr(costs, decision.type) + decision.cost)
    costs.total += decision.cost

    logger.info("Scheduled '%s' for week %d ($%.2f)", decision.title, decision.effective_week, decision.cost)
    return decision


def decision_status(decision, current_week):
    """Display status: completed once the effective week has been reached."""
    if current_week >= decision.effective_week:
        return "completed"
    return decision.status
