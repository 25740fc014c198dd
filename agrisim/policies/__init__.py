# Policy module exports for the agrisim weekly simulation
# Layer 2: Decision model

from agrisim.policies.decision_policies import (
    DecisionContext,
    BaseDecisionPolicy,
    IrrigationDecisionPolicy,
    FertilizerDecisionPolicy,
    LivestockDecisionPolicy,
    DECISION_POLICIES,
    IRRIGATION_METHODS,
    IRRIGATION_FREQUENCIES,
    FERTILIZER_TYPES,
    get_decision_policy,
    price_irrigation,
    price_fertilizer,
    propose_decision,
    can_afford,
    schedule_decision,
    decision_status,
)

__all__ = [
    # Decision policies
    "DecisionContext",
    "BaseDecisionPolicy",
    "IrrigationDecisionPolicy",
    "FertilizerDecisionPolicy",
    "LivestockDecisionPolicy",
    "IRRIGATION_METHODS",
    "IRRIGATION_FREQUENCIES",
    "FERTILIZER_TYPES",
    # Decision registry
    "DECISION_POLICIES",
    "get_decision_policy",
    # Decision operations
    "price_irrigation",
    "price_fertilizer",
    "propose_decision",
    "can_afford",
    "schedule_decision",
    "decision_status",
]
