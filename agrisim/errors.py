# Error types for the agrisim simulation
#
# NotFoundError and InsufficientBudgetError subclass the builtin errors the
# loaders and policy registries already raise (KeyError, ValueError), so
# callers catching those keep working.


class AgrisimError(Exception):
    """Base class for simulation errors."""


class NotFoundError(AgrisimError, KeyError):
    """Unknown scenario, crop, or decision type."""

    def __str__(self):
        # KeyError quotes its message; keep it readable
        return str(self.args[0]) if self.args else ""


class InsufficientBudgetError(AgrisimError, ValueError):
    """Decision cost exceeds the remaining budget.

    Args:
        cost: Computed cost of the rejected decision (USD)
        budget: Budget remaining at submission time (USD)
    """

    def __init__(self, cost, budget):
        self.cost = cost
        self.budget = budget
        super().__init__(f"Decision cost ${cost:,.2f} exceeds remaining budget ${budget:,.2f}")


class DataFetchError(AgrisimError, RuntimeError):
    """Satellite data request failed (transport, HTTP status, or decoding)."""
