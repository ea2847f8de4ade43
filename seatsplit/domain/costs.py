"""
Aggregation of trip costs by category.
"""

from typing import Iterable

from .models import CostTotals, ExpenseEntry, TripConfiguration


def aggregate_costs(config: TripConfiguration, expenses: Iterable[ExpenseEntry]) -> CostTotals:
    """Rental, insurance (daily rate times trip days) and summed expenses."""
    return CostTotals(
        rental=config.rental_cost,
        insurance=config.total_insurance,
        expenses=sum((entry.amount for entry in expenses), 0.0),
    )


def total_cost(config: TripConfiguration, expenses: Iterable[ExpenseEntry]) -> float:
    return aggregate_costs(config, expenses).total
