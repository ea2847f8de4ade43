"""
Pro-rata split of the trip cost by person-slots.

Algorithm:
1. Aggregate rental, insurance and expenses into categorized totals
2. Count person-slots per person from the booking registry
3. Divide the total cost by the number of person-slots
4. Give each person cost-per-slot times their slot count
5. Report every category share independently, rounded to cents

Rounding happens only when reporting. The category shares are derived from
the unrounded ratio, so their sum can differ from ``total_share`` by a cent
or two.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List

from .booking_registry import BookingRegistry
from .costs import aggregate_costs
from .models import ExpenseEntry, PersonShare, ShareReport, TripConfiguration

_CENT = Decimal("0.01")


def round2(value: float) -> float:
    """Round half-up to two decimals (2.675 -> 2.68)."""
    return float(Decimal(repr(value)).quantize(_CENT, rounding=ROUND_HALF_UP))


def compute_shares(
    config: TripConfiguration,
    registry: BookingRegistry,
    expenses: Iterable[ExpenseEntry],
) -> ShareReport:
    """
    Compute what every booked person owes.

    Args:
        config: Current trip settings
        registry: Registry providing per-person slot counts
        expenses: Expense entries to include

    Returns:
        ShareReport; with no bookings the share list is empty and
        ``cost_per_slot`` is 0.
    """
    costs = aggregate_costs(config, expenses)
    counts = registry.per_person_slot_counts()
    total_slots = sum(counts.values())

    if total_slots == 0:
        return ShareReport(shares=[], costs=costs, total_person_slots=0, cost_per_slot=0.0)

    cost_per_slot = costs.total / total_slots

    shares: List[PersonShare] = []
    for name, slot_count in counts.items():
        ratio = slot_count / total_slots
        shares.append(
            PersonShare(
                name=name,
                slots_joined=slot_count,
                total_share=round2(cost_per_slot * slot_count),
                rental_share=round2(costs.rental * ratio),
                insurance_share=round2(costs.insurance * ratio),
                expense_share=round2(costs.expenses * ratio),
            )
        )

    return ShareReport(
        shares=shares,
        costs=costs,
        total_person_slots=total_slots,
        cost_per_slot=cost_per_slot,
    )
