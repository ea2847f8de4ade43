"""
Domain layer - Pure business logic without external dependencies.
"""

from .booking_registry import BookingRegistry
from .costs import aggregate_costs, total_cost
from .date_slots import expand_dates, trip_dates
from .models import (
    CarType,
    CostTotals,
    ExpenseEntry,
    PersonShare,
    ReceiptDraft,
    Reservation,
    ShareReport,
    SlotKey,
    SlotStatus,
    TimeSlot,
    TripConfiguration,
)
from .share_calculator import compute_shares, round2

__all__ = [
    "BookingRegistry",
    "CarType",
    "CostTotals",
    "ExpenseEntry",
    "PersonShare",
    "ReceiptDraft",
    "Reservation",
    "ShareReport",
    "SlotKey",
    "SlotStatus",
    "TimeSlot",
    "TripConfiguration",
    "aggregate_costs",
    "compute_shares",
    "expand_dates",
    "round2",
    "total_cost",
    "trip_dates",
]
