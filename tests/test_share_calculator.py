"""
Tests for cost aggregation and the pro-rata share split.
"""

from datetime import date

import pytest

from seatsplit.domain.booking_registry import BookingRegistry
from seatsplit.domain.costs import aggregate_costs, total_cost
from seatsplit.domain.models import ExpenseEntry, TimeSlot
from seatsplit.domain.share_calculator import compute_shares, round2

from conftest import make_config

DAY_ONE = date(2025, 6, 1)
DAY_TWO = date(2025, 6, 2)


def _gas(*amounts):
    return [ExpenseEntry(amount=a, day=DAY_ONE, note="Gas fill up") for a in amounts]


class TestCostAggregation:
    """Tests for categorized cost totals."""

    def test_categories(self):
        """Rental, insurance times days and summed expenses are kept apart."""
        costs = aggregate_costs(make_config(), _gas(20, 30))

        assert costs.rental == 200
        assert costs.insurance == 75
        assert costs.expenses == 50
        assert costs.total == 325

    def test_no_expenses(self):
        """An empty expense list contributes zero."""
        assert total_cost(make_config(), []) == 275


class TestRound2:
    """Tests for half-up rounding to cents."""

    @pytest.mark.parametrize(
        "value, expected",
        [(2.675, 2.68), (1.005, 1.01), (108.33333, 108.33), (0.125, 0.13), (162.5, 162.5)],
    )
    def test_half_up(self, value, expected):
        assert round2(value) == expected


class TestComputeShares:
    """Tests for the share report."""

    def test_zero_bookings(self):
        """No person-slots means no shares and cost per slot 0."""
        config = make_config()

        report = compute_shares(config, BookingRegistry(config), _gas(99))

        assert report.shares == []
        assert report.cost_per_slot == 0
        assert report.total_person_slots == 0
        assert report.total_trip_cost == 374

    def test_single_person_single_slot_pays_everything(self):
        """One person-slot carries the whole cost."""
        config = make_config(capacity=5)
        registry = BookingRegistry(config)
        registry.join("Alice", DAY_ONE, TimeSlot.MORNING)

        report = compute_shares(config, registry, _gas(20, 30))

        assert report.total_trip_cost == 325
        assert report.total_person_slots == 1
        assert report.cost_per_slot == 325
        share = report.shares[0]
        assert share.name == "Alice"
        assert share.slots_joined == 1
        assert share.total_share == 325.00
        assert share.rental_share == 200
        assert share.insurance_share == 75
        assert share.expense_share == 50

    def test_two_people_split_evenly(self):
        """Two distinct single-slot bookings split 325 into 162.50 each."""
        config = make_config()
        registry = BookingRegistry(config)
        registry.join("Alice", DAY_ONE, TimeSlot.MORNING)
        registry.join("Bob", DAY_TWO, TimeSlot.AFTERNOON)

        report = compute_shares(config, registry, _gas(50))

        assert [s.total_share for s in report.shares] == [162.50, 162.50]

    def test_shares_proportional_to_slots(self):
        """Someone with twice the slots pays twice as much."""
        config = make_config()
        registry = BookingRegistry(config)
        registry.join("Alice", DAY_ONE, TimeSlot.MORNING)
        registry.join("Alice", DAY_ONE, TimeSlot.AFTERNOON)
        registry.join("Bob", DAY_ONE, TimeSlot.AFTERNOON)

        report = compute_shares(config, registry, [])

        shares = {s.name: s for s in report.shares}
        assert report.total_person_slots == 3
        assert shares["Alice"].slots_joined == 2
        assert shares["Alice"].total_share == round2(275 * 2 / 3)
        assert shares["Bob"].total_share == round2(275 / 3)
        assert report.cost_per_slot == pytest.approx(275 / 3)

    def test_categories_rounded_independently(self):
        """Each category is rounded on its own; parts may miss the total by cents."""
        config = make_config(rental_cost=100, daily_insurance_rate=0.01, total_days=1)
        registry = BookingRegistry(config)
        for name in ["A", "B", "C"]:
            registry.join(name, DAY_ONE, TimeSlot.MORNING)

        report = compute_shares(config, registry, _gas(0.01))

        share = report.shares[0]
        assert share.rental_share == 33.33
        assert share.insurance_share == 0.0
        assert share.expense_share == 0.0
        assert share.total_share == 33.34
        parts = share.rental_share + share.insurance_share + share.expense_share
        assert abs(parts - share.total_share) <= 0.03

    def test_order_follows_first_booking(self):
        """Shares appear in order of each person's first booking."""
        config = make_config()
        registry = BookingRegistry(config)
        registry.join("Cara", DAY_TWO, TimeSlot.MORNING)
        registry.join("Alice", DAY_ONE, TimeSlot.MORNING)
        registry.join("cara", DAY_ONE, TimeSlot.AFTERNOON)

        report = compute_shares(config, registry, [])

        assert [s.name for s in report.shares] == ["Cara", "Alice"]

    def test_repeated_computation_is_stable(self):
        """Computing twice gives identical reports."""
        config = make_config()
        registry = BookingRegistry(config)
        registry.join("Alice", DAY_ONE, TimeSlot.MORNING)
        registry.join("Bob", DAY_ONE, TimeSlot.MORNING)
        registry.join("Cara", DAY_ONE, TimeSlot.MORNING)
        expenses = _gas(12.34)

        assert compute_shares(config, registry, expenses) == compute_shares(config, registry, expenses)
