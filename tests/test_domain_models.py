"""
Tests for domain models.
"""

from datetime import date, datetime, timedelta, timezone

import pendulum
import pytest

from seatsplit.domain.date_slots import expand_dates
from seatsplit.domain.exceptions import InvalidConfiguration, InvalidExpense
from seatsplit.domain.models import (
    CarType,
    ExpenseEntry,
    SlotKey,
    TimeSlot,
    TripConfiguration,
    as_calendar_date,
    normalize_name,
    resolve_timezone,
)


class TestTripConfiguration:
    """Tests for TripConfiguration validation."""

    def test_create_parses_start(self):
        """Start strings are parsed in the given timezone."""
        config = TripConfiguration.create(
            rental_cost=200,
            daily_insurance_rate=25,
            total_days=3,
            capacity=CarType.SEVEN_SEATER,
            start="2025-06-01T14:30",
            timezone="America/New_York",
        )

        assert config.start.hour == 14
        assert config.start.timezone_name == "America/New_York"
        assert config.capacity == 7
        assert config.car_type is CarType.SEVEN_SEATER
        assert config.starts_in_afternoon
        assert config.total_insurance == 75

    def test_create_accepts_stdlib_datetime(self):
        """Standard library datetimes are converted to pendulum."""
        config = TripConfiguration.create(
            rental_cost=0, daily_insurance_rate=0, total_days=1, capacity=5,
            start=datetime(2025, 6, 1, 8, 0),
        )

        assert not config.starts_in_afternoon

    def test_constructor_converts_stdlib_datetime(self):
        """A plain datetime passed straight to the constructor still expands into slots."""
        config = TripConfiguration(
            rental_cost=200, daily_insurance_rate=25, total_days=2, capacity=5,
            start=datetime(2025, 6, 1, 14, 0),
        )

        assert isinstance(config.start, pendulum.DateTime)
        assert config.start.timezone_name == "UTC"
        assert expand_dates(config) == [
            SlotKey(date(2025, 6, 1), TimeSlot.AFTERNOON),
            SlotKey(date(2025, 6, 2), TimeSlot.MORNING),
            SlotKey(date(2025, 6, 2), TimeSlot.AFTERNOON),
        ]

    def test_constructor_keeps_stdlib_offset(self):
        """Aware datetimes keep their wall time."""
        start = datetime(2025, 6, 1, 13, 0, tzinfo=timezone(timedelta(hours=2)))
        config = TripConfiguration(
            rental_cost=0, daily_insurance_rate=0, total_days=1, capacity=5, start=start,
        )

        assert config.start.hour == 13
        assert config.starts_in_afternoon

    def test_create_accepts_fixed_offset_timezone(self):
        """Offsets like '+02:00' work as a timezone."""
        config = TripConfiguration.create(
            rental_cost=0, daily_insurance_rate=0, total_days=1, capacity=5,
            start="2025-06-01T11:00Z", timezone="+02:00",
        )

        assert config.start.hour == 13
        assert config.start.utcoffset() == timedelta(hours=2)
    @pytest.mark.parametrize(
        "overrides, message",
        [
            ({"rental_cost": -1}, "rental_cost must not be negative"),
            ({"daily_insurance_rate": -0.5}, "daily_insurance_rate must not be negative"),
            ({"total_days": 0}, "total_days must be a positive integer"),
            ({"total_days": 2.5}, "total_days must be a positive integer"),
            ({"capacity": 6}, "capacity must be one of 5, 7"),
            ({"rental_cost": "200"}, "rental_cost must be a number"),
            ({"rental_cost": float("nan")}, "rental_cost must be finite"),
            ({"rental_cost": float("inf")}, "rental_cost must be finite"),
            ({"daily_insurance_rate": float("-inf")}, "daily_insurance_rate must be finite"),
        ],
    )
    def test_invalid_values_rejected(self, overrides, message):
        """Malformed settings raise InvalidConfiguration."""
        values = dict(
            rental_cost=200,
            daily_insurance_rate=25,
            total_days=3,
            capacity=5,
            start=pendulum.parse("2025-06-01 09:00", tz="UTC"),
        )
        values.update(overrides)

        with pytest.raises(InvalidConfiguration, match=message):
            TripConfiguration(**values)

    def test_unparseable_start(self):
        """Garbage start timestamps are rejected."""
        with pytest.raises(InvalidConfiguration, match="Unparseable start"):
            TripConfiguration.create(
                rental_cost=0, daily_insurance_rate=0, total_days=1, capacity=5, start="next tuesday-ish"
            )

    def test_invalid_configuration_is_value_error(self):
        """Callers catching ValueError also see configuration errors."""
        assert issubclass(InvalidConfiguration, ValueError)


class TestTimeSlot:
    """Tests for TimeSlot parsing and labels."""

    @pytest.mark.parametrize("text, expected", [
        ("morning", TimeSlot.MORNING),
        ("Afternoon", TimeSlot.AFTERNOON),
        (" AM ", TimeSlot.MORNING),
        ("pm", TimeSlot.AFTERNOON),
    ])
    def test_parse(self, text, expected):
        assert TimeSlot.parse(text) is expected

    def test_labels(self):
        assert TimeSlot.MORNING.label == "Morning Trip"
        assert TimeSlot.MORNING.time_window == "07:00 - 14:00"
        assert TimeSlot.AFTERNOON.time_window == "14:00 - 21:00"

    def test_format_display(self):
        """Slot keys render date, label and time window."""
        key = SlotKey(date(2025, 6, 1), TimeSlot.AFTERNOON)

        assert key.format_display() == "Sun, Jun 1, 2025 | Afternoon Trip (14:00 - 21:00)"


class TestExpenseEntry:
    """Tests for expense entries."""

    def test_manual_defaults(self):
        """Blank notes and missing dates get defaults."""
        entry = ExpenseEntry.create(40, note="  ", today=date(2025, 6, 2))

        assert entry.note == "Gas fill up"
        assert entry.day == date(2025, 6, 2)
        assert entry.id

    def test_negative_amount_rejected(self):
        with pytest.raises(InvalidExpense, match="must not be negative"):
            ExpenseEntry.create(-5, day="2025-06-01")

    @pytest.mark.parametrize("amount", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_amount_rejected(self, amount):
        """NaN and infinite amounts would poison every share."""
        with pytest.raises(InvalidExpense, match="must be finite"):
            ExpenseEntry.create(amount, day="2025-06-01")

    def test_bad_date_rejected(self):
        with pytest.raises(InvalidExpense, match="Invalid date"):
            ExpenseEntry.create(5, day="01/06/2025")


def test_normalize_name():
    """Names compare trimmed and case-insensitively."""
    assert normalize_name("  Alice ") == normalize_name("ALICE")


@pytest.mark.parametrize("name, offset", [
    ("+02:00", timedelta(hours=2)),
    ("-0530", -timedelta(hours=5, minutes=30)),
    ("+00:00", timedelta(0)),
])
def test_resolve_fixed_offset(name, offset):
    """Fixed offsets resolve to zones that round-trip by name."""
    tz = resolve_timezone(name)

    assert pendulum.datetime(2025, 6, 1, tz=tz).utcoffset() == offset
    assert resolve_timezone(tz.name).name == tz.name


def test_resolve_unknown_timezone():
    with pytest.raises(InvalidConfiguration, match="Unknown timezone"):
        resolve_timezone("Mars/Olympus_Mons")


def test_as_calendar_date_flattens_pendulum():
    """Pendulum values become plain dates."""
    value = as_calendar_date(pendulum.datetime(2025, 6, 1, 15, 0))

    assert value == date(2025, 6, 1)
    assert type(value) is date
