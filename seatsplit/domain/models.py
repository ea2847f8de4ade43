"""
Domain models for trip settings, reservations, expenses and cost shares.
"""

import math
import re
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import List, Optional, Tuple

import pendulum
from pendulum import DateTime

from .exceptions import InvalidConfiguration, InvalidExpense


class TimeSlot(str, Enum):
    """Half-day booking unit."""
    MORNING = "morning"
    AFTERNOON = "afternoon"

    @property
    def label(self) -> str:
        return "Morning Trip" if self is TimeSlot.MORNING else "Afternoon Trip"

    @property
    def time_window(self) -> str:
        return "07:00 - 14:00" if self is TimeSlot.MORNING else "14:00 - 21:00"

    @classmethod
    def parse(cls, value: "str | TimeSlot") -> "TimeSlot":
        """Accept enum members as well as case-insensitive names ('Morning', 'am', ...)."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        aliases = {"am": cls.MORNING, "pm": cls.AFTERNOON}
        if key in aliases:
            return aliases[key]
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown slot '{value}'. Use 'morning' or 'afternoon'.") from None


class CarType(int, Enum):
    """Supported vehicle sizes; the value is the seat capacity."""
    FIVE_SEATER = 5
    SEVEN_SEATER = 7

    @property
    def label(self) -> str:
        return "5-Seater Sedan" if self is CarType.FIVE_SEATER else "7-Seater SUV/Van"


def normalize_name(name: str) -> str:
    """Lookup key used for person uniqueness (trimmed, case-insensitive)."""
    return name.strip().lower()


def as_calendar_date(value: "date | str") -> date:
    """
    Coerce a date-like value to a plain ``datetime.date``.

    Pendulum objects are flattened so that hashing and equality behave the
    same as for standard library dates.
    """
    if isinstance(value, datetime):
        return date(value.year, value.month, value.day)
    if isinstance(value, date):
        return date(value.year, value.month, value.day)
    try:
        parsed = pendulum.from_format(str(value).strip(), "YYYY-MM-DD")
    except ValueError as exc:
        raise ValueError(f"Invalid date '{value}', expected YYYY-MM-DD") from exc
    return date(parsed.year, parsed.month, parsed.day)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_finite(value) -> bool:
    return _is_number(value) and math.isfinite(value)


_OFFSET_PATTERN = re.compile(r"^([+-])(\d{2}):?(\d{2})$")


def resolve_timezone(name: str) -> "pendulum.Timezone | pendulum.FixedTimezone":
    """
    Resolve an IANA name ('Europe/Berlin') or a fixed offset ('+02:00').

    Raises:
        InvalidConfiguration: If the name is neither
    """
    match = _OFFSET_PATTERN.match(name.strip())
    if match:
        sign, hours, minutes = match.groups()
        seconds = int(hours) * 3600 + int(minutes) * 60
        return pendulum.FixedTimezone(-seconds if sign == "-" else seconds)
    try:
        return pendulum.timezone(name)
    except Exception as exc:
        raise InvalidConfiguration(f"Unknown timezone '{name}'") from exc


def timezone_name(value: datetime) -> str:
    """Name that ``resolve_timezone`` maps back to the zone of ``value``."""
    tz = value.tzinfo
    if isinstance(tz, (pendulum.Timezone, pendulum.FixedTimezone)):
        return tz.name
    return "UTC"


def parse_start(value: "DateTime | datetime | str", timezone: str = "UTC") -> DateTime:
    """Parse the trip start timestamp, raising InvalidConfiguration on garbage."""
    if isinstance(value, DateTime):
        return value
    tz = resolve_timezone(timezone)
    if isinstance(value, datetime):
        return pendulum.instance(value, tz=tz)
    try:
        parsed = pendulum.parse(str(value).strip(), tz=tz)
    except (ValueError, TypeError) as exc:
        raise InvalidConfiguration(f"Unparseable start timestamp '{value}': {exc}") from exc
    if not isinstance(parsed, DateTime):
        raise InvalidConfiguration(f"Start timestamp '{value}' is not a date and time")
    # Explicit offsets in the text win over ``tz``; bring them back to trip time.
    return parsed.in_timezone(tz)


@dataclass(frozen=True)
class TripConfiguration:
    """
    Current trip settings as maintained by the administrator.

    Invariants: costs are finite non-negative numbers, total_days is a positive
    integer and capacity is one of the supported car sizes.
    """
    rental_cost: float
    daily_insurance_rate: float
    total_days: int
    capacity: int
    start: DateTime
    payment_handle: str = ""

    def __post_init__(self):
        for field_name in ("rental_cost", "daily_insurance_rate"):
            amount = getattr(self, field_name)
            if not _is_number(amount):
                raise InvalidConfiguration(f"{field_name} must be a number, got {amount!r}")
            if not _is_finite(amount):
                raise InvalidConfiguration(f"{field_name} must be finite, got {amount}")
            if amount < 0:
                raise InvalidConfiguration(f"{field_name} must not be negative, got {amount}")
        if not isinstance(self.total_days, int) or isinstance(self.total_days, bool) or self.total_days <= 0:
            raise InvalidConfiguration(f"total_days must be a positive integer, got {self.total_days!r}")
        if self.capacity not in {car.value for car in CarType}:
            supported = ", ".join(str(car.value) for car in CarType)
            raise InvalidConfiguration(f"capacity must be one of {supported}, got {self.capacity!r}")
        if not isinstance(self.start, datetime):
            raise InvalidConfiguration(f"start must be a date and time, got {self.start!r}")
        if not isinstance(self.start, DateTime):
            # Naive standard library datetimes are taken as UTC.
            object.__setattr__(self, "start", pendulum.instance(self.start))

    @classmethod
    def create(
        cls,
        *,
        rental_cost: float,
        daily_insurance_rate: float,
        total_days: int,
        capacity: int,
        start: "DateTime | datetime | str",
        timezone: str = "UTC",
        payment_handle: str = "",
    ) -> "TripConfiguration":
        """Build a configuration from raw values, parsing the start timestamp."""
        return cls(
            rental_cost=rental_cost,
            daily_insurance_rate=daily_insurance_rate,
            total_days=total_days,
            capacity=int(capacity) if isinstance(capacity, CarType) else capacity,
            start=parse_start(start, timezone),
            payment_handle=payment_handle,
        )

    @property
    def car_type(self) -> CarType:
        return CarType(self.capacity)

    @property
    def starts_in_afternoon(self) -> bool:
        return self.start.hour >= 12

    @property
    def total_insurance(self) -> float:
        return self.daily_insurance_rate * self.total_days


@dataclass(frozen=True)
class SlotKey:
    """A (date, slot) pair identifying one half-day of the trip."""
    day: date
    slot: TimeSlot

    def format_display(self) -> str:
        """
        Format the slot for display.
        Format: Sun, Jun 1, 2025 | Morning Trip (07:00 - 14:00)
        """
        day = pendulum.date(self.day.year, self.day.month, self.day.day)
        return f"{day.format('ddd, MMM D, YYYY')} | {self.slot.label} ({self.slot.time_window})"


@dataclass
class Reservation:
    """One person occupying one seat in one slot."""
    name: str
    day: date
    slot: TimeSlot
    is_driver: bool = False
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def key(self) -> SlotKey:
        return SlotKey(self.day, self.slot)

    @property
    def name_key(self) -> str:
        return normalize_name(self.name)


@dataclass(frozen=True)
class ExpenseEntry:
    """A trip expense (gas fill up, tolls, ...) supplied by the caller."""
    amount: float
    day: date
    note: str = ""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self):
        if not _is_number(self.amount):
            raise InvalidExpense(f"Expense amount must be a number, got {self.amount!r}")
        if not _is_finite(self.amount):
            raise InvalidExpense(f"Expense amount must be finite, got {self.amount}")
        if self.amount < 0:
            raise InvalidExpense(f"Expense amount must not be negative, got {self.amount}")

    @classmethod
    def create(
        cls,
        amount: float,
        day: "date | str | None" = None,
        note: str = "",
        today: Optional[date] = None,
    ) -> "ExpenseEntry":
        """Manual entry: blank notes become 'Gas fill up' and the date defaults to today."""
        if day is None:
            day = today or pendulum.today().date()
        try:
            calendar_day = as_calendar_date(day)
        except ValueError as exc:
            raise InvalidExpense(str(exc)) from exc
        return cls(amount=amount, day=calendar_day, note=note.strip() or "Gas fill up")


@dataclass(frozen=True)
class CostTotals:
    """Trip costs kept per category so shares can be broken down."""
    rental: float
    insurance: float
    expenses: float

    @property
    def total(self) -> float:
        return self.rental + self.insurance + self.expenses


@dataclass(frozen=True)
class PersonShare:
    """What one person owes, rounded to cents for reporting."""
    name: str
    slots_joined: int
    total_share: float
    rental_share: float
    insurance_share: float
    expense_share: float


@dataclass(frozen=True)
class ShareReport:
    """Result of a share calculation; recomputed on every request."""
    shares: List[PersonShare]
    costs: CostTotals
    total_person_slots: int
    cost_per_slot: float

    @property
    def total_trip_cost(self) -> float:
        return self.costs.total


@dataclass(frozen=True)
class SlotStatus:
    """Occupancy snapshot of a single slot for display and driver selection."""
    key: SlotKey
    reservations: Tuple[Reservation, ...]
    capacity: int

    @property
    def occupancy(self) -> int:
        return len(self.reservations)

    @property
    def is_full(self) -> bool:
        return self.occupancy >= self.capacity

    @property
    def seats_left(self) -> int:
        return max(self.capacity - self.occupancy, 0)

    @property
    def driver(self) -> Optional[Reservation]:
        return next((r for r in self.reservations if r.is_driver), None)

    @property
    def missing_driver(self) -> bool:
        return self.occupancy > 0 and self.driver is None


@dataclass(frozen=True)
class ReceiptDraft:
    """Values read from a receipt, to be confirmed before recording an expense."""
    amount: float
    day: date
    note: str
