"""
Seat reservations for every (date, slot) of the trip.

The registry is the single owner of reservations. Every mutating operation
leaves these invariants intact:

- a slot never holds more reservations than the car has seats
- a person (trimmed, case-insensitive name) appears at most once per slot
- at most one reservation per slot is flagged as driver
- every reservation targets a slot produced by ``expand_dates``

Operations are synchronous and not thread-safe; callers sharing a registry
across threads must serialize access themselves.
"""

from collections import Counter
from dataclasses import replace
from datetime import date
from typing import Dict, Iterable, List, Optional

from .date_slots import expand_dates
from .exceptions import (
    BookingError,
    DuplicatePerson,
    InvalidConfiguration,
    MissingName,
    ReservationNotFound,
    SlotFull,
    SlotNotFound,
)
from .models import (
    Reservation,
    SlotKey,
    SlotStatus,
    TimeSlot,
    TripConfiguration,
    as_calendar_date,
    normalize_name,
)


class BookingRegistry:
    """
    Holds reservations and enforces capacity, uniqueness and driver rules.

    Reservations are kept in join order; per-slot listings preserve it.
    """

    def __init__(
        self,
        config: TripConfiguration,
        reservations: Iterable[Reservation] = (),
    ):
        self._config = config
        self._slot_keys: List[SlotKey] = expand_dates(config)
        self._valid_keys = set(self._slot_keys)
        self._reservations: List[Reservation] = []

        for reservation in reservations:
            self._admit(replace(reservation))

    @property
    def configuration(self) -> TripConfiguration:
        return self._config

    @property
    def slot_keys(self) -> List[SlotKey]:
        """Ordered slots of the current configuration."""
        return list(self._slot_keys)

    @property
    def reservations(self) -> List[Reservation]:
        """Copies of all reservations in join order."""
        return [replace(r) for r in self._reservations]

    def __len__(self) -> int:
        return len(self._reservations)

    def reconfigure(self, config: TripConfiguration) -> None:
        """
        Switch to a new trip configuration.

        Rejected when existing reservations would fall outside the new slots
        or exceed the new capacity; the registry is unchanged in that case.
        """
        new_keys = expand_dates(config)
        valid = set(new_keys)

        orphaned = [r for r in self._reservations if r.key not in valid]
        if orphaned:
            listing = ", ".join(
                sorted({f"{r.day.isoformat()} {r.slot.value}" for r in orphaned})
            )
            raise InvalidConfiguration(
                f"{len(orphaned)} reservation(s) fall outside the new trip dates: {listing}"
            )

        occupancy = Counter(r.key for r in self._reservations)
        overfull = [key for key, count in occupancy.items() if count > config.capacity]
        if overfull:
            listing = ", ".join(
                f"{key.day.isoformat()} {key.slot.value}" for key in overfull
            )
            raise InvalidConfiguration(
                f"Capacity {config.capacity} is below current occupancy for: {listing}"
            )

        self._config = config
        self._slot_keys = new_keys
        self._valid_keys = valid

    def join(self, person: str, day: "date | str", slot: "TimeSlot | str") -> str:
        """
        Reserve a seat for ``person`` in one (date, slot).

        Returns:
            The id of the new reservation

        Raises:
            MissingName: If the name is blank
            SlotNotFound: If the slot is not part of the trip
            SlotFull: If the slot is at capacity
            DuplicatePerson: If the person already holds this slot
        """
        name = person.strip()
        if not name:
            raise MissingName("Please enter your name")

        key = self._require_key(day, slot)
        reservation = Reservation(name=name, day=key.day, slot=key.slot)
        self._admit(reservation)
        return reservation.id

    def cancel(self, reservation_id: str) -> None:
        """Remove a reservation. Unknown ids are ignored."""
        self._reservations = [r for r in self._reservations if r.id != reservation_id]

    def assign_driver(
        self,
        day: "date | str",
        slot: "TimeSlot | str",
        reservation_id: Optional[str] = None,
    ) -> None:
        """
        Make ``reservation_id`` the only driver of the slot.

        Passing ``None`` or an id not booked in this slot leaves the slot
        without a driver. Every reservation of the slot is updated in one pass.
        """
        key = self._require_key(day, slot)
        for reservation in self._reservations:
            if reservation.key == key:
                reservation.is_driver = reservation.id == reservation_id

    def list_by_slot(self, day: "date | str", slot: "TimeSlot | str") -> List[Reservation]:
        """Reservations of one slot in join order (copies)."""
        key = self._key(day, slot)
        return [replace(r) for r in self._reservations if r.key == key]

    def per_person_slot_counts(self) -> Dict[str, int]:
        """
        Number of reservations per person across the whole trip.

        People are matched by normalized name; the first spelling seen is
        used as the display name.
        """
        display_names: Dict[str, str] = {}
        counts: Dict[str, int] = {}
        for reservation in self._reservations:
            name_key = reservation.name_key
            display = display_names.setdefault(name_key, reservation.name)
            counts[display] = counts.get(display, 0) + 1
        return counts

    def slot_status(self, day: "date | str", slot: "TimeSlot | str") -> SlotStatus:
        key = self._key(day, slot)
        return SlotStatus(
            key=key,
            reservations=tuple(self.list_by_slot(key.day, key.slot)),
            capacity=self._config.capacity,
        )

    def slots_missing_driver(self) -> List[SlotKey]:
        """Occupied slots in trip order that have nobody flagged as driver."""
        return [
            key for key in self._slot_keys
            if self.slot_status(key.day, key.slot).missing_driver
        ]

    def get(self, reservation_id: str) -> Optional[Reservation]:
        for reservation in self._reservations:
            if reservation.id == reservation_id:
                return replace(reservation)
        return None

    def find(self, id_prefix: str) -> Reservation:
        """
        Resolve a full id or a unique id prefix.

        Raises:
            ReservationNotFound: If nothing or more than one reservation matches
        """
        prefix = id_prefix.strip()
        if not prefix:
            raise ReservationNotFound("Reservation id must not be empty")

        exact = self.get(prefix)
        if exact:
            return exact

        matches = [r for r in self._reservations if r.id.startswith(prefix)]
        if not matches:
            raise ReservationNotFound(f"No reservation matches '{prefix}'")
        if len(matches) > 1:
            raise ReservationNotFound(
                f"Reservation id '{prefix}' is ambiguous ({len(matches)} matches)"
            )
        return replace(matches[0])

    @staticmethod
    def _key(day: "date | str", slot: "TimeSlot | str") -> SlotKey:
        return SlotKey(as_calendar_date(day), TimeSlot.parse(slot))

    def _require_key(self, day: "date | str", slot: "TimeSlot | str") -> SlotKey:
        key = self._key(day, slot)
        if key not in self._valid_keys:
            raise SlotNotFound(key.day, key.slot.value)
        return key

    def _admit(self, reservation: Reservation) -> None:
        """Run every invariant check for one reservation, then store it."""
        key = reservation.key
        if key not in self._valid_keys:
            raise SlotNotFound(key.day, key.slot.value)

        in_slot = [r for r in self._reservations if r.key == key]
        if len(in_slot) >= self._config.capacity:
            raise SlotFull(key.day, key.slot.value, self._config.capacity)

        name_key = normalize_name(reservation.name)
        if any(r.name_key == name_key for r in in_slot):
            raise DuplicatePerson(reservation.name, key.day, key.slot.value)

        if reservation.is_driver and any(r.is_driver for r in in_slot):
            raise BookingError(
                f"The {key.slot.value} slot on {key.day.isoformat()} already has a driver"
            )

        if any(r.id == reservation.id for r in self._reservations):
            raise BookingError(f"Duplicate reservation id {reservation.id}")

        self._reservations.append(reservation)
