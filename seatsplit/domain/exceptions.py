"""
Domain-specific exception hierarchy for the seatsplit application.
"""

from datetime import date


class SeatSplitError(Exception):
    """Base class for all application-level errors."""


class InvalidConfiguration(SeatSplitError, ValueError):
    """Raised when trip settings are malformed or inconsistent."""


class InvalidExpense(SeatSplitError, ValueError):
    """Raised when an expense entry carries an unusable amount or date."""


class AccessDenied(SeatSplitError):
    """Raised when an administrative operation is attempted without authorization."""


class BookingError(SeatSplitError):
    """Base class for reservation failures."""


class SlotNotFound(BookingError):
    """Raised when a (date, slot) pair is not part of the current trip."""

    def __init__(self, day: date, slot: str):
        self.day = day
        self.slot = slot
        super().__init__(f"No {slot} slot on {day.isoformat()} for this trip")


class SlotFull(BookingError):
    """Raised when a slot already holds as many people as the car has seats."""

    def __init__(self, day: date, slot: str, capacity: int):
        self.day = day
        self.slot = slot
        self.capacity = capacity
        super().__init__(
            f"Car is full for the {slot} slot on {day.isoformat()} (Max {capacity} people)"
        )


class DuplicatePerson(BookingError):
    """Raised when the same person tries to join a slot twice."""

    def __init__(self, name: str, day: date, slot: str):
        self.name = name
        self.day = day
        self.slot = slot
        super().__init__(
            f"{name} is already registered for the {slot} slot on {day.isoformat()}"
        )


class ReservationNotFound(BookingError):
    """Raised when a reservation id (or id prefix) cannot be resolved."""


class ExternalServiceError(SeatSplitError):
    """Raised when receipt scanning or advice generation fails."""


class StorageError(SeatSplitError):
    """Raised when the trip state file cannot be read or written."""


class MissingName(BookingError, ValueError):
    """Raised when a reservation is requested without a person name."""
