"""
Application service for booking seats and splitting trip costs.

The service owns the current trip state (settings, reservations, expenses,
driver roster) and delegates the rules to the domain layer. Receipt scanning,
cost advice and persistence are reached through small protocols so the CLI
can plug in the HTTP adapters, the offline mocks, or nothing at all.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Protocol

from ..domain.booking_registry import BookingRegistry
from ..domain.exceptions import AccessDenied, ExternalServiceError
from ..domain.models import (
    ExpenseEntry,
    ReceiptDraft,
    Reservation,
    ShareReport,
    TimeSlot,
    TripConfiguration,
    normalize_name,
)
from ..domain.share_calculator import compute_shares

logger = logging.getLogger(__name__)

FALLBACK_ADVICE = "Ensure everyone pays their share promptly!"


class ReceiptParserProtocol(Protocol):
    """Protocol describing the receipt scanning capability."""

    def parse_receipt(self, image: bytes, mime_type: str = "image/jpeg") -> ReceiptDraft:
        """Extract amount, date and vendor from a receipt image."""


class AdviceProviderProtocol(Protocol):
    """Protocol describing the cost advice capability."""

    def cost_advice(self, total_cost: float, people_count: int, currency: str = "USD") -> str:
        """Return a short tip on settling the group expense."""


class TripStoreProtocol(Protocol):
    """Protocol describing where the caller keeps the trip state."""

    def load(self, default_config: TripConfiguration, default_drivers: List[str]) -> "TripState":
        """Return the stored state, or a fresh one built from the defaults."""

    def save(self, state: "TripState") -> None:
        """Persist the given state."""


@dataclass
class TripState:
    """Plain snapshot of everything the service manages."""
    config: TripConfiguration
    reservations: List[Reservation] = field(default_factory=list)
    expenses: List[ExpenseEntry] = field(default_factory=list)
    drivers: List[str] = field(default_factory=list)


def require_authorized(authorized: bool, action: str) -> None:
    if not authorized:
        raise AccessDenied(f"Only the trip administrator can {action}.")


class TripService:
    """
    Orchestrates bookings, expenses and the cost summary.

    Administrative operations take an ``authorized`` flag supplied by the
    caller's access gate; the service does not authenticate anyone itself.
    """

    def __init__(
        self,
        state: TripState,
        receipt_parser: Optional[ReceiptParserProtocol] = None,
        advice_provider: Optional[AdviceProviderProtocol] = None,
        store: Optional[TripStoreProtocol] = None,
    ) -> None:
        self._registry = BookingRegistry(state.config, state.reservations)
        self._expenses: List[ExpenseEntry] = list(state.expenses)
        self._drivers: List[str] = []
        for name in state.drivers:
            self._add_driver_name(name)
        self._receipt_parser = receipt_parser
        self._advice_provider = advice_provider
        self._store = store

    @classmethod
    def from_store(
        cls,
        store: TripStoreProtocol,
        default_config: TripConfiguration,
        default_drivers: Optional[List[str]] = None,
        **kwargs,
    ) -> "TripService":
        state = store.load(default_config, list(default_drivers or []))
        return cls(state, store=store, **kwargs)

    @property
    def configuration(self) -> TripConfiguration:
        return self._registry.configuration

    @property
    def registry(self) -> BookingRegistry:
        return self._registry

    @property
    def expenses(self) -> List[ExpenseEntry]:
        return list(self._expenses)

    @property
    def drivers(self) -> List[str]:
        return list(self._drivers)

    def snapshot(self) -> TripState:
        return TripState(
            config=self.configuration,
            reservations=self._registry.reservations,
            expenses=list(self._expenses),
            drivers=list(self._drivers),
        )

    def save(self) -> None:
        """Hand the current state to the store, if one is attached."""
        if self._store is None:
            return
        self._store.save(self.snapshot())
        logger.debug("Trip state saved")

    # Bookings

    def join(self, person: str, day: "date | str", slot: "TimeSlot | str") -> str:
        reservation_id = self._registry.join(person, day, slot)
        logger.info("%s joined %s %s (%s)", person.strip(), day, slot, reservation_id)
        return reservation_id

    def cancel(self, reservation_id: str) -> None:
        self._registry.cancel(reservation_id)
        logger.info("Cancelled reservation %s", reservation_id)

    def assign_driver(
        self,
        day: "date | str",
        slot: "TimeSlot | str",
        reservation_id: Optional[str] = None,
    ) -> None:
        self._registry.assign_driver(day, slot, reservation_id)
        logger.info("Driver for %s %s set to %s", day, slot, reservation_id or "nobody")

    # Administration

    def update_configuration(self, config: TripConfiguration, *, authorized: bool) -> None:
        require_authorized(authorized, "change the trip configuration")
        self._registry.reconfigure(config)
        logger.info(
            "Trip reconfigured: %s days from %s, %s seats",
            config.total_days,
            config.start.to_datetime_string(),
            config.capacity,
        )

    def add_expense(
        self,
        amount: float,
        day: "date | str | None" = None,
        note: str = "",
        *,
        authorized: bool,
    ) -> ExpenseEntry:
        require_authorized(authorized, "record expenses")
        entry = ExpenseEntry.create(amount, day=day, note=note)
        self._expenses.append(entry)
        logger.info("Recorded expense %.2f (%s)", entry.amount, entry.note)
        return entry

    def remove_expense(self, expense_id: str, *, authorized: bool) -> None:
        """Remove an expense by id or unique id prefix; unknown ids are ignored."""
        require_authorized(authorized, "remove expenses")
        matches = [e for e in self._expenses if e.id == expense_id]
        if not matches:
            matches = [e for e in self._expenses if expense_id and e.id.startswith(expense_id)]
        if len(matches) != 1:
            logger.debug("No single expense matches %s; nothing removed", expense_id)
            return
        self._expenses = [e for e in self._expenses if e.id != matches[0].id]
        logger.info("Removed expense %s", matches[0].id)

    def add_driver(self, name: str, *, authorized: bool) -> bool:
        """Add a designated driver to the roster. Returns False for duplicates."""
        require_authorized(authorized, "manage drivers")
        return self._add_driver_name(name)

    def remove_driver(self, name: str, *, authorized: bool) -> bool:
        require_authorized(authorized, "manage drivers")
        key = normalize_name(name)
        remaining = [d for d in self._drivers if normalize_name(d) != key]
        removed = len(remaining) != len(self._drivers)
        self._drivers = remaining
        return removed

    def _add_driver_name(self, name: str) -> bool:
        cleaned = name.strip()
        if not cleaned:
            return False
        key = normalize_name(cleaned)
        if any(normalize_name(d) == key for d in self._drivers):
            return False
        self._drivers.append(cleaned)
        return True

    # Summary

    def compute_shares(self) -> ShareReport:
        return compute_shares(self.configuration, self._registry, self._expenses)

    def scan_receipt(self, image: bytes, mime_type: str = "image/jpeg") -> Optional[ReceiptDraft]:
        """
        Draft an expense from a receipt image.

        Returns None when no parser is configured or the parser fails; the
        caller then falls back to manual entry. Nothing is recorded here.
        """
        if self._receipt_parser is None:
            logger.info("No receipt parser configured; manual entry required")
            return None

        try:
            draft = self._receipt_parser.parse_receipt(image, mime_type=mime_type)
        except ExternalServiceError as exc:
            logger.warning("Failed to scan receipt: %s", exc)
            return None

        return ReceiptDraft(amount=draft.amount, day=draft.day, note=f"{draft.note} (Scanned)")

    def cost_advice(self, report: ShareReport, currency: str = "USD") -> Optional[str]:
        """
        Short advice on settling up, or None when there is nothing to split.
        """
        if report.total_trip_cost <= 0 or not report.shares:
            return None
        if self._advice_provider is None:
            return FALLBACK_ADVICE

        try:
            advice = self._advice_provider.cost_advice(
                report.total_trip_cost, len(report.shares), currency=currency
            )
        except ExternalServiceError as exc:
            logger.warning("Could not fetch cost advice: %s", exc)
            return FALLBACK_ADVICE

        return advice.strip() or FALLBACK_ADVICE
