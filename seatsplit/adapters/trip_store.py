"""
YAML file storage for the trip state used by the CLI.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List

import yaml
from pydantic import ValidationError

from ..config import TripSettings
from ..domain.exceptions import SeatSplitError, StorageError
from ..domain.models import (
    ExpenseEntry,
    Reservation,
    TimeSlot,
    TripConfiguration,
    as_calendar_date,
)
from ..services.trip_service import TripState

logger = logging.getLogger(__name__)


class YamlTripStore:
    """
    Keeps trip settings, drivers, reservations and expenses in one YAML file.

    File format:
        trip: {rental_cost, daily_insurance, total_days, car_type, start, timezone, payment_handle}
        drivers: [name, ...]
        reservations: [{id, name, date, slot, is_driver}, ...]   # join order
        expenses: [{id, amount, date, note}, ...]
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self, default_config: TripConfiguration, default_drivers: List[str]) -> TripState:
        """
        Load the stored state, or start fresh from the defaults when no file exists.

        Raises:
            StorageError: If the file cannot be read or has an invalid structure
        """
        if not self.path.exists():
            logger.debug("No state file at %s; starting a fresh trip", self.path)
            return TripState(config=default_config, drivers=list(default_drivers))

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise StorageError(f"Could not read trip state {self.path}: {exc}") from exc

        if not isinstance(data, dict):
            raise StorageError(f"Trip state {self.path} must contain a mapping at the root level.")

        try:
            config = (
                TripSettings(**data["trip"]).to_configuration()
                if data.get("trip")
                else default_config
            )
            reservations = [self._reservation_from_dict(item) for item in data.get("reservations") or []]
            expenses = [self._expense_from_dict(item) for item in data.get("expenses") or []]
        except (KeyError, TypeError, ValueError, ValidationError, SeatSplitError) as exc:
            raise StorageError(f"Invalid trip state in {self.path}: {exc}") from exc

        drivers = data.get("drivers")
        return TripState(
            config=config,
            reservations=reservations,
            expenses=expenses,
            drivers=[str(name) for name in drivers] if drivers is not None else list(default_drivers),
        )

    def save(self, state: TripState) -> None:
        """Write the state, replacing the previous file."""
        data: Dict[str, Any] = {
            "trip": TripSettings.from_configuration(state.config).model_dump(),
            "drivers": list(state.drivers),
            "reservations": [self._reservation_to_dict(r) for r in state.reservations],
            "expenses": [self._expense_to_dict(e) for e in state.expenses],
        }

        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, sort_keys=False, allow_unicode=True)
            tmp_path.replace(self.path)
        except OSError as exc:
            raise StorageError(f"Could not save trip state to {self.path}: {exc}") from exc

    @staticmethod
    def _reservation_from_dict(item: Dict[str, Any]) -> Reservation:
        return Reservation(
            id=str(item["id"]),
            name=str(item["name"]),
            day=as_calendar_date(item["date"]),
            slot=TimeSlot.parse(item["slot"]),
            is_driver=bool(item.get("is_driver", False)),
        )

    @staticmethod
    def _reservation_to_dict(reservation: Reservation) -> Dict[str, Any]:
        return {
            "id": reservation.id,
            "name": reservation.name,
            "date": reservation.day.isoformat(),
            "slot": reservation.slot.value,
            "is_driver": reservation.is_driver,
        }

    @staticmethod
    def _expense_from_dict(item: Dict[str, Any]) -> ExpenseEntry:
        return ExpenseEntry(
            id=str(item["id"]),
            amount=float(item["amount"]),
            day=as_calendar_date(item["date"]),
            note=str(item.get("note", "")),
        )

    @staticmethod
    def _expense_to_dict(entry: ExpenseEntry) -> Dict[str, Any]:
        return {
            "id": entry.id,
            "amount": entry.amount,
            "date": entry.day.isoformat(),
            "note": entry.note,
        }
