"""
Tests for the YAML trip state file.
"""

from datetime import date

import pytest
import yaml

from seatsplit.adapters.trip_store import YamlTripStore
from seatsplit.domain.exceptions import DuplicatePerson, StorageError
from seatsplit.domain.models import TimeSlot
from seatsplit.services.trip_service import TripService

from conftest import make_config

DAY_ONE = date(2025, 6, 1)


class TestYamlTripStore:
    """Tests for loading and saving trip state."""

    def test_missing_file_starts_fresh(self, tmp_path):
        store = YamlTripStore(tmp_path / "state.yaml")

        state = store.load(make_config(), ["Alice"])

        assert state.reservations == []
        assert state.expenses == []
        assert state.drivers == ["Alice"]
        assert state.config.total_days == 3

    def test_round_trip_through_service(self, tmp_path):
        """Bookings, drivers, expenses and settings survive a save and reload."""
        store = YamlTripStore(tmp_path / "state.yaml")
        service = TripService.from_store(store, make_config(start="2025-06-01 14:00"), ["Alice"])
        alice = service.join("Alice", DAY_ONE, TimeSlot.AFTERNOON)
        service.join("Bob", DAY_ONE, TimeSlot.AFTERNOON)
        service.assign_driver(DAY_ONE, TimeSlot.AFTERNOON, alice)
        service.add_expense(42.5, day="2025-06-01", note="Shell", authorized=True)
        service.add_driver("Cara", authorized=True)
        service.save()

        reloaded = TripService.from_store(store, make_config(), [])

        assert reloaded.configuration.starts_in_afternoon
        assert reloaded.drivers == ["Alice", "Cara"]
        listed = reloaded.registry.list_by_slot(DAY_ONE, TimeSlot.AFTERNOON)
        assert [(r.id, r.name, r.is_driver) for r in listed] == [
            (alice, "Alice", True),
            (listed[1].id, "Bob", False),
        ]
        assert [(e.amount, e.note, e.day) for e in reloaded.expenses] == [(42.5, "Shell", DAY_ONE)]

    def test_saved_file_is_readable_yaml(self, tmp_path):
        path = tmp_path / "state.yaml"
        store = YamlTripStore(path)
        service = TripService.from_store(store, make_config())
        service.join("Alice", DAY_ONE, TimeSlot.MORNING)
        service.save()

        data = yaml.safe_load(path.read_text(encoding="utf-8"))

        assert data["reservations"][0]["name"] == "Alice"
        assert data["reservations"][0]["slot"] == "morning"
        assert data["trip"]["car_type"] == 5
        assert not (tmp_path / "state.yaml.tmp").exists()

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "state.yaml"
        path.write_text("reservations: [oops", encoding="utf-8")

        with pytest.raises(StorageError, match="Could not read"):
            YamlTripStore(path).load(make_config(), [])

    def test_invalid_reservation_entry(self, tmp_path):
        path = tmp_path / "state.yaml"
        path.write_text("reservations:\n  - name: Alice\n", encoding="utf-8")

        with pytest.raises(StorageError, match="Invalid trip state"):
            YamlTripStore(path).load(make_config(), [])

    def test_restored_duplicates_surface_booking_errors(self, tmp_path):
        """Corrupt data hits the registry's own checks."""
        path = tmp_path / "state.yaml"
        path.write_text(
            "reservations:\n"
            "  - {id: '1', name: Alice, date: '2025-06-01', slot: morning}\n"
            "  - {id: '2', name: alice, date: '2025-06-01', slot: morning}\n",
            encoding="utf-8",
        )

        with pytest.raises(DuplicatePerson):
            TripService.from_store(YamlTripStore(path), make_config())
