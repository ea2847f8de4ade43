"""
Shared fixtures for trip configurations and registries.
"""

import pendulum
import pytest

from seatsplit.domain.booking_registry import BookingRegistry
from seatsplit.domain.models import TripConfiguration


def make_config(
    start: str = "2025-06-01 09:00",
    total_days: int = 3,
    capacity: int = 5,
    rental_cost: float = 200,
    daily_insurance_rate: float = 25,
) -> TripConfiguration:
    return TripConfiguration(
        rental_cost=rental_cost,
        daily_insurance_rate=daily_insurance_rate,
        total_days=total_days,
        capacity=capacity,
        start=pendulum.parse(start, tz="UTC"),
    )


@pytest.fixture
def config() -> TripConfiguration:
    return make_config()


@pytest.fixture
def registry(config) -> BookingRegistry:
    return BookingRegistry(config)
