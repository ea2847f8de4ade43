"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .trip_service import (
    AdviceProviderProtocol,
    ReceiptParserProtocol,
    TripService,
    TripState,
    TripStoreProtocol,
)

__all__ = [
    "AdviceProviderProtocol",
    "ReceiptParserProtocol",
    "TripService",
    "TripState",
    "TripStoreProtocol",
]
