"""
Offline stand-in for the Gemini client.
"""

from datetime import date
from typing import List, Optional

import pendulum

from ..domain.exceptions import ExternalServiceError
from ..domain.models import ReceiptDraft, as_calendar_date


class MockAIClient:
    """
    Mock client that answers receipt scans and advice requests locally.

    Useful for trying out the CLI (``--mock``) and for tests, without an API
    key or network access. With ``fail=True`` every call raises, which
    exercises the manual-entry fallback.
    """

    def __init__(
        self,
        amount: float = 45.5,
        vendor: str = "Shell",
        receipt_day: Optional[date] = None,
        fail: bool = False,
    ):
        self.amount = amount
        self.vendor = vendor
        self.receipt_day = receipt_day
        self.fail = fail
        self.calls: List[str] = []

    def parse_receipt(self, image: bytes, mime_type: str = "image/jpeg") -> ReceiptDraft:
        self.calls.append("parse_receipt")
        if self.fail:
            raise ExternalServiceError("Mock receipt scanner is offline")
        if not image:
            raise ExternalServiceError("Empty receipt image")

        receipt_day = self.receipt_day or pendulum.today().date()
        return ReceiptDraft(
            amount=self.amount,
            day=as_calendar_date(receipt_day),
            note=self.vendor or "Gas Receipt",
        )

    def cost_advice(self, total_cost: float, people_count: int, currency: str = "USD") -> str:
        self.calls.append("cost_advice")
        if self.fail:
            raise ExternalServiceError("Mock advice provider is offline")
        per_person = total_cost / people_count if people_count else total_cost
        return (
            f"Roughly {per_person:.2f} {currency} per person. Settle up via Zelle "
            "right after the trip so nobody carries the cost for long."
        )
