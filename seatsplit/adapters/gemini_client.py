"""
Gemini API client for receipt scanning and cost advice.
"""

import base64
import json
import logging
from datetime import date
from typing import Any, Dict, Optional

import pendulum
import requests

from ..domain.exceptions import ExternalServiceError
from ..domain.models import ReceiptDraft, as_calendar_date

logger = logging.getLogger(__name__)


RECEIPT_PROMPT = (
    "Extract the total amount, date (YYYY-MM-DD), and a short vendor name "
    "from this gas receipt. Return JSON."
)

RECEIPT_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "amount": {"type": "NUMBER"},
        "date": {"type": "STRING"},
        "vendor": {"type": "STRING"},
    },
    "required": ["amount", "date"],
}


class GeminiClient:
    """
    Client for the Gemini ``generateContent`` REST endpoint.

    Implements both the receipt parser and the advice provider protocols.
    Every network or payload problem is raised as ExternalServiceError so the
    service can fall back to manual entry.
    """

    API_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta"

    def __init__(self, api_key: str, model: str = "gemini-2.5-flash", timeout: float = 30):
        """
        Initialize the Gemini client.

        Args:
            api_key: Gemini API key
            model: Model name used for both calls
            timeout: Request timeout in seconds
        """
        if not api_key:
            raise ExternalServiceError("A Gemini API key is required")
        self.model = model
        self.timeout = timeout
        self.headers = {
            "x-goog-api-key": api_key,
            "Content-Type": "application/json"
        }

    def parse_receipt(self, image: bytes, mime_type: str = "image/jpeg") -> ReceiptDraft:
        """
        Extract amount, date and vendor from a receipt image.

        Missing values fall back to 0, today's date and "Gas Receipt".

        Raises:
            ExternalServiceError: If the call fails or the answer is not JSON
        """
        payload = {
            "contents": [
                {
                    "parts": [
                        {
                            "inline_data": {
                                "mime_type": mime_type,
                                "data": base64.b64encode(image).decode("ascii"),
                            }
                        },
                        {"text": RECEIPT_PROMPT},
                    ]
                }
            ],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": RECEIPT_SCHEMA,
            },
        }

        text = self._generate(payload)
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ExternalServiceError(f"Receipt scan returned invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise ExternalServiceError("Receipt scan returned an unexpected payload")

        return self._to_draft(data)

    def cost_advice(self, total_cost: float, people_count: int, currency: str = "USD") -> str:
        """Ask for a short, friendly tip on sharing the trip cost."""
        prompt = (
            f"We have a car rental trip. Total cost is {total_cost:.2f} {currency}. "
            f"There are {people_count} unique people involved. Provide a short, friendly "
            "tip on how to manage this group expense fairly, and mention Zelle as a "
            "payment method. Keep it under 50 words."
        )
        payload = {"contents": [{"parts": [{"text": prompt}]}]}
        return self._generate(payload)

    def _generate(self, payload: Dict[str, Any]) -> str:
        url = f"{self.API_ENDPOINT}/models/{self.model}:generateContent"

        try:
            response = requests.post(
                url,
                headers=self.headers,
                json=payload,
                timeout=self.timeout
            )
            response.raise_for_status()
            data = response.json()

        except requests.exceptions.RequestException as e:
            raise ExternalServiceError(f"Gemini request failed: {e}") from e
        except ValueError as e:
            raise ExternalServiceError(f"Gemini returned a non-JSON response: {e}") from e

        text = self._extract_text(data)
        if not text:
            raise ExternalServiceError("No response from AI")
        return text

    @staticmethod
    def _extract_text(response_data: Dict[str, Any]) -> Optional[str]:
        """
        Pull the generated text out of a generateContent response.

        Response format:
        {
            "candidates": [
                {"content": {"parts": [{"text": "..."}]}}
            ]
        }
        """
        for candidate in response_data.get("candidates", []):
            parts = candidate.get("content", {}).get("parts", [])
            text = "".join(part.get("text", "") for part in parts)
            if text:
                return text
        return None

    @staticmethod
    def _to_draft(data: Dict[str, Any]) -> ReceiptDraft:
        amount = data.get("amount") or 0
        try:
            amount = float(amount)
        except (TypeError, ValueError):
            logger.warning("Ignoring unreadable receipt amount %r", amount)
            amount = 0.0

        today = pendulum.today().date()
        receipt_day: date = as_calendar_date(today)
        if data.get("date"):
            try:
                receipt_day = as_calendar_date(data["date"])
            except ValueError:
                logger.warning("Ignoring unreadable receipt date %r", data["date"])

        return ReceiptDraft(
            amount=max(amount, 0.0),
            day=receipt_day,
            note=str(data.get("vendor") or "Gas Receipt").strip(),
        )
