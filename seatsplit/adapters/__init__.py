"""
Adapters layer - External integrations (Gemini API, state file).
"""

from .gemini_client import GeminiClient
from .mock_ai_client import MockAIClient
from .trip_store import YamlTripStore

__all__ = ["GeminiClient", "MockAIClient", "YamlTripStore"]
