"""
AI service package for forest prospectus extraction.

This package provides:
- extraction: prompt building, the OpenAI call and response parsing
- extraction_schema: the JSON Schema describing the property record
- validation: consistency warnings for extracted records

The AIService class wraps these with configuration and a mock mode.
"""

import logging
from typing import Any

from ...config import get_settings
from .exceptions import AIServiceError, ExtractionParseError
from .extraction import (
    ExtractionOutcome,
    ExtractionPayload,
    extract_property as _extract_property,
    parse_extraction_response,
    recover_property_json,
)
from .validation import check_record_consistency

logger = logging.getLogger(__name__)

__all__ = [
    "AIService",
    "AIServiceError",
    "ExtractionParseError",
    "ExtractionOutcome",
    "ExtractionPayload",
    "check_record_consistency",
    "get_ai_service",
    "parse_extraction_response",
    "recover_property_json",
]


MOCK_PROPERTY_DATA: dict[str, Any] = {
    "fastighetsbeteckning": "MOCK SKOGEN 1:1",
    "kommun": "Mockby",
    "lage_beskrivning": "Development sample record",
    "areal_total_ha": 56,
    "skogsmark_ha": 50,
    "impediment_ha": 6,
    "volym_total_m3sk": 6000,
    "volym_per_ha_m3sk": 120,
    "bonitet": 5,
    "huggningsklass": "S1, S2, G1, K1",
    "huggningsklasser": {"S1_m3sk": 1200, "S2_m3sk": 300, "G1_m3sk": 2500, "K1_m3sk": 2000},
    "tradslag_andelar": {"gran_procent": 55, "tall_procent": 35, "löv_procent": 10},
    "byggnader": {"finns": False, "typer": []},
    "pris_forvantning_sek": 2100000,
    "taxeringsvarde_sek": 1400000,
}


class AIService:
    """
    Service for AI-powered prospectus extraction.

    Uses an OpenAI chat model in JSON mode to turn prospectus text, a PDF
    byte slice or page images into a PropertyRecord.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        use_mock: bool = False,
    ):
        """
        Initialize the AI service.

        Args:
            api_key: OpenAI API key. If None, reads from config/environment.
            model: Default model. If None, reads from config.
            use_mock: If True, return mock data instead of calling OpenAI.
        """
        settings = get_settings()
        if api_key is None:
            api_key = settings.openai_api_key

        self.api_key = api_key
        self.model = model or settings.openai_model
        self.max_output_tokens = settings.max_output_tokens
        self.use_mock = use_mock or not self.api_key
        self._client = None

        if self.use_mock:
            logger.warning(
                "AI Service running in MOCK MODE. Set OPENAI_API_KEY in .env for real extraction."
            )

    @property
    def client(self):
        """Lazy-load the OpenAI client."""
        if self._client is None:
            if not self.api_key:
                raise AIServiceError(
                    "OpenAI API key not provided. Set OPENAI_API_KEY environment variable."
                )
            from openai import OpenAI

            self._client = OpenAI(api_key=self.api_key)
        return self._client

    async def extract_property(
        self,
        payload: ExtractionPayload,
        model: str | None = None,
    ) -> ExtractionOutcome:
        """
        Extract a property record from a prospectus payload.

        Args:
            payload: Text, PDF slice or page images.
            model: Override the configured model for this call.

        Returns:
            ExtractionOutcome with the validated record.
        """
        return await _extract_property(
            payload,
            client=None if self.use_mock else self.client,
            model=model or self.model,
            max_output_tokens=self.max_output_tokens,
            use_mock=self.use_mock,
            get_mock_response=self._get_mock_response if self.use_mock else None,
        )

    def _get_mock_response(self) -> dict[str, Any]:
        """Return mock extracted data for development."""
        return dict(MOCK_PROPERTY_DATA)


# =============================================================================
# Singleton Factory
# =============================================================================

_ai_service: AIService | None = None


def get_ai_service() -> AIService:
    """Get or create the AI service singleton."""
    global _ai_service
    if _ai_service is None:
        _ai_service = AIService()
    return _ai_service
