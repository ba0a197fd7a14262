"""
Gemini client.

Thin wrapper over the Google Gemini API: one prompt, optionally one inline
document, raw generated text back.
"""

from dataclasses import dataclass, field
from typing import Optional

import google.generativeai as genai
from fastapi import status

from recruitcrm.core.config import settings
from recruitcrm.core.errors import APIError
from recruitcrm.core.logging import get_logger

logger = get_logger("ai_client")


class AIClientError(Exception):
    """Raised when the Gemini call fails or returns no usable text."""


@dataclass
class Generation:
    text: str
    token_usage: dict = field(default_factory=dict)


def _token_usage(response) -> dict:
    usage = getattr(response, "usage_metadata", None)
    return {
        "promptTokens": getattr(usage, "prompt_token_count", 0) or 0,
        "candidatesTokens": getattr(usage, "candidates_token_count", 0) or 0,
        "totalTokens": getattr(usage, "total_token_count", 0) or 0,
    }


class GeminiClient:
    """Generate text from a prompt and an optional inline document."""

    def __init__(self, api_key: str, model_name: Optional[str] = None):
        self.api_key = api_key
        self.model_name = model_name or settings.GEMINI_MODEL

    def generate(
        self,
        prompt: str,
        document: Optional[bytes] = None,
        mime_type: Optional[str] = None,
    ) -> Generation:
        """
        Run one completion.

        Args:
            prompt: Instruction text
            document: Raw file bytes sent inline alongside the prompt
            mime_type: Declared media type of ``document``

        Returns:
            Generation with the raw text and token usage counts

        Raises:
            AIClientError: on any API failure
        """
        parts: list = [prompt]
        if document is not None:
            parts.append({"mime_type": mime_type or "application/pdf", "data": document})

        try:
            genai.configure(api_key=self.api_key)
            model = genai.GenerativeModel(self.model_name)
            logger.info(f"📡 Sending request to {self.model_name}...")
            response = model.generate_content(parts)
            text = response.text
        except Exception as e:
            logger.error(f"❌ Gemini API error: {e}")
            raise AIClientError(str(e)) from e

        usage = _token_usage(response)
        logger.info(f"✅ Gemini response received ({usage['totalTokens']} tokens)")
        logger.info(f"Raw response:\n{(text or '')[:500]}")
        return Generation(text=text or "", token_usage=usage)


def get_ai_client() -> GeminiClient:
    """FastAPI dependency; fails fast when no API key is configured."""
    if not settings.GEMINI_API_KEY:
        logger.error("GEMINI_API_KEY environment variable not set")
        raise APIError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Gemini API key not configured. Please set GEMINI_API_KEY environment variable.",
        )
    return GeminiClient(settings.GEMINI_API_KEY)
