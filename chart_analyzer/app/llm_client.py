"""
Gemini client for chart analysis.

Rationale:
- Use google-generativeai SDK for Gemini access.
- Keep interface tiny: analyze(payload) -> raw text.
- One request per call. No retries / no streaming / no fallback model.
- Provider exceptions are translated into the error taxonomy here, so the API
  layer never sees SDK types.
"""

import logging
import os
from typing import Any, Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from .config import DEFAULT_MODEL, MAX_OUTPUT_TOKENS, PROMPTS_DIR, Settings
from .errors import (
    ConfigurationError,
    ProviderBillingError,
    ProviderContentError,
    ProviderError,
    ProviderRateLimitError,
    ProviderUnknownError,
)
from .schemas import ImagePayload

logger = logging.getLogger(__name__)

ANALYSIS_PROMPT_PATH = os.path.join(PROMPTS_DIR, "chart_analysis.txt")

# Returned verbatim when the model produced no text part
NO_ANALYSIS_TEXT = "No analysis generated"


def load_prompt(path: str = ANALYSIS_PROMPT_PATH) -> str:
    """Read a prompt text file."""
    with open(path, "r", encoding="utf-8") as f:
        return f.read().strip()


def classify_provider_error(exc: Exception) -> ProviderError:
    """
    Map an exception raised by the SDK to one of the provider error types.

    Billing and image problems arrive as 400-class API errors and are told apart
    by their message; throttling is a 429 (ResourceExhausted).
    """
    message = getattr(exc, "message", None) or str(exc) or type(exc).__name__
    lowered = message.lower()

    if isinstance(exc, google_exceptions.TooManyRequests):
        return ProviderRateLimitError("Rate limit exceeded. Please try again later.", details=message)

    if isinstance(exc, google_exceptions.GoogleAPICallError):
        code = exc.code
        if code in (400, 402, 403) and ("credit" in lowered or "billing" in lowered):
            return ProviderBillingError(
                "Insufficient credits. Please check billing for your Gemini API account.",
                details=message,
            )
        if code == 400 and "image" in lowered:
            return ProviderContentError(
                "Could not process image. Please check image format and size.",
                details=message,
            )

    return ProviderUnknownError("Analysis failed", details=f"{type(exc).__name__}: {message}")


def extract_text(response: Any) -> Optional[str]:
    """Return the first text part of the first candidate, or None."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return None
    content = getattr(candidates[0], "content", None)
    for part in getattr(content, "parts", None) or []:
        text = getattr(part, "text", None)
        if text:
            return text
    return None


class GeminiChartClient:
    """
    Sends one chart image plus the fixed analysis prompt to Gemini.

    Built once at startup and shared read-only across requests.
    """

    def __init__(
        self,
        api_key: str,
        model_name: str = DEFAULT_MODEL,
        max_output_tokens: int = MAX_OUTPUT_TOKENS,
        prompt: Optional[str] = None,
    ):
        if not api_key:
            raise ConfigurationError("GEMINI_API_KEY or LLM_API_KEY must be set in environment")

        genai.configure(api_key=api_key)

        self.model_name = model_name
        self.prompt = prompt or load_prompt()
        self._model = genai.GenerativeModel(model_name=model_name)
        self._generation_config = genai.GenerationConfig(max_output_tokens=max_output_tokens)

        logger.info(f"Gemini client ready: model={model_name}, max_output_tokens={max_output_tokens}")

    @classmethod
    def from_settings(cls, settings: Settings) -> "GeminiChartClient":
        return cls(
            api_key=settings.require_api_key(),
            model_name=settings.model_name,
            max_output_tokens=settings.max_output_tokens,
        )

    def analyze(self, payload: ImagePayload) -> str:
        """
        Send the image and prompt; return the model's raw text.

        Raises a ProviderError subclass when the call fails.
        """
        image_part = {"mime_type": payload.media_type, "data": payload.data}

        logger.info(f"Sending chart to Gemini: size={payload.size} bytes, type={payload.media_type}")
        try:
            response = self._model.generate_content(
                [image_part, self.prompt],
                generation_config=self._generation_config,
            )
        except Exception as e:
            error = classify_provider_error(e)
            logger.error(f"Gemini API error ({type(error).__name__}): {error.details}")
            raise error from e

        text = extract_text(response)
        if text is None:
            logger.warning("Gemini returned no text; using fallback message")
            return NO_ANALYSIS_TEXT

        logger.info(f"Received analysis from Gemini ({len(text)} chars)")
        return text
