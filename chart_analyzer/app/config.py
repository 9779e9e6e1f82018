"""
Process-wide configuration, read once from the environment at startup.

Rationale:
- One Settings object is built when the app starts and is never mutated.
- The provider key is only *required* by code paths that build the Gemini
  client; everything else can run (and be tested) without it.
"""

import os
from typing import Optional

from pydantic import BaseModel

from .errors import ConfigurationError

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
PROMPTS_DIR = os.path.join(BASE_DIR, "prompts")
STATIC_DIR = os.path.join(BASE_DIR, "static")

# Pinned provider model and generation bound
DEFAULT_MODEL = "gemini-1.5-flash-002"
MAX_OUTPUT_TOKENS = 1000

# 5 MiB upload cap
MAX_IMAGE_BYTES = 5 * 1024 * 1024

DEFAULT_SAMPLE_PATH = os.path.join(STATIC_DIR, "test-chart.png")


class Settings(BaseModel):
    api_key: Optional[str] = None
    model_name: str = DEFAULT_MODEL
    max_output_tokens: int = MAX_OUTPUT_TOKENS
    max_image_bytes: int = MAX_IMAGE_BYTES
    sample_chart_path: str = DEFAULT_SAMPLE_PATH
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables (after load_dotenv)."""
        return cls(
            api_key=os.getenv("GEMINI_API_KEY") or os.getenv("LLM_API_KEY"),
            model_name=os.getenv("GEMINI_MODEL") or DEFAULT_MODEL,
            sample_chart_path=os.getenv("SAMPLE_CHART_PATH") or DEFAULT_SAMPLE_PATH,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def require_api_key(self) -> str:
        if not self.api_key:
            raise ConfigurationError("GEMINI_API_KEY or LLM_API_KEY must be set in environment")
        return self.api_key
