"""
Error taxonomy shared by the request builder, the provider client and the API.

Rationale:
- Leaf modules raise these; only the FastAPI layer turns them into responses.
- Each error carries the HTTP status it maps to, so the handler stays a one-liner.
"""

from typing import Optional


class ChartAnalyzerError(Exception):
    """Base class for every caller-visible failure."""

    status_code: int = 500

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ConfigurationError(ChartAnalyzerError):
    """Required configuration (e.g. the provider credential) is missing."""

    status_code = 500


# --- input validation -------------------------------------------------------

class InputValidationError(ChartAnalyzerError):
    status_code = 400


class MissingInputError(InputValidationError):
    pass


class InvalidTypeError(InputValidationError):
    pass


class TooLargeError(InputValidationError):
    pass


class SampleNotFoundError(ChartAnalyzerError):
    status_code = 404


# --- provider ---------------------------------------------------------------

class ProviderError(ChartAnalyzerError):
    status_code = 500


class ProviderBillingError(ProviderError):
    """Provider account has no credits / billing is not enabled."""

    status_code = 402


class ProviderContentError(ProviderError):
    """Provider rejected the image itself."""

    status_code = 400


class ProviderRateLimitError(ProviderError):
    status_code = 429


class ProviderUnknownError(ProviderError):
    status_code = 500
