"""
Response parser: raw model text -> AnalysisRecord.

Rationale:
- Strict: trim, then json.loads. No fence stripping, no brace hunting.
- Soft failure: anything that is not a JSON object yields None, never an exception.
- No schema checks; extra or missing keys are passed through untouched.
"""

import json
import logging
from typing import Optional

from .schemas import AnalysisRecord

logger = logging.getLogger(__name__)


def parse_analysis(raw_text: Optional[str]) -> Optional[AnalysisRecord]:
    if raw_text is None:
        return None

    cleaned = raw_text.strip()
    try:
        data = json.loads(cleaned)
    except (ValueError, RecursionError) as e:
        logger.warning(f"Failed to parse analysis: {e}")
        return None

    if not isinstance(data, dict):
        logger.warning(f"Failed to parse analysis: expected a JSON object, got {type(data).__name__}")
        return None

    return data
