"""
Client-local persistence of the last analysis result.

Rationale:
- The presentation layer only needs get / set / remove on string keys, the same
  surface the browser's localStorage offers.
- Values are stored as JSON-encoded strings, last write wins, no expiry.
"""

import json
import logging
import os
from typing import Dict, Optional

logger = logging.getLogger(__name__)

LAST_RESULT_KEY = "lastAnalysisResult"
LAST_PARSED_KEY = "lastParsedAnalysis"
LAST_IMAGE_KEY = "lastUploadedImage"

RESULT_KEYS = (LAST_RESULT_KEY, LAST_PARSED_KEY, LAST_IMAGE_KEY)

DEFAULT_STORE_PATH = os.path.join(os.path.expanduser("~"), ".chart_analyzer", "last_result.json")


class ResultStore:
    """Key-value interface used by the client. Subclasses provide storage."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError

    def clear_results(self) -> None:
        """Erase every last-result key. Safe to call when nothing is stored."""
        for key in RESULT_KEYS:
            self.remove(key)


class MemoryResultStore(ResultStore):
    def __init__(self):
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self):
        return list(self._data.keys())


class JsonFileResultStore(ResultStore):
    """All keys live in one JSON object on disk; every write rewrites the file."""

    def __init__(self, path: str = DEFAULT_STORE_PATH):
        self.path = path

    def _load(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable result store {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: Dict[str, str]) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)

    def keys(self):
        return list(self._load().keys())
