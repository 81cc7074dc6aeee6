from __future__ import annotations

import json
import logging
import os
import time
from typing import Dict, Optional

from .config import PREFERENCE_DAYS, PREFERENCES_FILE

logger = logging.getLogger("dsa")

SECONDS_PER_DAY = 24 * 60 * 60


class PreferenceStore:
    """Small string key/value store with per-entry expiry, kept in one JSON file."""

    def __init__(self, path: str = PREFERENCES_FILE):
        self.path = path

    def _read(self) -> Dict[str, dict]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
            return data if isinstance(data, dict) else {}
        except (IOError, json.JSONDecodeError) as e:
            logger.warning("Failed to read preferences file %s: %s", self.path, e)
            return {}

    def _write(self, data: Dict[str, dict]) -> None:
        try:
            os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
            with open(self.path, "w") as f:
                json.dump(data, f, indent=2)
        except IOError as e:
            logger.warning("Failed to write preferences file %s: %s", self.path, e)

    def get(self, key: str) -> Optional[str]:
        entry = self._read().get(key)
        if not isinstance(entry, dict):
            return None
        if time.time() > entry.get("expires", 0):
            logger.debug("Preference expired: %s", key)
            return None
        value = entry.get("value")
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str, days: int = PREFERENCE_DAYS) -> None:
        data = self._read()
        data[key] = {"value": value, "expires": time.time() + days * SECONDS_PER_DAY}
        self._write(data)
        logger.debug("Preference set: %s", key)

    def expire(self, key: str) -> None:
        data = self._read()
        if data.pop(key, None) is not None:
            self._write(data)
            logger.debug("Preference removed: %s", key)

    def clear(self) -> None:
        """Remove every stored preference."""
        self._write({})
        logger.info("Preferences cleared.")
