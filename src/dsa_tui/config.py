from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

# --- Configuration ---
DEFAULT_SHEET_ID = "1v1LaGp7clblCR8IzRDiFHfglV7B-I4sx3perKvCL5IE"
SHEET_ID_PATTERN = re.compile(r"/spreadsheets/d/([a-zA-Z0-9-_]+)")
SHEET_URL_TEMPLATES = (
    "https://docs.google.com/spreadsheets/d/{sheet_id}/export?format=csv",
    "https://docs.google.com/spreadsheets/d/{sheet_id}/gviz/tq?tqx=out:csv",
    "https://docs.google.com/spreadsheets/d/{sheet_id}/export?format=csv&gid=0",
)
HTTP_TIMEOUT = 15

CONFIG_DIR = os.path.expanduser("~/.config/dsa")
CONFIG_PATH = os.path.join(CONFIG_DIR, "config.json")
PREFERENCES_FILE = os.path.join(CONFIG_DIR, "preferences.json")
OVERRIDES_FILE = os.path.join(CONFIG_DIR, "overrides.json")

# Preference keys, shared with the browser version of the dashboard.
SHEET_URL_KEY = "dsa-sheet-url"
ENDPOINT_URL_KEY = "dsa-apps-script-url"
PREFERENCE_DAYS = 365

REQUEST_HEADERS = {"User-Agent": "Mozilla/5.0 (compatible; DSA-Dashboard/1.0)"}

DEFAULT_CONFIG: Dict[str, Any] = {
    "gemini_model": None,
    "strict_sync": True,
    "ui": {
        "statusbar_keybindings": (
            "[b {color}]space[/] solved, [b {color}]p[/] pin, "
            "[b {color}]x[/] random, [b {color}]a[/] add"
        ),
    },
}

# Default UI settings
UI_DEFAULTS = DEFAULT_CONFIG["ui"]

# --- Logging ---
logger = logging.getLogger("dsa")


def setup_logging(debug: bool = False) -> Optional[str]:
    """Configure logging."""
    if not debug:
        logging.basicConfig(level=logging.CRITICAL, handlers=[logging.NullHandler()])
        return None

    ts = datetime.now().strftime("%Y%m%dT%H%M%S")
    pid = os.getpid()
    debug_path = f"/tmp/dsa_debug_{ts}_{pid}.log"

    logging.basicConfig(
        level=logging.DEBUG,
        filename=debug_path,
        filemode="a",
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )

    logger.debug("Debug logging enabled to %s", debug_path)
    return debug_path


@dataclass(frozen=True)
class Config:
    """Source and endpoint settings passed to the fetcher, dispatcher and store."""

    sheet_url: Optional[str] = None
    endpoint_url: Optional[str] = None

    @classmethod
    def from_preferences(cls, preferences) -> "Config":
        endpoint = preferences.get(ENDPOINT_URL_KEY) or os.getenv("GOOGLE_APPS_SCRIPT_URL")
        return cls(
            sheet_url=preferences.get(SHEET_URL_KEY) or None,
            endpoint_url=endpoint or None,
        )

    def save(self, preferences) -> None:
        for key, value in ((SHEET_URL_KEY, self.sheet_url), (ENDPOINT_URL_KEY, self.endpoint_url)):
            if value:
                preferences.set(key, value, days=PREFERENCE_DAYS)
            else:
                preferences.expire(key)


def load_overrides(path: str = OVERRIDES_FILE) -> Dict[str, Dict[str, Any]]:
    """Load the status/pinned override maps from disk."""
    empty: Dict[str, Dict[str, Any]] = {"status": {}, "pinned": {}}
    if not os.path.exists(path):
        return empty
    try:
        with open(path, "r") as f:
            data = json.load(f)
    except (IOError, json.JSONDecodeError) as e:
        logger.warning("Failed to read overrides from %s: %s", path, e)
        return empty
    if not isinstance(data, dict):
        return empty
    return {
        "status": {str(k): str(v) for k, v in (data.get("status") or {}).items()},
        "pinned": {str(k): bool(v) for k, v in (data.get("pinned") or {}).items()},
    }


def save_overrides(overrides: Dict[str, Dict[str, Any]], path: str = OVERRIDES_FILE) -> None:
    """Save the status/pinned override maps to disk."""
    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w") as f:
            json.dump(overrides, f)
    except IOError as e:
        logger.warning("Failed to write overrides to %s: %s", path, e)


def ensure_config_file_exists(path: str = CONFIG_PATH) -> None:
    """Write the default config file if the user's config file is not found."""
    if not os.path.exists(path):
        logger.info("Config file not found at %s, creating default.", path)
        save_config(DEFAULT_CONFIG, path)


def load_config(path: str = CONFIG_PATH) -> Dict[str, Any]:
    """Load the main configuration file."""
    ensure_config_file_exists(path)
    try:
        with open(path, "r") as f:
            config = json.load(f)
            logger.info("Loaded config from %s", path)
            return config
    except (IOError, json.JSONDecodeError) as e:
        logger.error("Failed to load config from %s: %s", path, e)
        return {}


def save_config(config: Dict[str, Any], path: str = CONFIG_PATH) -> None:
    """Save the main configuration file."""
    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w") as f:
            json.dump(config, f, indent=2)
        logger.info("Saved config to %s", path)
    except IOError as e:
        logger.error("Failed to save config to %s: %s", path, e)
