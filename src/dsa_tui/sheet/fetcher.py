from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..config import (
    DEFAULT_SHEET_ID,
    HTTP_TIMEOUT,
    REQUEST_HEADERS,
    SHEET_ID_PATTERN,
    SHEET_URL_TEMPLATES,
    Config,
)
from ..errors import FetchError, ParseError
from .rows import parse_questions

logger = logging.getLogger("dsa")


def extract_sheet_id(sheet_url: Optional[str]) -> str:
    """Return the document id from a sheet URL, or the built-in sample id."""
    if sheet_url:
        match = SHEET_ID_PATTERN.search(sheet_url)
        if match:
            return match.group(1)
        logger.debug("No sheet id in %r; using default", sheet_url)
    return DEFAULT_SHEET_ID


def candidate_urls(sheet_id: str) -> List[str]:
    return [template.format(sheet_id=sheet_id) for template in SHEET_URL_TEMPLATES]


def create_session() -> requests.Session:
    s = requests.Session()
    s.headers.update(REQUEST_HEADERS)
    # 500 is left out so a failing export URL falls through to the next candidate quickly.
    retries = Retry(total=2, backoff_factor=0.3, status_forcelist=[429, 502, 503, 504])
    adapter = HTTPAdapter(max_retries=retries)
    s.mount("https://", adapter)
    s.mount("http://", adapter)
    return s


class SheetFetcher:
    def __init__(self, config: Config, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or create_session()

    def reconfigure(self, config: Config) -> None:
        self.config = config

    @property
    def sheet_id(self) -> str:
        return extract_sheet_id(self.config.sheet_url)

    def fetch(self, sheet_id: Optional[str] = None) -> str:
        """Return the CSV text of the first candidate URL that answers."""
        last_error: Optional[BaseException] = None
        last_status: Optional[int] = None
        for url in candidate_urls(sheet_id or self.sheet_id):
            try:
                logger.debug("Trying %s", url)
                resp = self.session.get(url, timeout=HTTP_TIMEOUT, allow_redirects=True)
            except requests.RequestException as e:
                logger.debug("Request failed for %s: %s", url, e)
                last_error = e
                continue
            logger.debug("Response status for %s: %s", url, resp.status_code)
            if not resp.ok:
                last_status = resp.status_code
                last_error = FetchError(f"HTTP {resp.status_code}: {resp.reason}", status=resp.status_code)
                continue
            text = resp.text
            if not text or not text.strip():
                last_error = FetchError("Empty response body", status=resp.status_code)
                continue
            logger.info("Fetched sheet from %s (%d chars)", url, len(text))
            return text

        logger.warning("All candidate URLs failed for sheet %s", sheet_id or self.sheet_id)
        message = str(last_error) if last_error else "Failed to fetch data from any URL"
        raise FetchError(message, last_error=last_error, status=last_status)

    def load_questions(self) -> Dict[str, Any]:
        """Fetch and parse the sheet: ``{"questions": [...]}`` or ``{"error", "details"}``."""
        try:
            questions = parse_questions(self.fetch())
        except FetchError as e:
            logger.error("Error fetching sheet data: %s", e)
            return {"error": "Failed to fetch data", "details": str(e)}
        except ParseError as e:
            logger.error("Error parsing sheet data: %s", e)
            return {"error": "No data found", "details": str(e)}
        return {"questions": questions}
