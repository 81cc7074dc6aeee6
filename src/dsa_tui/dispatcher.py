"""Sends question mutations to the optional sheet webhook.

Every mutation (add, status, pinned) goes through :meth:`MutationDispatcher.dispatch`,
which makes at most one POST and always resolves to a :class:`DispatchResult`.
When no endpoint is configured, or the endpoint fails, the result is a local
acknowledgement; ``outcome`` tells the two cases apart.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests
from pydantic import BaseModel, ValidationError

from .config import HTTP_TIMEOUT, REQUEST_HEADERS, Config
from .datamodels import DispatchResult, RemoteOutcome
from .errors import MutationRemoteError

logger = logging.getLogger("dsa")

ADD_QUESTION = "addQuestion"
UPDATE_STATUS = "updateStatus"
UPDATE_PINNED = "updatePinned"
ACTIONS = (ADD_QUESTION, UPDATE_STATUS, UPDATE_PINNED)

SETUP_INSTRUCTIONS: Dict[str, Any] = {
    "title": "Enable Automatic Sheet Updates",
    "description": "To write changes back to your Google Sheet:",
    "steps": [
        "1. Open your Google Sheet",
        "2. Go to Extensions > Apps Script",
        "3. Add a doPost handler for addQuestion, updateStatus and updatePinned",
        "4. Deploy the script as a web app",
        "5. Paste the web app URL into Settings (or pass --endpoint-url)",
    ],
    "alternative": "Or update the sheet by hand",
}


class EndpointResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
    row: Optional[int] = None


def _describe(action: str, payload: Dict[str, Any]) -> str:
    name = payload.get("questionName") or payload.get("name") or "question"
    if action == UPDATE_STATUS:
        return f'Question "{name}" status updated to {payload.get("status")}'
    if action == UPDATE_PINNED:
        state = "pinned" if payload.get("pinned") else "unpinned"
        return f'Question "{name}" {state}'
    return f'Question "{name}" added'


class MutationDispatcher:
    def __init__(self, config: Config, session: Optional[requests.Session] = None):
        self.config = config
        if session is None:
            # No retry adapter: a mutation is attempted exactly once.
            session = requests.Session()
            session.headers.update(REQUEST_HEADERS)
        self.session = session

    def reconfigure(self, config: Config) -> None:
        self.config = config

    def _post(self, endpoint: str, action: str, payload: Dict[str, Any]) -> EndpointResponse:
        try:
            resp = self.session.post(
                endpoint,
                json={"action": action, **payload},
                timeout=HTTP_TIMEOUT,
            )
        except requests.RequestException as e:
            raise MutationRemoteError(f"Request failed: {e}") from e
        if not resp.ok:
            raise MutationRemoteError(f"HTTP {resp.status_code}: {resp.reason}")
        try:
            body = EndpointResponse.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            raise MutationRemoteError(f"Unexpected endpoint response: {e}") from e
        if not body.success:
            raise MutationRemoteError(body.error or "Endpoint reported failure")
        return body

    def dispatch(self, action: str, payload: Dict[str, Any]) -> DispatchResult:
        if action not in ACTIONS:
            raise ValueError(f"Unknown action: {action}")
        summary = _describe(action, payload)
        endpoint = self.config.endpoint_url
        if not endpoint:
            logger.info("No endpoint configured; %s kept locally", action)
            return DispatchResult(
                method="local",
                outcome=RemoteOutcome.SKIPPED,
                message=f"{summary} locally",
                note="Changes are saved locally. Configure an endpoint to sync the sheet.",
                setup_instructions=SETUP_INSTRUCTIONS,
            )

        try:
            body = self._post(endpoint, action, payload)
        except MutationRemoteError as e:
            logger.warning("Remote %s failed, falling back to local: %s", action, e)
            return DispatchResult(
                method="local",
                outcome=RemoteOutcome.FAILED,
                message=f"{summary} locally",
                details=str(e),
                note="The sheet endpoint did not accept the change; it is saved locally.",
                setup_instructions=SETUP_INSTRUCTIONS,
            )

        logger.info("Remote %s succeeded (row=%s)", action, body.row)
        return DispatchResult(
            method="remote",
            outcome=RemoteOutcome.SUCCESS,
            message=body.message or summary,
            row=body.row,
        )

    def update_status(self, name: str, status: str) -> DispatchResult:
        return self.dispatch(UPDATE_STATUS, {"questionName": name, "status": status})

    def update_pinned(self, name: str, pinned: bool) -> DispatchResult:
        return self.dispatch(UPDATE_PINNED, {"questionName": name, "pinned": pinned})

    def add_question(self, fields: Dict[str, Any]) -> DispatchResult:
        return self.dispatch(ADD_QUESTION, fields)
