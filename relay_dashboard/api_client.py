"""
Relay API Client

HTTP access to the four relay endpoints the dashboard depends on:
- GET  /api/stats                   aggregate counters
- GET  /api/messages?status=failed  dead-letter queue
- GET  /api/health                  liveness/health
- POST /api/messages/{id}/retry     requeue one message

Transport errors (requests.RequestException) propagate to the caller, except
for the message list, which is returned as a tagged MessageListResult.
"""

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple
from urllib.parse import quote

import requests
from pydantic import ValidationError

from relay_dashboard.models import Message, MessageStatus, Stats

logger = logging.getLogger(__name__)


class RelayApiError(Exception):
    """Relay answered with a non-2xx status"""


class MessageListOutcome(str, enum.Enum):
    LOADED = "loaded"  # Body was a message list
    BACKEND_ERROR = "backend_error"  # Body was an error object or unusable shape
    HTTP_ERROR = "http_error"  # Non-2xx status
    TRANSPORT_ERROR = "transport_error"  # Request never completed


@dataclass
class MessageListResult:
    outcome: MessageListOutcome
    messages: List[Message] = field(default_factory=list)
    detail: Optional[str] = None

    @property
    def replaces_snapshot(self) -> bool:
        """HTTP failures keep the previous snapshot; every other outcome replaces it."""
        return self.outcome is not MessageListOutcome.HTTP_ERROR


def parse_message_list(payload: Any) -> MessageListResult:
    """
    Discriminate a /api/messages body.

    The relay signals some failures as data: a 2xx response whose body is an
    object carrying a ``message`` field instead of a list.
    """
    if payload is None:
        return MessageListResult(MessageListOutcome.LOADED)
    if isinstance(payload, dict):
        detail = payload.get("message") or "unexpected object body"
        return MessageListResult(MessageListOutcome.BACKEND_ERROR, detail=str(detail))
    if not isinstance(payload, list):
        return MessageListResult(
            MessageListOutcome.BACKEND_ERROR,
            detail=f"unexpected body type {type(payload).__name__}",
        )
    try:
        messages = [Message.model_validate(item) for item in payload]
    except ValidationError as exc:
        return MessageListResult(MessageListOutcome.BACKEND_ERROR, detail=f"invalid message record: {exc}")
    return MessageListResult(MessageListOutcome.LOADED, messages=messages)


class RelayApiClient:
    """
    Client for the relay's dashboard API.

    Usage:
        client = RelayApiClient("http://127.0.0.1:5678")
        stats = client.get_stats()
        result = client.get_failed_messages()
        ok, health, error = client.get_health()
        ok, _, error = client.retry_message("msg-42")
    """

    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            base_url: Relay web API base URL (e.g., 'http://127.0.0.1:5678')
            timeout: Per-request timeout in seconds (None: transport default)
            session: Optional pre-built session (tests inject a fake)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def close(self):
        self._session.close()

    def call_api(self, method: str, path: str, **kwargs) -> Tuple[bool, Any, Optional[str]]:
        resp = self._session.request(method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs)
        try:
            payload = resp.json()
        except ValueError:
            payload = {"raw": resp.text}

        if 200 <= resp.status_code < 300:
            return True, payload, None

        if isinstance(payload, dict):
            error = payload.get("detail") or payload.get("error") or payload.get("message") or payload.get("raw")
        else:
            error = str(payload)
        return False, payload, f"HTTP {resp.status_code}: {error}"

    def get_stats(self) -> Stats:
        ok, payload, error = self.call_api("GET", "/api/stats")
        if not ok:
            raise RelayApiError(error)
        return Stats.model_validate(payload)

    def get_failed_messages(self) -> MessageListResult:
        try:
            ok, payload, error = self.call_api("GET", "/api/messages", params={"status": MessageStatus.FAILED.value})
        except requests.RequestException as exc:
            return MessageListResult(MessageListOutcome.TRANSPORT_ERROR, detail=str(exc))
        if not ok:
            return MessageListResult(MessageListOutcome.HTTP_ERROR, detail=error)
        return parse_message_list(payload)

    def get_health(self) -> Tuple[bool, Any, Optional[str]]:
        return self.call_api("GET", "/api/health")

    def retry_message(self, message_id) -> Tuple[bool, Any, Optional[str]]:
        path = f"/api/messages/{quote(str(message_id), safe='')}/retry"
        logger.info(f"Requesting retry for message {message_id}")
        return self.call_api("POST", path)
