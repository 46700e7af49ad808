"""
Dashboard Controller

Keeps a ViewState synchronized with the relay via polling and turns operator
actions into relay calls.

Key responsibilities:
- Sync loop: stats -> messages -> health, sequentially, every refresh interval
- Health classification of the relay's /api/health answer
- Client-side DLQ filtering, recomputed whenever snapshot or criteria change
- Retry dispatch followed by an immediate refresh

Runs the recurring refresh in a background thread; every state mutation goes
through one lock. Each refresh cycle carries a cycle number and a result is
only applied when it is not older than what is already shown.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import requests
from pydantic import ValidationError

from relay_dashboard.api_client import MessageListOutcome, RelayApiClient, RelayApiError
from relay_dashboard.filters import filter_messages
from relay_dashboard.models import (
    DashboardStatus,
    FilterCriteria,
    Message,
    Notice,
    NoticeLevel,
    ViewState,
)
from relay_dashboard.presentation import (
    dashboard_status_class,
    dashboard_status_label,
    present_message,
    present_message_detail,
)

logger = logging.getLogger(__name__)

STATS = "stats"
MESSAGES = "messages"
HEALTH = "health"


def classify_health(ok: bool, payload: Any) -> DashboardStatus:
    """Map a health-check answer to a dashboard status."""
    if not ok:
        return DashboardStatus.CONNECTION_ERROR
    if isinstance(payload, dict) and payload.get("status") == "healthy":
        return DashboardStatus.RUNNING
    return DashboardStatus.DEGRADED


@dataclass
class RetryOutcome:
    ok: bool
    detail: Optional[str] = None


class DashboardController:
    """
    Stateful dashboard controller.

    Usage:
        controller = DashboardController(RelayApiClient(base_url))
        controller.start()      # initial refresh, then every 5 seconds
        controller.update_filters({"patientId": "P1"})
        controller.retry("msg-42")
        controller.stop()
    """

    def __init__(
        self,
        client: RelayApiClient,
        refresh_interval: float = 5.0,
        state: Optional[ViewState] = None,
        on_notice: Optional[Callable[[Notice], None]] = None,
    ):
        """
        Args:
            client: Relay API client
            refresh_interval: Seconds between scheduled refresh cycles
            state: View state to own (default: fresh zero-valued state)
            on_notice: Called with every operator notice after it is recorded
        """
        self.client = client
        self.refresh_interval = refresh_interval
        self.state = state if state is not None else ViewState()
        self.on_notice = on_notice

        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._started = False
        self._torn_down = False
        self._cycle = 0
        self._applied_cycles: Dict[str, int] = {STATS: 0, MESSAGES: 0, HEALTH: 0}

    @property
    def running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive() and not self._stop_event.is_set()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self):
        """Run the initial refresh, then start the recurring refresh thread."""
        with self._lock:
            if self._torn_down:
                raise RuntimeError("Dashboard controller has been torn down")
            if self._started:
                logger.warning("Dashboard sync loop already running")
                return
            self._started = True

        self.refresh()

        with self._lock:
            if self._stop_event.is_set():
                return
            self._thread = threading.Thread(target=self._refresh_loop, name="relay-dashboard-sync", daemon=True)
            self._thread.start()
        logger.info(f"Dashboard sync loop started (interval={self.refresh_interval}s)")

    def stop(self):
        """Cancel the recurring refresh. In-flight requests are not waited for."""
        with self._lock:
            if self._torn_down:
                return
            self._torn_down = True
            self._stop_event.set()
            self._thread = None
        logger.info("Dashboard sync loop stopped")

    def _refresh_loop(self):
        while not self._stop_event.wait(self.refresh_interval):
            try:
                self.refresh()
            except Exception as exc:
                logger.warning("Dashboard refresh failed: %s", exc)

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------

    def _next_cycle(self) -> int:
        with self._lock:
            self._cycle += 1
            return self._cycle

    def _accept(self, resource: str, cycle: int) -> bool:
        # Caller holds the lock
        if self._torn_down:
            logger.debug(f"Dropping {resource} result of cycle {cycle} after teardown")
            return False
        if cycle < self._applied_cycles[resource]:
            logger.debug(
                f"Discarding stale {resource} result of cycle {cycle} "
                f"(cycle {self._applied_cycles[resource]} already applied)"
            )
            return False
        self._applied_cycles[resource] = cycle
        return True

    def refresh(self):
        """One refresh cycle: stats, then messages, then health."""
        cycle = self._next_cycle()
        logger.debug(f"Refresh cycle {cycle} starting")
        self.load_stats(cycle)
        self.load_messages(cycle)
        self.check_health(cycle)

    def load_stats(self, cycle: Optional[int] = None) -> bool:
        if cycle is None:
            cycle = self._next_cycle()
        try:
            stats = self.client.get_stats()
        except (RelayApiError, requests.RequestException, ValidationError) as exc:
            logger.warning(f"Stats fetch failed: {exc}")
            return False

        with self._lock:
            if not self._accept(STATS, cycle):
                return False
            self.state.stats = stats
        return True

    def load_messages(self, cycle: Optional[int] = None) -> bool:
        if cycle is None:
            cycle = self._next_cycle()
        result = self.client.get_failed_messages()
        if result.outcome is not MessageListOutcome.LOADED:
            logger.warning(f"Message fetch failed ({result.outcome.value}): {result.detail}")
        if not result.replaces_snapshot:
            return False

        with self._lock:
            if not self._accept(MESSAGES, cycle):
                return False
            self.state.messages = list(result.messages)
            self._refilter()
        return True

    def check_health(self, cycle: Optional[int] = None) -> DashboardStatus:
        if cycle is None:
            cycle = self._next_cycle()
        try:
            ok, payload, error = self.client.get_health()
        except requests.RequestException as exc:
            logger.warning(f"Health check failed: {exc}")
            ok, payload = False, None
        else:
            if not ok:
                logger.warning(f"Health check failed: {error}")
        status = classify_health(ok, payload)

        with self._lock:
            if not self._accept(HEALTH, cycle):
                return self.state.status
            previous = self.state.status
            self.state.status = status
            components = payload.get("components") if ok and isinstance(payload, dict) else None
            self.state.health_components = dict(components) if isinstance(components, dict) else {}
        if status is not previous:
            logger.info(f"Relay status changed: {previous.value} -> {status.value}")
        return status

    # ------------------------------------------------------------------
    # Filtering & selection
    # ------------------------------------------------------------------

    def _refilter(self):
        self.state.filtered_messages = filter_messages(self.state.messages, self.state.criteria)

    def update_filters(self, changes: Dict[str, Any]) -> List[Message]:
        """
        Change some filter fields.

        Keys are field names or the patientId/messageType aliases; unknown keys
        raise pydantic.ValidationError and leave the criteria untouched.
        """
        partial = FilterCriteria.model_validate(changes)
        with self._lock:
            self.state.criteria = self.state.criteria.model_copy(
                update=partial.model_dump(include=partial.model_fields_set)
            )
            self._refilter()
            return list(self.state.filtered_messages)

    def clear_filters(self) -> List[Message]:
        with self._lock:
            self.state.criteria = FilterCriteria()
            self._refilter()
            return list(self.state.filtered_messages)

    def view_message(self, message_id) -> Optional[Message]:
        with self._lock:
            for message in self.state.messages:
                if str(message.id) == str(message_id):
                    self.state.selected_message = message
                    return message
        logger.warning(f"Message {message_id} is not in the current snapshot")
        return None

    def close_message(self):
        with self._lock:
            self.state.selected_message = None

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def _notify(self, level: NoticeLevel, text: str) -> Notice:
        notice = Notice(level=level, message=text)
        with self._lock:
            self.state.add_notice(notice)
        if self.on_notice is not None:
            try:
                self.on_notice(notice)
            except Exception as exc:
                logger.warning("Notice callback failed: %s", exc)
        return notice

    def retry(self, message_id) -> RetryOutcome:
        """Ask the relay to requeue one message; refresh on success."""
        try:
            ok, _, error = self.client.retry_message(message_id)
        except requests.RequestException as exc:
            logger.error(f"Retry request for message {message_id} failed: {exc}")
            self._notify(NoticeLevel.DANGER, f"Error: {exc}")
            return RetryOutcome(ok=False, detail=str(exc))

        if not ok:
            logger.error(f"Relay rejected retry for message {message_id}: {error}")
            self._notify(NoticeLevel.DANGER, f"Error: message {message_id} could not be requeued ({error})")
            return RetryOutcome(ok=False, detail=error)

        self._notify(NoticeLevel.SUCCESS, f"Message {message_id} requeued for delivery")
        self.refresh()
        return RetryOutcome(ok=True)

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        """Consistent, JSON-ready copy of the view state."""
        with self._lock:
            state = self.state
            selected = state.selected_message
            return {
                "status": state.status.value,
                "status_label": dashboard_status_label(state.status),
                "status_class": dashboard_status_class(state.status),
                "stats": state.stats.model_dump(),
                "criteria": state.criteria.model_dump(by_alias=True),
                "messages": [present_message(msg) for msg in state.filtered_messages],
                "total_messages": len(state.messages),
                "selected_message": present_message_detail(selected) if selected is not None else None,
                "modal_visible": state.modal_visible,
                "health_components": dict(state.health_components),
                "notices": [notice.to_dict() for notice in state.notices],
            }
