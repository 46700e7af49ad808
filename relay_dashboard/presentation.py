"""
Presentation mapping for the dashboard.

Lookup tables from relay enums to display labels and style classes, plus
formatters for timestamps and raw HL7 payloads. Nothing in here raises on bad
input; unknown values fall back to a neutral style.
"""

import base64
import binascii
import logging
import re
from datetime import datetime, timezone, tzinfo
from typing import Any, Dict, Optional, Tuple

from relay_dashboard.models import DashboardStatus, Message, MessageDirection, MessageStatus

logger = logging.getLogger(__name__)

PLACEHOLDER = "-"
NEUTRAL_CLASS = "bg-gray-100 text-gray-800"
DEFAULT_TIMESTAMP_FORMAT = "%d.%m.%Y %H:%M:%S"

DIRECTION_STYLES: Dict[str, Tuple[str, str]] = {
    MessageDirection.ORDER.value: ("Order", "bg-blue-100 text-blue-800"),
    MessageDirection.REPORT.value: ("Report", "bg-purple-100 text-purple-800"),
}

STATUS_STYLES: Dict[str, Tuple[str, str]] = {
    MessageStatus.FORWARDED.value: ("Forwarded", "bg-green-100 text-green-800"),
    MessageStatus.FAILED.value: ("Failed", "bg-red-100 text-red-800"),
    MessageStatus.PENDING.value: ("Pending", "bg-yellow-100 text-yellow-800"),
}

DASHBOARD_STATUS_STYLES: Dict[DashboardStatus, Tuple[str, str]] = {
    DashboardStatus.LOADING: ("Loading...", "text-yellow-300"),
    DashboardStatus.RUNNING: ("Running", "text-green-300"),
    DashboardStatus.DEGRADED: ("Degraded", "text-red-300"),
    DashboardStatus.CONNECTION_ERROR: ("Connection Error", "text-red-300"),
}

# Go emits nanosecond fractions; fromisoformat wants at most six digits
_FRACTION_RE = re.compile(r"\.(\d+)")


def _lookup(table: Dict[str, Tuple[str, str]], value: Optional[str]) -> Tuple[str, str]:
    if value in table:
        return table[value]
    return (value or PLACEHOLDER, NEUTRAL_CLASS)


def direction_label(direction: Optional[str]) -> str:
    return _lookup(DIRECTION_STYLES, direction)[0]


def direction_class(direction: Optional[str]) -> str:
    return _lookup(DIRECTION_STYLES, direction)[1]


def status_label(status: Optional[str]) -> str:
    return _lookup(STATUS_STYLES, status)[0]


def status_class(status: Optional[str]) -> str:
    return _lookup(STATUS_STYLES, status)[1]


def dashboard_status_label(status: DashboardStatus) -> str:
    return DASHBOARD_STATUS_STYLES.get(status, (str(status), "text-gray-300"))[0]


def dashboard_status_class(status: DashboardStatus) -> str:
    return DASHBOARD_STATUS_STYLES.get(status, (str(status), "text-gray-300"))[1]


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, bool):
        raise TypeError("boolean is not a timestamp")
    if isinstance(value, (int, float)):
        # Epoch milliseconds, as the relay's JSON clients send them
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)

    text = str(value).strip()
    if text[-1:] in ("Z", "z"):
        text = text[:-1] + "+00:00"
    text = _FRACTION_RE.sub(lambda m: "." + (m.group(1) + "000000")[:6], text, count=1)
    return datetime.fromisoformat(text)


def format_timestamp(value: Any, fmt: str = DEFAULT_TIMESTAMP_FORMAT, tz: Optional[tzinfo] = None) -> str:
    """
    Render a relay timestamp in the viewer's timezone.

    Args:
        value: ISO-8601 string, datetime, or epoch milliseconds
        fmt: strftime format for the rendered value
        tz: Target timezone (default: local timezone)

    Returns:
        The formatted timestamp, "-" for empty values, or the raw value as a
        string when it cannot be parsed.
    """
    if not value:
        return PLACEHOLDER
    try:
        parsed = _parse_timestamp(value)
        if parsed.year <= 1:
            # Go zero time means "never set"
            return PLACEHOLDER
        return parsed.astimezone(tz).strftime(fmt)
    except (TypeError, ValueError, OverflowError, OSError) as exc:
        logger.debug(f"Unparseable timestamp {value!r}: {exc}")
        return str(value)


def format_raw_message(raw: Any) -> str:
    """Decode a base64 HL7 payload into readable segments, one per line."""
    if not raw:
        return ""
    if not isinstance(raw, str):
        return str(raw)
    try:
        decoded = base64.b64decode(raw, validate=True).decode("utf-8", errors="replace")
    except (binascii.Error, ValueError):
        return str(raw)
    return decoded.replace("\r\n", "\n").replace("\r", "\n").rstrip("\n")


def present_message(message: Message) -> Dict[str, Any]:
    """Table row for one message: the message fields plus display attributes."""
    row = message.model_dump()
    row.update({
        "direction_label": direction_label(message.direction),
        "direction_class": direction_class(message.direction),
        "status_label": status_label(message.status),
        "status_class": status_class(message.status),
        "timestamp_display": format_timestamp(message.timestamp),
    })
    return row


def present_message_detail(message: Message) -> Dict[str, Any]:
    """Modal view for one message: the row plus decoded HL7 and lifecycle times."""
    detail = present_message(message)
    detail.update({
        "raw_message_text": format_raw_message(message.extra_field("raw_message")),
        "created_at_display": format_timestamp(message.extra_field("created_at")),
        "processed_at_display": format_timestamp(message.extra_field("processed_at")),
    })
    return detail
