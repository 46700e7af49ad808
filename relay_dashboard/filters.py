"""
DLQ filter engine.

Pure functions, applied to the last message snapshot whenever the snapshot or
the operator's criteria change.
"""

from typing import Iterable, List, Optional

from relay_dashboard.models import FilterCriteria, Message


def _contains(value: Optional[str], needle: str) -> bool:
    # An absent field never matches a non-empty needle
    return bool(value) and needle in value


def matches(message: Message, criteria: FilterCriteria) -> bool:
    if criteria.direction and message.direction != criteria.direction:
        return False
    if criteria.status and message.status != criteria.status:
        return False
    if criteria.patient_id and not _contains(message.patient_id, criteria.patient_id):
        return False
    if criteria.message_type and not _contains(message.message_type, criteria.message_type):
        return False
    return True


def filter_messages(messages: Iterable[Message], criteria: FilterCriteria) -> List[Message]:
    """Return the messages passing every active criterion, in snapshot order."""
    return [msg for msg in messages if matches(msg, criteria)]
