"""Marketplace rules that do not touch the database."""

from .status import ResourceStatus, StatusInfo, ThreadState, status_of, thread_state
from .threads import display_name, latest_per_thread, other_participant
from .pricing import format_price

__all__ = [
    'ResourceStatus',
    'StatusInfo',
    'ThreadState',
    'status_of',
    'thread_state',
    'display_name',
    'latest_per_thread',
    'other_participant',
    'format_price'
]
