"""Derived resource and thread status."""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional


class ResourceStatus(str, Enum):
    """Status of a resource as seen by one viewing company."""
    AGREED = "agreed"
    AWAITING_APPROVAL = "awaiting_approval"
    PENDING_REQUESTS = "pending_requests"
    EXPIRED = "expired"
    ACTIVE = "active"


class ThreadState(str, Enum):
    """Negotiation state of one thread."""
    NO_THREAD = "no_thread"
    OPEN = "open"
    DISCLOSED = "disclosed"
    SETTLED = "settled"


@dataclass(frozen=True)
class StatusInfo:
    """Status plus the label shown to users."""
    status: ResourceStatus
    pending_count: int = 0

    @property
    def label(self) -> str:
        if self.status == ResourceStatus.AGREED:
            return "Avtale inngått"
        if self.status == ResourceStatus.AWAITING_APPROVAL:
            return "Venter på godkjenning"
        if self.status == ResourceStatus.PENDING_REQUESTS:
            plural = self.pending_count > 1
            return f"{self.pending_count} ny{'e' if plural else ''} forespørsel{'er' if plural else ''}"
        if self.status == ResourceStatus.EXPIRED:
            return "Utløpt"
        return "Aktiv"


def _today(now: Optional[datetime]) -> date:
    return (now or datetime.utcnow()).date()


def status_of(
    resource: Any,
    pending_request_count: int,
    contact_info: Optional[Any] = None,
    now: Optional[datetime] = None
) -> StatusInfo:
    """
    Compute the status of a resource for a viewer.

    Evaluated top to bottom: taken-state dominates pending requests, which
    dominate expiry, which dominates plain activity. A resource is expired
    once its last day (period_to) lies before today.

    Args:
        resource: Anything with is_taken and period_to attributes
        pending_request_count: Unread inbound requests for this resource
        contact_info: Counterparty contact details if resolvable for the viewer
        now: Reference time (defaults to utcnow)
    """
    if resource.is_taken:
        if contact_info:
            return StatusInfo(ResourceStatus.AGREED)
        return StatusInfo(ResourceStatus.AWAITING_APPROVAL)
    if pending_request_count > 0:
        return StatusInfo(ResourceStatus.PENDING_REQUESTS, pending_request_count)
    if resource.period_to < _today(now):
        return StatusInfo(ResourceStatus.EXPIRED)
    return StatusInfo(ResourceStatus.ACTIVE)


def thread_state(has_messages: bool, disclosed: bool, resource_taken: bool) -> ThreadState:
    """Derive the negotiation state of a thread."""
    if not has_messages:
        return ThreadState.NO_THREAD
    if resource_taken:
        return ThreadState.SETTLED
    if disclosed:
        return ThreadState.DISCLOSED
    return ThreadState.OPEN
