"""Pure helpers for grouping and presenting message threads."""

from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

SELF_DISPLAY_NAME = "Du"
REPLY_PREFIX = "Re: "


def latest_per_thread(messages: Iterable[Any]) -> List[Any]:
    """
    Reduce messages to the most recent one per thread.

    Messages whose sender, recipient or resource no longer resolves are
    dropped before grouping.

    Returns:
        One message per thread, newest first
    """
    latest: Dict[str, Any] = {}
    for msg in messages:
        if not msg.is_resolvable:
            continue
        key = msg.thread_key
        current = latest.get(key)
        if current is None or msg.created_at > current.created_at:
            latest[key] = msg
    return sorted(latest.values(), key=lambda m: m.created_at, reverse=True)


def other_participant(message: Any, company_id: str) -> str:
    """The participant of a message that is not company_id."""
    if message.from_company_id == company_id:
        return message.to_company_id
    return message.from_company_id


def is_participant(message: Any, company_id: str) -> bool:
    return company_id in (message.from_company_id, message.to_company_id)


def reply_subject(subject: str) -> str:
    if subject.startswith(REPLY_PREFIX):
        return subject
    return f"{REPLY_PREFIX}{subject}"


def next_timestamp(previous: Iterable[datetime], now: Optional[datetime] = None) -> datetime:
    """A timestamp strictly later than every previous one."""
    now = now or datetime.utcnow()
    latest = max(previous, default=None)
    if latest is not None and now <= latest:
        return latest + timedelta(microseconds=1)
    return now


def display_name(company: Any, viewer_company_id: str, disclosed: bool) -> str:
    """Name to show for a company: 'Du', the real name after disclosure, else the pseudonym."""
    if company.id == viewer_company_id:
        return SELF_DISPLAY_NAME
    if disclosed and company.company_name:
        return company.company_name
    return company.anonymous_id
