"""Inbox and thread API routes."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_current_company, get_db
from app.schemas.company import ContactInfo
from app.schemas.message import (
    DisclosureResponse, MessageResponse, ReplyCreate, ThreadListResponse, ThreadResponse
)
from app.schemas.resource import TakeResourceResponse
from app.services.thread_service import ThreadService
from src.database.models import Company, Message
from src.marketplace.status import ThreadState
from src.marketplace.threads import display_name

router = APIRouter()


def message_response(message: Message, viewer_company_id: str, disclosed: bool) -> MessageResponse:
    """Render a message for one viewer, hiding real names until disclosure."""
    return MessageResponse(
        id=message.id,
        thread_id=message.thread_key,
        subject=message.subject,
        content=message.content,
        created_at=message.created_at,
        read_at=message.read_at,
        from_company_id=message.from_company_id,
        to_company_id=message.to_company_id,
        from_display_name=display_name(message.from_company, viewer_company_id, disclosed),
        to_display_name=display_name(message.to_company, viewer_company_id, disclosed),
        is_mine=message.from_company_id == viewer_company_id,
        resource_id=message.resource_id,
        resource_competence=message.resource.competence,
        resource_is_taken=message.resource.is_taken,
    )


@router.get("/threads", response_model=ThreadListResponse)
async def list_threads(
    company: Company = Depends(get_current_company),
    db: Session = Depends(get_db)
):
    """Latest message of every thread the current company takes part in, newest first."""
    latest = ThreadService.list_threads_for(db, company.id)
    disclosed = ThreadService.disclosed_threads_for(db, company.id)
    threads = [message_response(m, company.id, m.thread_key in disclosed) for m in latest]
    unread = sum(1 for m in latest if m.read_at is None and m.to_company_id == company.id)
    return ThreadListResponse(threads=threads, count=len(threads), unread_count=unread)


@router.get("/threads/{thread_id}", response_model=ThreadResponse)
async def get_thread(
    thread_id: str,
    company: Company = Depends(get_current_company),
    db: Session = Depends(get_db)
):
    """
    Open a thread.

    Marks the current company's unread messages as read. Includes the
    counterpart's contact details once they have been shared.
    """
    messages = ThreadService.load_thread(db, thread_id, company.id)
    disclosure = ThreadService.get_disclosure(db, messages[0].thread_key) if messages else None
    disclosed = disclosure is not None and disclosure.involves(company.id)
    state = ThreadService.state_of(messages, disclosed)

    counterpart = None
    if disclosed and messages:
        other = ThreadService.counterpart_contact(db, messages[0], company.id)
        counterpart = ContactInfo.model_validate(other) if other else None

    return ThreadResponse(
        thread_id=thread_id,
        state=state.value,
        contact_shared=disclosed,
        can_reply=state != ThreadState.SETTLED,
        counterpart_contact=counterpart,
        messages=[message_response(m, company.id, disclosed) for m in messages],
    )


@router.post("/threads/{thread_id}/reply", response_model=MessageResponse, status_code=201)
async def reply_to_thread(
    thread_id: str,
    reply: ReplyCreate,
    company: Company = Depends(get_current_company),
    db: Session = Depends(get_db)
):
    """Send a reply to the other participant of a thread."""
    message = ThreadService.send_reply(db, thread_id, company.id, reply.resource_id, reply.content)
    disclosure = ThreadService.get_disclosure(db, message.thread_key)
    return message_response(message, company.id, disclosed=disclosure is not None)


@router.post("/threads/{thread_id}/share-contact", response_model=DisclosureResponse, status_code=201)
async def share_contact(
    thread_id: str,
    company: Company = Depends(get_current_company),
    db: Session = Depends(get_db)
):
    """
    Share contact details with the other participant.

    Returns 409 if contact details were already shared in this thread.
    """
    disclosure, announcement = ThreadService.share_contact(db, thread_id, company.id)
    return DisclosureResponse(
        thread_id=disclosure.thread_id,
        from_company_id=disclosure.from_company_id,
        to_company_id=disclosure.to_company_id,
        created_at=disclosure.created_at,
        announcement=message_response(announcement, company.id, disclosed=True),
    )


@router.post("/threads/{thread_id}/mark-taken", response_model=TakeResourceResponse)
async def mark_thread_resource_taken(
    thread_id: str,
    company: Company = Depends(get_current_company),
    db: Session = Depends(get_db)
):
    """
    Mark the thread's resource as agreed.

    Returns 409 if the resource is already taken.
    """
    resource = ThreadService.mark_resource_taken(db, thread_id, company.id)
    return TakeResourceResponse(
        resource_id=resource.id,
        is_taken=resource.is_taken,
        accepted_by_company_id=resource.accepted_by_company_id,
        taken_at=resource.taken_at,
    )
