"""Pydantic schemas for message threads."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.schemas.company import ContactInfo


class InquiryCreate(BaseModel):
    """First message about a resource."""
    content: str = Field(..., max_length=5000)
    subject: Optional[str] = Field(None, max_length=255)


class ReplyCreate(BaseModel):
    """Reply within an existing thread."""
    resource_id: str
    content: str = Field(..., max_length=5000)


class MessageResponse(BaseModel):
    """A message rendered for one viewer."""
    id: str
    thread_id: str
    subject: str
    content: str
    created_at: datetime
    read_at: Optional[datetime] = None
    from_company_id: str
    to_company_id: str
    from_display_name: str
    to_display_name: str
    is_mine: bool
    resource_id: str
    resource_competence: str
    resource_is_taken: bool


class ThreadListResponse(BaseModel):
    success: bool = True
    threads: List[MessageResponse]
    count: int
    unread_count: int


class ThreadResponse(BaseModel):
    success: bool = True
    thread_id: str
    state: str
    contact_shared: bool
    can_reply: bool
    counterpart_contact: Optional[ContactInfo] = None
    messages: List[MessageResponse]


class DisclosureResponse(BaseModel):
    success: bool = True
    thread_id: str
    from_company_id: str
    to_company_id: str
    created_at: datetime
    announcement: MessageResponse
