"""Pydantic schemas for resource listings."""

from datetime import date, datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from app.schemas.company import ContactInfo


class ResourceCreate(BaseModel):
    """Schema for posting a new resource."""
    competence: str = Field(..., min_length=1, max_length=100)
    amount: int = Field(1, ge=1)
    price: Optional[float] = Field(None, ge=0)
    price_type: Literal['fixed', 'hourly', 'negotiable'] = 'fixed'
    period_from: date
    period_to: date
    comments: Optional[str] = None


class ResourceResponse(BaseModel):
    """Resource as seen by the requesting company."""
    id: str
    company_id: str
    company_anonymous_id: Optional[str] = None
    competence: str
    amount: int
    price: Optional[float] = None
    price_type: str
    price_label: str
    period_from: date
    period_to: date
    comments: Optional[str] = None
    is_taken: bool
    taken_at: Optional[datetime] = None
    is_mine: bool
    status: str
    status_label: str
    pending_request_count: int = 0
    created_at: datetime


class ResourceListResponse(BaseModel):
    success: bool = True
    resources: List[ResourceResponse]
    count: int


class PendingRequest(BaseModel):
    """An unread first message about one of the company's resources."""
    id: str
    resource_id: str
    content: str
    created_at: datetime
    from_anonymous_id: str


class PendingRequestsResponse(BaseModel):
    success: bool = True
    requests: Dict[str, List[PendingRequest]]  # {resource_id: [...]}
    count: int


class ResourceContactResponse(BaseModel):
    resource_id: str
    shared: bool
    contact: Optional[ContactInfo] = None


class TakeResourceResponse(BaseModel):
    success: bool = True
    resource_id: str
    is_taken: bool
    accepted_by_company_id: Optional[str] = None
    taken_at: Optional[datetime] = None
