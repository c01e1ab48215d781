"""Resource listing API routes."""

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_current_company, get_db
from app.api.routes.messages import message_response
from app.schemas.company import ContactInfo
from app.schemas.message import InquiryCreate, MessageResponse
from app.schemas.resource import (
    PendingRequestsResponse, ResourceContactResponse, ResourceCreate, ResourceListResponse,
    ResourceResponse, TakeResourceResponse
)
from app.services.resource_service import ResourceService
from app.services.thread_service import ThreadService
from src.database.models import Company, Resource
from src.marketplace.pricing import format_price

router = APIRouter()


def resource_response(
    db: Session,
    resource: Resource,
    viewer: Company,
    pending: Dict[str, List[dict]]
) -> ResourceResponse:
    """Render a resource with its status for the viewer."""
    status = ResourceService.status_for_viewer(db, resource, viewer.id, pending=pending)
    return ResourceResponse(
        id=resource.id,
        company_id=resource.company_id,
        company_anonymous_id=resource.company.anonymous_id if resource.company else None,
        competence=resource.competence,
        amount=resource.amount,
        price=resource.price,
        price_type=resource.price_type,
        price_label=format_price(resource.price, resource.price_type),
        period_from=resource.period_from,
        period_to=resource.period_to,
        comments=resource.comments,
        is_taken=resource.is_taken,
        taken_at=resource.taken_at,
        is_mine=resource.company_id == viewer.id,
        status=status.status.value,
        status_label=status.label,
        pending_request_count=status.pending_count,
        created_at=resource.created_at,
    )


@router.post("", response_model=ResourceResponse, status_code=201)
async def create_resource(
    data: ResourceCreate,
    company: Company = Depends(get_current_company),
    db: Session = Depends(get_db)
):
    """Post a new resource for the current company."""
    resource = ResourceService.create_resource(db, company.id, data)
    return resource_response(db, resource, company, pending={})


@router.get("", response_model=ResourceListResponse)
async def list_resources(
    mine: bool = False,
    available: bool = False,
    company: Company = Depends(get_current_company),
    db: Session = Depends(get_db)
):
    """
    List resources with their status for the current company.

    Query params:
    - mine: only the current company's own resources
    - available: leave out resources that are already taken
    """
    resources = ResourceService.list_resources(
        db, company_id=company.id if mine else None, only_available=available
    )
    pending = ResourceService.pending_requests_for(db, company.id)
    items = [resource_response(db, r, company, pending) for r in resources]
    return ResourceListResponse(resources=items, count=len(items))


@router.get("/pending-requests", response_model=PendingRequestsResponse)
async def get_pending_requests(
    company: Company = Depends(get_current_company),
    db: Session = Depends(get_db)
):
    """Unread first inquiries about the current company's resources, grouped by resource."""
    pending = ResourceService.pending_requests_for(db, company.id)
    return PendingRequestsResponse(
        requests=pending,
        count=sum(len(v) for v in pending.values())
    )


@router.get("/{resource_id}", response_model=ResourceResponse)
async def get_resource(
    resource_id: str,
    company: Company = Depends(get_current_company),
    db: Session = Depends(get_db)
):
    resource = ResourceService.get_resource(db, resource_id)
    return resource_response(db, resource, company, ResourceService.pending_requests_for(db, company.id))


@router.delete("/{resource_id}", status_code=204)
async def delete_resource(
    resource_id: str,
    company: Company = Depends(get_current_company),
    db: Session = Depends(get_db)
):
    """Delete one of the current company's resources."""
    ResourceService.delete_resource(db, resource_id, company.id)


@router.post("/{resource_id}/accept", response_model=TakeResourceResponse)
async def accept_resource(
    resource_id: str,
    company: Company = Depends(get_current_company),
    db: Session = Depends(get_db)
):
    """
    Accept a resource.

    Returns 409 if the resource is already taken.
    """
    resource = ResourceService.accept_resource(db, resource_id, company.id)
    return TakeResourceResponse(
        resource_id=resource.id,
        is_taken=resource.is_taken,
        accepted_by_company_id=resource.accepted_by_company_id,
        taken_at=resource.taken_at,
    )


@router.get("/{resource_id}/contact", response_model=ResourceContactResponse)
async def get_resource_contact(
    resource_id: str,
    company: Company = Depends(get_current_company),
    db: Session = Depends(get_db)
):
    """Counterparty contact details for a taken resource, if shared with the current company."""
    ResourceService.get_resource(db, resource_id)
    other: Optional[Company] = ResourceService.contact_info_for(db, resource_id, company.id)
    return ResourceContactResponse(
        resource_id=resource_id,
        shared=other is not None,
        contact=ContactInfo.model_validate(other) if other else None,
    )


@router.post("/{resource_id}/inquiries", response_model=MessageResponse, status_code=201)
async def send_inquiry(
    resource_id: str,
    inquiry: InquiryCreate,
    company: Company = Depends(get_current_company),
    db: Session = Depends(get_db)
):
    """Start a thread with the owner of a resource."""
    message = ThreadService.start_thread(db, resource_id, company.id, inquiry.content, inquiry.subject)
    return message_response(message, company.id, disclosed=False)
