"""Business logic for resource listings and the is_taken transition."""

import logging
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from app.core.exceptions import (
    AccessDeniedError, AlreadyTakenError, NotFoundError, ValidationError, store_boundary
)
from app.schemas.resource import ResourceCreate
from app.services.change_feed_service import ChangeFeedService
from src.database.models import Company, Resource
from src.database.repository import (
    CompanyRepository, DisclosureRepository, MessageRepository, ResourceRepository
)
from src.marketplace.status import StatusInfo, status_of

logger = logging.getLogger(__name__)

UNKNOWN_COMPANY = "Ukjent bedrift"
TAKE_FAILED = "Kunne ikke markere ressursen som tatt. Prøv igjen senere."
LOAD_RESOURCES_FAILED = "Kunne ikke laste ressurser. Vennligst prøv igjen senere."


class ResourceService:
    """Service class for resource-related operations."""

    @staticmethod
    def create_resource(db: Session, company_id: str, data: ResourceCreate) -> Resource:
        """
        Post a new resource for a company.

        Raises:
            ValidationError: If the period is inverted, the amount is not
                positive or a non-negotiable resource has no price
        """
        if not data.competence.strip():
            raise ValidationError("Kompetanse må fylles ut", field="competence")
        if data.period_from > data.period_to:
            raise ValidationError("Periodens slutt kan ikke være før start", field="period_to")
        if data.amount < 1:
            raise ValidationError("Antall må være minst 1", field="amount")
        if data.price_type != 'negotiable' and data.price is None:
            raise ValidationError("Pris må oppgis med mindre prisen er etter avtale", field="price")

        with store_boundary("create_resource"):
            resource = ResourceRepository.create_resource(
                db,
                company_id=company_id,
                competence=data.competence.strip(),
                amount=data.amount,
                price=data.price,
                price_type=data.price_type,
                period_from=data.period_from,
                period_to=data.period_to,
                comments=data.comments
            )
            db.commit()
            db.refresh(resource)

        logger.info(f"[RESOURCE] {company_id} posted {resource.competence} ({resource.id})")
        ChangeFeedService.publish('resources', 'INSERT', [company_id], resource.id)
        return resource

    @staticmethod
    def get_resource(db: Session, resource_id: str) -> Resource:
        with store_boundary("get_resource", LOAD_RESOURCES_FAILED):
            resource = ResourceRepository.get_resource_by_id(db, resource_id)
        if not resource:
            raise NotFoundError("Resource", resource_id)
        return resource

    @staticmethod
    def list_resources(
        db: Session,
        company_id: Optional[str] = None,
        only_available: bool = False
    ) -> List[Resource]:
        with store_boundary("list_resources", LOAD_RESOURCES_FAILED):
            return ResourceRepository.list_resources(db, company_id=company_id, only_available=only_available)

    @staticmethod
    def delete_resource(db: Session, resource_id: str, acting_company_id: str) -> None:
        """Delete an owned resource. Messages about it become dangling."""
        resource = ResourceService.get_resource(db, resource_id)
        if resource.company_id != acting_company_id:
            raise AccessDeniedError("Bare eieren kan slette ressursen.")

        with store_boundary("delete_resource"):
            db.delete(resource)
            db.commit()

        logger.info(f"[RESOURCE] Deleted {resource_id}")
        ChangeFeedService.publish('resources', 'DELETE', [acting_company_id], resource_id)

    @staticmethod
    def take_resource(db: Session, resource_id: str, acting_company_id: str) -> Resource:
        """
        The single is_taken false -> true transition.

        Performed as a conditional update guarded by is_taken = false, so
        that of two racing callers exactly one succeeds.

        Raises:
            NotFoundError: If the resource does not exist
            AlreadyTakenError: If the resource is (or concurrently became) taken
        """
        with store_boundary("take_resource", TAKE_FAILED):
            resource = ResourceRepository.get_resource_by_id(db, resource_id)
            if not resource:
                raise NotFoundError("Resource", resource_id)
            if resource.is_taken:
                raise AlreadyTakenError(resource_id)

            taken = ResourceRepository.mark_taken_if_available(
                db, resource_id, accepted_by_company_id=acting_company_id, taken_at=datetime.utcnow()
            )
            if not taken:
                db.rollback()
                logger.info(f"[RESOURCE] Lost race taking {resource_id} ({acting_company_id})")
                raise AlreadyTakenError(resource_id)

            db.commit()
            db.refresh(resource)

        logger.info(f"[RESOURCE] {resource_id} taken by {acting_company_id}")
        ChangeFeedService.publish(
            'resources', 'UPDATE', [resource.company_id, acting_company_id], resource_id
        )
        return resource

    @staticmethod
    def accept_resource(db: Session, resource_id: str, accepting_company_id: str) -> Resource:
        """Accept a resource from the listing view."""
        return ResourceService.take_resource(db, resource_id, accepting_company_id)

    @staticmethod
    def mark_resource_taken(db: Session, resource_id: str, acting_company_id: str) -> Resource:
        """Mark a resource as agreed from the thread view."""
        return ResourceService.take_resource(db, resource_id, acting_company_id)

    @staticmethod
    def pending_requests_for(db: Session, company_id: str) -> Dict[str, List[dict]]:
        """
        Unread first inquiries addressed to the company, grouped by resource.

        Returns:
            {resource_id: [{id, resource_id, content, created_at, from_anonymous_id}]}
            with each list newest first
        """
        with store_boundary("pending_requests", LOAD_RESOURCES_FAILED):
            messages = MessageRepository.get_pending_requests(db, company_id)

        grouped: Dict[str, List[dict]] = defaultdict(list)
        for msg in messages:
            sender = msg.from_company
            grouped[msg.resource_id].append({
                'id': msg.id,
                'resource_id': msg.resource_id,
                'content': msg.content,
                'created_at': msg.created_at,
                'from_anonymous_id': sender.anonymous_id if sender else UNKNOWN_COMPANY,
            })
        return dict(grouped)

    @staticmethod
    def contact_info_for(db: Session, resource_id: str, viewer_company_id: str) -> Optional[Company]:
        """
        Counterparty whose contact details the viewer may see for a taken resource.

        Looks for a disclosed thread about the resource in which the viewer
        participates. Returns None if there is none or the counterparty has
        no contact details.
        """
        with store_boundary("contact_info", LOAD_RESOURCES_FAILED):
            roots = MessageRepository.get_root_messages_for_resource(db, resource_id, viewer_company_id)
            disclosures = DisclosureRepository.get_for_threads(db, [m.id for m in roots])

            for root in roots:
                disclosure = disclosures.get(root.id)
                if not disclosure or not disclosure.involves(viewer_company_id):
                    continue
                other = CompanyRepository.get_company_by_id(db, disclosure.other_party(viewer_company_id))
                if other and other.has_contact_info:
                    return other
        return None

    @staticmethod
    def status_for_viewer(
        db: Session,
        resource: Resource,
        viewer_company_id: str,
        pending: Optional[Dict[str, List[dict]]] = None,
        now: Optional[datetime] = None
    ) -> StatusInfo:
        """Status of a resource from one company's point of view."""
        if pending is None:
            pending = ResourceService.pending_requests_for(db, viewer_company_id)
        contact = None
        if resource.is_taken:
            contact = ResourceService.contact_info_for(db, resource.id, viewer_company_id)
        return status_of(resource, len(pending.get(resource.id, [])), contact_info=contact, now=now)
