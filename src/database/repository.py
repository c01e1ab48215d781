"""Data access layer for database operations."""

from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

from sqlalchemy import or_, update
from sqlalchemy.orm import Session, joinedload

from src.database.models import Company, ContactDisclosure, Message, Resource, User


class CompanyRepository:
    """Repository for company operations."""

    @staticmethod
    def create_company(session: Session, anonymous_id: str, **contact) -> Company:
        """Create a new company."""
        company = Company(anonymous_id=anonymous_id, **contact)
        session.add(company)
        session.flush()
        return company

    @staticmethod
    def get_company_by_id(session: Session, company_id: str) -> Optional[Company]:
        """Get company by ID."""
        return session.query(Company).filter(Company.id == company_id).first()

    @staticmethod
    def get_company_for_user(session: Session, user_id: str) -> Optional[Company]:
        """Get the company a user belongs to (single-row fetch, may be None)."""
        return (
            session.query(Company)
            .join(User, User.company_id == Company.id)
            .filter(User.id == user_id)
            .first()
        )

    @staticmethod
    def anonymous_id_exists(session: Session, anonymous_id: str) -> bool:
        return session.query(Company.id).filter(Company.anonymous_id == anonymous_id).first() is not None

    @staticmethod
    def get_companies_by_ids(session: Session, company_ids: Iterable[str]) -> Dict[str, Company]:
        """Get companies keyed by id."""
        company_ids = list(set(company_ids))
        if not company_ids:
            return {}
        companies = session.query(Company).filter(Company.id.in_(company_ids)).all()
        return {c.id: c for c in companies}


class ResourceRepository:
    """Repository for resource operations."""

    @staticmethod
    def create_resource(
        session: Session,
        company_id: str,
        competence: str,
        period_from: date,
        period_to: date,
        amount: int = 1,
        price: Optional[float] = None,
        price_type: str = 'fixed',
        comments: Optional[str] = None
    ) -> Resource:
        """Create a new resource listing."""
        resource = Resource(
            company_id=company_id,
            competence=competence,
            amount=amount,
            price=price,
            price_type=price_type,
            period_from=period_from,
            period_to=period_to,
            comments=comments,
            is_taken=False
        )
        session.add(resource)
        session.flush()
        return resource

    @staticmethod
    def get_resource_by_id(session: Session, resource_id: str) -> Optional[Resource]:
        """Get resource by ID."""
        return session.query(Resource).filter(Resource.id == resource_id).first()

    @staticmethod
    def list_resources(
        session: Session,
        company_id: Optional[str] = None,
        only_available: bool = False
    ) -> List[Resource]:
        """List resources, newest first."""
        query = session.query(Resource)
        if company_id:
            query = query.filter(Resource.company_id == company_id)
        if only_available:
            query = query.filter(Resource.is_taken.is_(False))
        return query.order_by(Resource.created_at.desc()).all()

    @staticmethod
    def mark_taken_if_available(
        session: Session,
        resource_id: str,
        accepted_by_company_id: str,
        taken_at: datetime
    ) -> bool:
        """
        Conditionally flip is_taken from false to true.

        Returns:
            True if this call performed the transition, False if the
            resource was already taken (or does not exist)
        """
        result = session.execute(
            update(Resource)
            .where(Resource.id == resource_id, Resource.is_taken.is_(False))
            .values(is_taken=True, accepted_by_company_id=accepted_by_company_id, taken_at=taken_at)
        )
        return result.rowcount == 1


class MessageRepository:
    """Repository for message operations."""

    @staticmethod
    def _with_refs(session: Session):
        return session.query(Message).options(
            joinedload(Message.from_company),
            joinedload(Message.to_company),
            joinedload(Message.resource),
        )

    @staticmethod
    def create_message(
        session: Session,
        from_company_id: str,
        to_company_id: str,
        resource_id: str,
        subject: str,
        content: str,
        thread_id: Optional[str] = None,
        created_at: Optional[datetime] = None
    ) -> Message:
        """Insert a message (flushed, not committed)."""
        message = Message(
            from_company_id=from_company_id,
            to_company_id=to_company_id,
            resource_id=resource_id,
            subject=subject,
            content=content,
            thread_id=thread_id,
            created_at=created_at or datetime.utcnow()
        )
        session.add(message)
        session.flush()
        return message

    @staticmethod
    def get_message_by_id(session: Session, message_id: str) -> Optional[Message]:
        return MessageRepository._with_refs(session).filter(Message.id == message_id).first()

    @staticmethod
    def get_messages_for_company(session: Session, company_id: str) -> List[Message]:
        """All messages sent or received by a company, newest first."""
        return (
            MessageRepository._with_refs(session)
            .filter(or_(Message.from_company_id == company_id, Message.to_company_id == company_id))
            .order_by(Message.created_at.desc())
            .all()
        )

    @staticmethod
    def get_thread_messages(session: Session, thread_or_message_id: str) -> List[Message]:
        """Messages whose id or thread_id equals the argument, oldest first."""
        return (
            MessageRepository._with_refs(session)
            .filter(or_(Message.id == thread_or_message_id, Message.thread_id == thread_or_message_id))
            .order_by(Message.created_at.asc())
            .all()
        )

    @staticmethod
    def mark_read(session: Session, message_ids: List[str], recipient_company_id: str, read_at: datetime) -> int:
        """
        Stamp read_at on unread messages addressed to the recipient.

        Already-read rows are excluded by the WHERE clause.

        Returns:
            Number of rows stamped
        """
        if not message_ids:
            return 0
        result = session.execute(
            update(Message)
            .where(
                Message.id.in_(message_ids),
                Message.to_company_id == recipient_company_id,
                Message.read_at.is_(None),
            )
            .values(read_at=read_at)
        )
        return result.rowcount

    @staticmethod
    def get_pending_requests(session: Session, company_id: str) -> List[Message]:
        """Unread root messages addressed to the company, newest first."""
        return (
            session.query(Message)
            .options(joinedload(Message.from_company))
            .filter(
                Message.to_company_id == company_id,
                Message.thread_id.is_(None),
                Message.read_at.is_(None),
                Message.resource_id.isnot(None),
            )
            .order_by(Message.created_at.desc())
            .all()
        )

    @staticmethod
    def get_root_messages_for_resource(session: Session, resource_id: str, company_id: str) -> List[Message]:
        """Root messages about a resource that involve the company, oldest first."""
        return (
            session.query(Message)
            .filter(
                Message.resource_id == resource_id,
                Message.thread_id.is_(None),
                or_(Message.from_company_id == company_id, Message.to_company_id == company_id),
            )
            .order_by(Message.created_at.asc())
            .all()
        )


class DisclosureRepository:
    """Repository for contact disclosure records."""

    @staticmethod
    def create_disclosure(
        session: Session,
        thread_id: str,
        from_company_id: str,
        to_company_id: str
    ) -> ContactDisclosure:
        """Insert a disclosure row. Raises IntegrityError if the thread already has one."""
        disclosure = ContactDisclosure(
            thread_id=thread_id,
            from_company_id=from_company_id,
            to_company_id=to_company_id
        )
        session.add(disclosure)
        session.flush()
        return disclosure

    @staticmethod
    def get_by_thread(session: Session, thread_id: str) -> Optional[ContactDisclosure]:
        return session.query(ContactDisclosure).filter(ContactDisclosure.thread_id == thread_id).first()

    @staticmethod
    def get_for_threads(session: Session, thread_ids: Iterable[str]) -> Dict[str, ContactDisclosure]:
        thread_ids = list(set(thread_ids))
        if not thread_ids:
            return {}
        rows = session.query(ContactDisclosure).filter(ContactDisclosure.thread_id.in_(thread_ids)).all()
        return {row.thread_id: row for row in rows}

    @staticmethod
    def get_for_company(session: Session, company_id: str) -> List[ContactDisclosure]:
        return session.query(ContactDisclosure).filter(
            or_(
                ContactDisclosure.from_company_id == company_id,
                ContactDisclosure.to_company_id == company_id
            )
        ).all()
