"""
Message threads and contact disclosure.

A thread is identified by the id of its first message. Every operation
takes the acting company id explicitly and enforces that only the two
participants of a thread can read or write it. Compound actions (a
disclosure plus its announcement message) run in one transaction.
"""

import logging
from datetime import datetime
from typing import List, Optional, Set, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import (
    AccessDeniedError, AlreadyDisclosedError, AlreadyTakenError, NotFoundError,
    ValidationError, store_boundary
)
from app.services.change_feed_service import ChangeFeedService
from app.services.resource_service import ResourceService
from src.database.models import Company, ContactDisclosure, Message, Resource
from src.database.repository import (
    CompanyRepository, DisclosureRepository, MessageRepository, ResourceRepository
)
from src.marketplace.status import ThreadState, thread_state
from src.marketplace.threads import (
    is_participant, latest_per_thread, next_timestamp, other_participant, reply_subject
)

logger = logging.getLogger(__name__)

DISCLOSURE_SUBJECT = "Kontaktinformasjon delt"
DISCLOSURE_CONTENT = "Kontaktinformasjon er nå delt mellom partene."

LOAD_MESSAGES_FAILED = "Kunne ikke laste meldinger. Vennligst prøv igjen senere."
LOAD_THREAD_FAILED = "Kunne ikke laste meldingstråd. Vennligst prøv igjen senere."
SEND_FAILED = "Kunne ikke sende svar. Vennligst prøv igjen senere."
SHARE_FAILED = "Kunne ikke dele kontaktinformasjon. Prøv igjen senere."


class ThreadService:
    """Service class for thread and disclosure operations."""

    @staticmethod
    def _resolve_root(db: Session, thread_or_message_id: str) -> Message:
        """Find the first message of the thread a message id belongs to."""
        message = MessageRepository.get_message_by_id(db, thread_or_message_id)
        if not message:
            raise NotFoundError("Thread", thread_or_message_id)
        if message.thread_id:
            root = MessageRepository.get_message_by_id(db, message.thread_id)
            if not root:
                raise NotFoundError("Thread", message.thread_id)
            return root
        return message

    @staticmethod
    def _require_participant(root: Message, company_id: str) -> None:
        if not is_participant(root, company_id):
            raise AccessDeniedError("Du deltar ikke i denne meldingstråden.")

    @staticmethod
    def _publish(table: str, event: str, root: Message, record_id: str) -> None:
        ChangeFeedService.publish(table, event, [root.from_company_id, root.to_company_id], record_id)

    @staticmethod
    def start_thread(
        db: Session,
        resource_id: str,
        from_company_id: str,
        content: str,
        subject: Optional[str] = None
    ) -> Message:
        """
        Send the first inquiry about a resource to its owner.

        Raises:
            ValidationError: Empty content or own resource
            AlreadyTakenError: Resource is no longer available
            NotFoundError: Unknown resource
        """
        if not content or not content.strip():
            raise ValidationError("Meldingen kan ikke være tom", field="content")

        with store_boundary("start_thread", SEND_FAILED):
            resource = ResourceRepository.get_resource_by_id(db, resource_id)
            if not resource:
                raise NotFoundError("Resource", resource_id)
            if resource.company_id == from_company_id:
                raise ValidationError("Du kan ikke sende forespørsel på din egen ressurs", field="resource_id")
            if resource.is_taken:
                raise AlreadyTakenError(resource_id)

            message = MessageRepository.create_message(
                db,
                from_company_id=from_company_id,
                to_company_id=resource.company_id,
                resource_id=resource.id,
                subject=(subject or "").strip() or f"Forespørsel om {resource.competence}",
                content=content,
                thread_id=None
            )
            db.commit()

        logger.info(f"[THREAD] {from_company_id} opened thread {message.id} on resource {resource_id}")
        ChangeFeedService.publish('messages', 'INSERT', [from_company_id, resource.company_id], message.id)
        return message

    @staticmethod
    def list_threads_for(db: Session, company_id: str) -> List[Message]:
        """
        Most recent message of every thread involving the company, newest first.

        Messages whose sender, recipient or resource has been deleted are
        left out.
        """
        with store_boundary("list_threads", LOAD_MESSAGES_FAILED):
            messages = MessageRepository.get_messages_for_company(db, company_id)
        return latest_per_thread(messages)

    @staticmethod
    def load_thread(db: Session, thread_or_message_id: str, viewer_company_id: str) -> List[Message]:
        """
        All messages of a thread, oldest first, marking the viewer's unread ones as read.

        Args:
            thread_or_message_id: Matched against both message id and thread_id
            viewer_company_id: Company opening the thread

        Raises:
            NotFoundError: Nothing matches the id
            AccessDeniedError: The viewer takes part in none of the messages
        """
        with store_boundary("load_thread", LOAD_THREAD_FAILED):
            messages = MessageRepository.get_thread_messages(db, thread_or_message_id)
            if not messages:
                raise NotFoundError("Thread", thread_or_message_id)
            if not any(is_participant(m, viewer_company_id) for m in messages):
                raise AccessDeniedError("Du deltar ikke i denne meldingstråden.")

            visible = [m for m in messages if m.is_resolvable]
            unread_ids = [
                m.id for m in visible
                if m.read_at is None and m.to_company_id == viewer_company_id
            ]
            stamped = MessageRepository.mark_read(db, unread_ids, viewer_company_id, datetime.utcnow())
            db.commit()

        if stamped:
            logger.debug(f"[THREAD] {viewer_company_id} read {stamped} message(s) in {thread_or_message_id}")
            ChangeFeedService.publish(
                'messages', 'UPDATE',
                {c for m in visible for c in (m.from_company_id, m.to_company_id)},
                thread_or_message_id
            )
        return visible

    @staticmethod
    def send_reply(
        db: Session,
        thread_id: str,
        from_company_id: str,
        resource_id: str,
        content: str
    ) -> Message:
        """
        Append a reply to a thread, addressed to the other participant.

        Raises:
            ValidationError: Empty content, or a resource other than the thread's
            AccessDeniedError: Sender is not a participant
            NotFoundError: Unknown thread, or the other participant was deleted
        """
        if not content or not content.strip():
            raise ValidationError("Meldingen kan ikke være tom", field="content")

        with store_boundary("send_reply", SEND_FAILED):
            root = ThreadService._resolve_root(db, thread_id)
            ThreadService._require_participant(root, from_company_id)
            if root.resource_id != resource_id:
                raise ValidationError("Meldingen må gjelde samme ressurs som tråden", field="resource_id")

            to_company_id = other_participant(root, from_company_id)
            if not to_company_id:
                raise NotFoundError("Company", "counterparty")

            previous = MessageRepository.get_thread_messages(db, root.id)
            message = MessageRepository.create_message(
                db,
                from_company_id=from_company_id,
                to_company_id=to_company_id,
                resource_id=root.resource_id,
                subject=reply_subject(root.subject),
                content=content,
                thread_id=root.id,
                created_at=next_timestamp(m.created_at for m in previous)
            )
            db.commit()

        logger.info(f"[THREAD] Reply {message.id} in {root.id} from {from_company_id}")
        ThreadService._publish('messages', 'INSERT', root, message.id)
        return message

    @staticmethod
    def share_contact(
        db: Session,
        thread_id: str,
        requesting_company_id: str
    ) -> Tuple[ContactDisclosure, Message]:
        """
        Disclose real contact details for a thread, once.

        Inserts the disclosure row and the announcement message in a single
        transaction. Of two racing callers the unique constraint on
        thread_id lets exactly one through.

        Returns:
            The disclosure and its announcement message. Read state is left
            untouched.

        Raises:
            AlreadyDisclosedError: The thread already has a disclosure
            AccessDeniedError: Requester is not a participant
        """
        with store_boundary("share_contact", SHARE_FAILED):
            root = ThreadService._resolve_root(db, thread_id)
            ThreadService._require_participant(root, requesting_company_id)

            if DisclosureRepository.get_by_thread(db, root.id):
                raise AlreadyDisclosedError(root.id)

            to_company_id = other_participant(root, requesting_company_id)
            if not to_company_id:
                raise NotFoundError("Company", "counterparty")

            previous = MessageRepository.get_thread_messages(db, root.id)
            try:
                disclosure = DisclosureRepository.create_disclosure(
                    db,
                    thread_id=root.id,
                    from_company_id=requesting_company_id,
                    to_company_id=to_company_id
                )
                announcement = MessageRepository.create_message(
                    db,
                    from_company_id=requesting_company_id,
                    to_company_id=to_company_id,
                    resource_id=root.resource_id,
                    subject=DISCLOSURE_SUBJECT,
                    content=DISCLOSURE_CONTENT,
                    thread_id=root.id,
                    created_at=next_timestamp(m.created_at for m in previous)
                )
                db.commit()
            except IntegrityError:
                db.rollback()
                logger.info(f"[THREAD] Lost disclosure race on {root.id} ({requesting_company_id})")
                raise AlreadyDisclosedError(root.id)

        logger.info(f"[THREAD] Contact shared in {root.id} by {requesting_company_id}")
        ThreadService._publish('thread_contact_sharing', 'INSERT', root, disclosure.id)
        ThreadService._publish('messages', 'INSERT', root, announcement.id)
        return disclosure, announcement

    @staticmethod
    def mark_resource_taken(db: Session, thread_id: str, acting_company_id: str) -> Resource:
        """Settle the thread's resource from within the thread."""
        with store_boundary("mark_resource_taken", LOAD_THREAD_FAILED):
            root = ThreadService._resolve_root(db, thread_id)
        ThreadService._require_participant(root, acting_company_id)
        if not root.resource_id:
            raise NotFoundError("Resource", "deleted")
        return ResourceService.mark_resource_taken(db, root.resource_id, acting_company_id)

    @staticmethod
    def get_disclosure(db: Session, thread_id: str) -> Optional[ContactDisclosure]:
        with store_boundary("get_disclosure", LOAD_THREAD_FAILED):
            return DisclosureRepository.get_by_thread(db, thread_id)

    @staticmethod
    def disclosed_threads_for(db: Session, company_id: str) -> Set[str]:
        """Ids of threads where the company has exchanged contact details."""
        with store_boundary("disclosed_threads", LOAD_MESSAGES_FAILED):
            return {d.thread_id for d in DisclosureRepository.get_for_company(db, company_id)}

    @staticmethod
    def counterpart_contact(db: Session, root: Message, viewer_company_id: str) -> Optional[Company]:
        """The other participant, if contact details have been disclosed in this thread."""
        disclosure = ThreadService.get_disclosure(db, root.id)
        if not disclosure or not disclosure.involves(viewer_company_id):
            return None
        with store_boundary("counterpart_contact", LOAD_THREAD_FAILED):
            other = CompanyRepository.get_company_by_id(db, disclosure.other_party(viewer_company_id))
        if other and other.has_contact_info:
            return other
        return None

    @staticmethod
    def state_of(messages: List[Message], disclosed: bool) -> ThreadState:
        resource_taken = bool(messages) and any(m.resource is not None and m.resource.is_taken for m in messages)
        return thread_state(bool(messages), disclosed, resource_taken)
