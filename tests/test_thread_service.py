"""Tests for ThreadService: threads, read state and contact disclosure."""

import pytest

from app.core.exceptions import (
    AccessDeniedError, AlreadyDisclosedError, AlreadyTakenError, NotFoundError, ValidationError
)
from app.services.thread_service import DISCLOSURE_CONTENT, DISCLOSURE_SUBJECT, ThreadService
from app.services.user_service import UserService
from src.database.models import ContactDisclosure, Message
from src.database.repository import DisclosureRepository
from src.marketplace.status import ThreadState


@pytest.fixture
def parties(make_company, make_resource):
    """Owner A posts a resource, B inquires about it, C is an outsider."""
    owner = make_company("Elektro Nord AS")
    buyer = make_company("Bygg Sør AS")
    outsider = make_company("Rør Øst AS")
    resource = make_resource(owner)
    return owner, buyer, outsider, resource


@pytest.fixture
def thread(db, parties):
    owner, buyer, _, resource = parties
    return ThreadService.start_thread(db, resource.id, buyer.id, "Er elektrikeren ledig i mars?")


class TestStartThread:
    def test_creates_root_message_to_owner(self, db, parties, thread):
        owner, buyer, _, resource = parties
        assert thread.thread_id is None
        assert thread.from_company_id == buyer.id
        assert thread.to_company_id == owner.id
        assert thread.resource_id == resource.id
        assert thread.subject == "Forespørsel om Electrician"
        assert thread.read_at is None

    def test_custom_subject(self, db, parties):
        _, buyer, _, resource = parties
        msg = ThreadService.start_thread(db, resource.id, buyer.id, "Hei", subject="Leie i uke 12")
        assert msg.subject == "Leie i uke 12"

    def test_rejects_empty_content(self, db, parties):
        _, buyer, _, resource = parties
        with pytest.raises(ValidationError):
            ThreadService.start_thread(db, resource.id, buyer.id, "   ")

    def test_rejects_own_resource(self, db, parties):
        owner, _, _, resource = parties
        with pytest.raises(ValidationError):
            ThreadService.start_thread(db, resource.id, owner.id, "Hei")

    def test_rejects_unknown_resource(self, db, parties):
        _, buyer, _, _ = parties
        with pytest.raises(NotFoundError):
            ThreadService.start_thread(db, "missing", buyer.id, "Hei")

    def test_rejects_taken_resource(self, db, parties, thread):
        owner, _, outsider, resource = parties
        ThreadService.mark_resource_taken(db, thread.id, owner.id)
        with pytest.raises(AlreadyTakenError):
            ThreadService.start_thread(db, resource.id, outsider.id, "Hei")


class TestListThreads:
    def test_latest_message_per_thread_newest_first(self, db, parties, make_resource, thread):
        owner, buyer, outsider, resource = parties
        other_resource = make_resource(owner, competence="Plumber")
        second = ThreadService.start_thread(db, other_resource.id, outsider.id, "Rørlegger ledig?")
        reply = ThreadService.send_reply(db, thread.id, owner.id, resource.id, "Ja, fra 3. mars")

        listed = ThreadService.list_threads_for(db, owner.id)
        assert [m.id for m in listed] == [reply.id, second.id]

        assert [m.id for m in ThreadService.list_threads_for(db, buyer.id)] == [reply.id]
        assert [m.id for m in ThreadService.list_threads_for(db, outsider.id)] == [second.id]

    def test_no_threads(self, db, parties):
        _, _, outsider, _ = parties
        assert ThreadService.list_threads_for(db, outsider.id) == []

    def test_deleted_counterparty_is_dropped(self, db, session_factory, parties, thread):
        owner, buyer, _, _ = parties
        UserService.delete_user(db, buyer.user.id)

        fresh = session_factory()
        try:
            assert ThreadService.list_threads_for(fresh, owner.id) == []
            assert ThreadService.load_thread(fresh, thread.id, owner.id) == []
            dangling = fresh.query(Message).filter(Message.id == thread.id).one()
            assert dangling.from_company_id is None
        finally:
            fresh.close()


class TestLoadThread:
    def test_recipient_read_stamps_once(self, db, parties, thread):
        owner, buyer, _, _ = parties
        first = ThreadService.load_thread(db, thread.id, owner.id)
        assert len(first) == 1
        stamped_at = first[0].read_at
        assert stamped_at is not None

        second = ThreadService.load_thread(db, thread.id, owner.id)
        assert second[0].read_at == stamped_at

    def test_sender_view_leaves_read_state_alone(self, db, parties, thread):
        owner, buyer, _, _ = parties
        ThreadService.load_thread(db, thread.id, buyer.id)
        assert db.get(Message, thread.id).read_at is None

        ThreadService.load_thread(db, thread.id, owner.id)
        stamped_at = db.get(Message, thread.id).read_at

        ThreadService.load_thread(db, thread.id, buyer.id)
        assert db.get(Message, thread.id).read_at == stamped_at

    def test_outsider_is_denied(self, db, parties, thread):
        _, _, outsider, _ = parties
        with pytest.raises(AccessDeniedError):
            ThreadService.load_thread(db, thread.id, outsider.id)

    def test_unknown_thread(self, db, parties):
        owner, _, _, _ = parties
        with pytest.raises(NotFoundError):
            ThreadService.load_thread(db, "no-such-thread", owner.id)


class TestSendReply:
    def test_reply_is_appended_last(self, db, parties, thread):
        owner, buyer, _, resource = parties
        replies = [
            ThreadService.send_reply(db, thread.id, owner.id, resource.id, "Ja"),
            ThreadService.send_reply(db, thread.id, buyer.id, resource.id, "Flott"),
            ThreadService.send_reply(db, thread.id, owner.id, resource.id, "Da sier vi det"),
        ]

        messages = ThreadService.load_thread(db, thread.id, buyer.id)
        assert [m.id for m in messages] == [thread.id] + [r.id for r in replies]
        timestamps = [m.created_at for m in messages]
        assert timestamps == sorted(timestamps)
        assert len(set(timestamps)) == len(timestamps)

    def test_reply_addresses_other_participant(self, db, parties, thread):
        owner, buyer, _, resource = parties
        reply = ThreadService.send_reply(db, thread.id, owner.id, resource.id, "Ja")
        assert reply.to_company_id == buyer.id
        assert reply.thread_id == thread.id
        assert reply.subject == "Re: Forespørsel om Electrician"

    def test_reply_via_reply_id_joins_root_thread(self, db, parties, thread):
        owner, buyer, _, resource = parties
        first = ThreadService.send_reply(db, thread.id, owner.id, resource.id, "Ja")
        second = ThreadService.send_reply(db, first.id, buyer.id, resource.id, "Takk")
        assert second.thread_id == thread.id
        assert second.subject == "Re: Forespørsel om Electrician"

    def test_rejects_empty_content(self, db, parties, thread):
        owner, _, _, resource = parties
        with pytest.raises(ValidationError):
            ThreadService.send_reply(db, thread.id, owner.id, resource.id, "")

    def test_rejects_other_resource(self, db, parties, make_resource, thread):
        owner, _, _, _ = parties
        other = make_resource(owner, competence="Plumber")
        with pytest.raises(ValidationError):
            ThreadService.send_reply(db, thread.id, owner.id, other.id, "Hei")

    def test_outsider_cannot_reply(self, db, parties, thread):
        _, _, outsider, resource = parties
        with pytest.raises(AccessDeniedError):
            ThreadService.send_reply(db, thread.id, outsider.id, resource.id, "Hei")


class TestShareContact:
    def test_creates_disclosure_and_announcement(self, db, parties, thread):
        owner, buyer, _, _ = parties
        disclosure, announcement = ThreadService.share_contact(db, thread.id, owner.id)

        assert disclosure.thread_id == thread.id
        assert disclosure.from_company_id == owner.id
        assert disclosure.to_company_id == buyer.id

        messages = ThreadService.load_thread(db, thread.id, buyer.id)
        assert messages[-1].id == announcement.id
        assert announcement.thread_id == thread.id
        assert announcement.subject == DISCLOSURE_SUBJECT
        assert announcement.content == DISCLOSURE_CONTENT
        assert announcement.to_company_id == buyer.id

    def test_share_leaves_read_state_alone(self, db, parties, thread):
        owner, _, _, _ = parties
        ThreadService.share_contact(db, thread.id, owner.id)
        assert db.get(Message, thread.id).read_at is None

    def test_second_share_is_rejected(self, db, parties, thread):
        owner, buyer, _, _ = parties
        ThreadService.share_contact(db, thread.id, owner.id)
        with pytest.raises(AlreadyDisclosedError):
            ThreadService.share_contact(db, thread.id, buyer.id)

        assert db.query(ContactDisclosure).count() == 1
        assert db.query(Message).filter(Message.subject == DISCLOSURE_SUBJECT).count() == 1

    def test_racing_share_hits_unique_constraint(self, db, parties, thread, monkeypatch):
        owner, buyer, _, _ = parties
        ThreadService.share_contact(db, thread.id, owner.id)

        # Second caller passed its pre-check before the first one committed
        monkeypatch.setattr(DisclosureRepository, "get_by_thread", staticmethod(lambda session, thread_id: None))
        with pytest.raises(AlreadyDisclosedError):
            ThreadService.share_contact(db, thread.id, buyer.id)

        assert db.query(ContactDisclosure).count() == 1
        assert db.query(Message).filter(Message.subject == DISCLOSURE_SUBJECT).count() == 1

    def test_outsider_cannot_share(self, db, parties, thread):
        _, _, outsider, _ = parties
        with pytest.raises(AccessDeniedError):
            ThreadService.share_contact(db, thread.id, outsider.id)

    def test_counterpart_contact_after_disclosure(self, db, parties, thread):
        owner, buyer, _, _ = parties
        assert ThreadService.counterpart_contact(db, thread, owner.id) is None

        ThreadService.share_contact(db, thread.id, buyer.id)
        assert ThreadService.counterpart_contact(db, thread, owner.id).id == buyer.id
        assert ThreadService.counterpart_contact(db, thread, buyer.id).company_name == "Elektro Nord AS"
        assert ThreadService.disclosed_threads_for(db, owner.id) == {thread.id}

    def test_disclosure_survives_deleted_party(self, db, session_factory, parties, thread):
        owner, buyer, _, _ = parties
        ThreadService.share_contact(db, thread.id, buyer.id)
        UserService.delete_user(db, buyer.user.id)

        fresh = session_factory()
        try:
            disclosure = ThreadService.get_disclosure(fresh, thread.id)
            assert disclosure is not None
            assert disclosure.from_company_id is None
            assert disclosure.to_company_id == owner.id
            assert ThreadService.disclosed_threads_for(fresh, owner.id) == {thread.id}
            assert ThreadService.counterpart_contact(fresh, thread, owner.id) is None
        finally:
            fresh.close()


class TestThreadState:
    def test_open_disclosed_settled(self, db, parties, thread):
        owner, buyer, _, _ = parties

        messages = ThreadService.load_thread(db, thread.id, owner.id)
        assert ThreadService.state_of(messages, disclosed=False) == ThreadState.OPEN

        ThreadService.share_contact(db, thread.id, owner.id)
        messages = ThreadService.load_thread(db, thread.id, owner.id)
        assert ThreadService.state_of(messages, disclosed=True) == ThreadState.DISCLOSED

        ThreadService.mark_resource_taken(db, thread.id, owner.id)
        messages = ThreadService.load_thread(db, thread.id, owner.id)
        assert ThreadService.state_of(messages, disclosed=True) == ThreadState.SETTLED

    def test_no_thread(self):
        assert ThreadService.state_of([], disclosed=False) == ThreadState.NO_THREAD


class TestMarkResourceTaken:
    def test_marks_thread_resource(self, db, parties, thread):
        owner, buyer, _, resource = parties
        taken = ThreadService.mark_resource_taken(db, thread.id, buyer.id)
        assert taken.id == resource.id
        assert taken.is_taken is True
        assert taken.accepted_by_company_id == buyer.id
        assert taken.taken_at is not None

    def test_second_mark_is_rejected(self, db, parties, thread):
        owner, buyer, _, _ = parties
        ThreadService.mark_resource_taken(db, thread.id, owner.id)
        with pytest.raises(AlreadyTakenError):
            ThreadService.mark_resource_taken(db, thread.id, buyer.id)

    def test_outsider_cannot_mark(self, db, parties, thread):
        _, _, outsider, _ = parties
        with pytest.raises(AccessDeniedError):
            ThreadService.mark_resource_taken(db, thread.id, outsider.id)
