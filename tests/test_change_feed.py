"""Tests for the change feed subscriptions."""

import threading

import pytest

from app.services.change_feed_service import ChangeFeedService
from app.services.thread_service import ThreadService


@pytest.mark.asyncio
async def test_publish_reaches_only_affected_companies():
    mine = ChangeFeedService.subscribe("company-a")
    other = ChangeFeedService.subscribe("company-b")

    notified = ChangeFeedService.publish("messages", "INSERT", ["company-a", None], "msg-1")
    assert notified == 1

    event = await mine.get(timeout=1)
    assert event == {"type": "change", "table": "messages", "event": "INSERT", "record_id": "msg-1"}
    assert await other.get(timeout=0.05) is None

    mine.close()
    other.close()


@pytest.mark.asyncio
async def test_close_stops_delivery():
    async with ChangeFeedService.subscribe("company-a") as subscription:
        assert ChangeFeedService.subscriber_count("company-a") == 1

    assert subscription.closed
    assert ChangeFeedService.subscriber_count("company-a") == 0
    assert ChangeFeedService.publish("resources", "UPDATE", ["company-a"], "res-1") == 0


@pytest.mark.asyncio
async def test_publish_from_worker_thread():
    subscription = ChangeFeedService.subscribe("company-a")

    worker = threading.Thread(
        target=ChangeFeedService.publish,
        args=("thread_contact_sharing", "INSERT", ["company-a"], "disc-1"),
    )
    worker.start()
    worker.join()

    event = await subscription.get(timeout=1)
    assert event["table"] == "thread_contact_sharing"
    subscription.close()


@pytest.mark.asyncio
async def test_async_iteration_ends_after_close():
    subscription = ChangeFeedService.subscribe("company-a")
    ChangeFeedService.publish("messages", "UPDATE", ["company-a"], "thread-1")

    received = []
    async for event in subscription:
        received.append(event["record_id"])
        subscription.close()

    assert received == ["thread-1"]


@pytest.mark.asyncio
async def test_thread_activity_is_published(db, make_company, make_resource):
    owner = make_company()
    buyer = make_company()
    resource = make_resource(owner)

    owner_feed = ChangeFeedService.subscribe(owner.id)
    buyer_feed = ChangeFeedService.subscribe(buyer.id)

    root = ThreadService.start_thread(db, resource.id, buyer.id, "Ledig?")
    assert (await owner_feed.get(timeout=1))["record_id"] == root.id
    assert (await buyer_feed.get(timeout=1))["record_id"] == root.id

    disclosure, _ = ThreadService.share_contact(db, root.id, owner.id)
    tables = [(await buyer_feed.get(timeout=1))["table"] for _ in range(2)]
    assert tables == ["thread_contact_sharing", "messages"]
    assert disclosure.thread_id == root.id

    owner_feed.close()
    buyer_feed.close()


def test_subscribe_requires_running_loop():
    with pytest.raises(RuntimeError):
        ChangeFeedService.subscribe("company-a")
    assert ChangeFeedService.subscriber_count("company-a") == 0
