"""Push notifications of table changes, filtered by company."""

import asyncio
import logging
from collections import defaultdict
from threading import Lock
from typing import Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)


class Subscription:
    """
    A company's live view of the change feed.

    Events are re-fetch hints ({"type": "change", "table", "event",
    "record_id"}), never row data. Close the subscription when the consumer
    goes away, either explicitly or by using it as an async context manager.
    """

    def __init__(self, company_id: str, loop: asyncio.AbstractEventLoop):
        self.company_id = company_id
        self._loop = loop
        self._queue: asyncio.Queue = asyncio.Queue()
        self.closed = False

    def _deliver(self, message: dict) -> None:
        if self.closed:
            return
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, message)
        except RuntimeError as e:
            # Event loop already closed; the consumer is gone
            logger.warning(f"[CHANGES] Dropping event for {self.company_id}: {e}")
            self.close()

    async def get(self, timeout: Optional[float] = None) -> Optional[dict]:
        """
        Wait for the next event.

        Returns:
            The event, or None if the timeout expired first
        """
        try:
            return await asyncio.wait_for(self._queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            ChangeFeedService.unsubscribe(self)

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __aiter__(self):
        return self

    async def __anext__(self) -> dict:
        if self.closed:
            raise StopAsyncIteration
        return await self._queue.get()


class ChangeFeedService:
    """
    Registry of live subscriptions.

    publish() is called by services after a successful commit and may be
    called from any thread.
    """

    # Subscriptions: {company_id: [sub1, sub2, ...]}
    _subscriptions: Dict[str, List[Subscription]] = defaultdict(list)
    _lock = Lock()

    @classmethod
    def subscribe(cls, company_id: str) -> Subscription:
        """Register a subscription for a company. Must be called inside a running event loop."""
        subscription = Subscription(company_id, asyncio.get_running_loop())
        with cls._lock:
            cls._subscriptions[company_id].append(subscription)
            logger.debug(f"[CHANGES] Subscribed {company_id} ({len(cls._subscriptions[company_id])} active)")
        return subscription

    @classmethod
    def unsubscribe(cls, subscription: Subscription) -> None:
        with cls._lock:
            subs = cls._subscriptions.get(subscription.company_id)
            if subs and subscription in subs:
                subs.remove(subscription)
                logger.debug(f"[CHANGES] Unsubscribed {subscription.company_id} ({len(subs)} remaining)")
                if not subs:
                    del cls._subscriptions[subscription.company_id]

    @classmethod
    def publish(cls, table: str, event: str, company_ids: Iterable[Optional[str]], record_id: str) -> int:
        """
        Notify every subscription of the given companies.

        Args:
            table: Changed table (messages, thread_contact_sharing, resources)
            event: INSERT or UPDATE
            company_ids: Companies whose views are affected
            record_id: Id of the changed row

        Returns:
            Number of subscriptions notified
        """
        message = {
            'type': 'change',
            'table': table,
            'event': event,
            'record_id': record_id
        }

        targets = {cid for cid in company_ids if cid}
        with cls._lock:
            subs = [s for cid in targets for s in cls._subscriptions.get(cid, [])]

        for sub in subs:
            sub._deliver(message)

        logger.debug(f"[CHANGES] {event} {table}/{record_id} -> {len(subs)} subscriber(s)")
        return len(subs)

    @classmethod
    def subscriber_count(cls, company_id: str) -> int:
        with cls._lock:
            return len(cls._subscriptions.get(company_id, []))

    @classmethod
    def reset(cls) -> None:
        """Drop all subscriptions."""
        with cls._lock:
            for subs in cls._subscriptions.values():
                for sub in subs:
                    sub.closed = True
            cls._subscriptions.clear()
