# backend/cybershield/services/notifications/notifier.py

from enum import Enum
from itertools import count
from typing import Callable, Dict, List, Optional, Protocol
import asyncio
import logging
import threading

from cybershield.core.config import settings
from cybershield.schemas.notifications import Notification

logger = logging.getLogger(__name__)


class NotificationSink(Protocol):
    """Anything the correlator can hand a finished notification to."""

    def publish(self, notification: Notification) -> None:
        ...


class Transport(Protocol):
    """The bit of a WebSocket the notifier needs."""

    async def send_text(self, data: str) -> None:
        ...


class SubscriberState(str, Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class Subscriber:
    """
    One live viewer.

    CONNECTING -> OPEN (handshake done) -> CLOSED (disconnect, send error,
    queue overflow or shutdown). CLOSED is terminal.

    Messages are queued and written by a dedicated sender task, so a
    broadcast never waits on socket I/O and each viewer gets them in the
    order they were broadcast.
    """

    _ids = count(1)

    def __init__(
        self,
        transport: Transport,
        *,
        max_queue_size: int,
        on_closed: Callable[["Subscriber"], None],
    ) -> None:
        self.id = next(self._ids)
        self.state = SubscriberState.CONNECTING
        self._transport = transport
        self._max_queue_size = max_queue_size
        self._on_closed = on_closed
        self._queue: Optional[asyncio.Queue] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._sender: Optional[asyncio.Task] = None

    def open(self) -> None:
        if self.state is not SubscriberState.CONNECTING:
            raise RuntimeError(f"Subscriber {self.id} cannot reopen from {self.state.value}")
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue(maxsize=self._max_queue_size)
        self._sender = self._loop.create_task(self._drain())
        self.state = SubscriberState.OPEN

    def enqueue(self, data: str) -> bool:
        """Queue one serialized message. Safe to call from any thread."""
        if self.state is not SubscriberState.OPEN:
            return False

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is self._loop:
            self._put(data)
            return self.state is SubscriberState.OPEN

        try:
            self._loop.call_soon_threadsafe(self._put, data)
        except RuntimeError:
            # owning loop already closed
            self._close(cancel_sender=False)
            return False
        return True

    def _put(self, data: str) -> None:
        if self.state is not SubscriberState.OPEN:
            return
        try:
            self._queue.put_nowait(data)
        except asyncio.QueueFull:
            logger.warning(
                "Subscriber %s is %s messages behind; dropping it.",
                self.id,
                self._max_queue_size,
            )
            self._close()

    async def _drain(self) -> None:
        while True:
            data = await self._queue.get()
            try:
                await self._transport.send_text(data)
            except Exception as exc:
                logger.info("Delivery to subscriber %s failed (%s); closing.", self.id, exc)
                self._close(cancel_sender=False)
                return
            finally:
                self._queue.task_done()

    async def wait_drained(self) -> None:
        """Wait until everything queued so far has been written."""
        if self._queue is not None and self.state is SubscriberState.OPEN:
            await self._queue.join()

    def close(self) -> None:
        self._close()

    def _close(self, cancel_sender: bool = True) -> None:
        if self.state is SubscriberState.CLOSED:
            return
        self.state = SubscriberState.CLOSED
        if cancel_sender and self._sender is not None and not self._sender.done():
            if self._loop is not None and not self._loop.is_closed():
                self._loop.call_soon_threadsafe(self._sender.cancel)
        self._on_closed(self)


class Notifier:
    """
    Fan-out of notifications to every OPEN subscriber.

    At-most-once, no acknowledgement, no replay: a subscriber that connects
    after a broadcast never sees it.
    """

    def __init__(self, max_queue_size: int = settings.SUBSCRIBER_QUEUE_SIZE) -> None:
        self._max_queue_size = max_queue_size
        self._subscribers: Dict[int, Subscriber] = {}
        self._lock = threading.Lock()

    @property
    def active_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def subscribers(self) -> List[Subscriber]:
        with self._lock:
            return list(self._subscribers.values())

    def subscribe(self, transport: Transport) -> Subscriber:
        """Register a transport whose handshake has completed. Needs a running loop."""
        subscriber = Subscriber(
            transport,
            max_queue_size=self._max_queue_size,
            on_closed=self._forget,
        )
        subscriber.open()
        with self._lock:
            self._subscribers[subscriber.id] = subscriber
        logger.info("Live subscriber %s connected (%s active).", subscriber.id, self.active_count)
        return subscriber

    def unsubscribe(self, subscriber: Subscriber) -> None:
        subscriber.close()

    def _forget(self, subscriber: Subscriber) -> None:
        with self._lock:
            removed = self._subscribers.pop(subscriber.id, None)
        if removed is not None:
            logger.info(
                "Live subscriber %s disconnected (%s active).",
                subscriber.id,
                self.active_count,
            )

    def broadcast(self, notification: Notification) -> int:
        """
        Enqueue `notification` for every OPEN subscriber and return how many
        accepted it. Never blocks on I/O and never raises for one bad viewer.
        """
        data = notification.model_dump_json()
        delivered = 0
        for subscriber in self.subscribers():
            if subscriber.enqueue(data):
                delivered += 1
        logger.debug("Broadcast %s to %s subscribers.", notification.type, delivered)
        return delivered

    def publish(self, notification: Notification) -> None:
        self.broadcast(notification)

    def close_all(self) -> None:
        for subscriber in self.subscribers():
            subscriber.close()


notifier = Notifier()
