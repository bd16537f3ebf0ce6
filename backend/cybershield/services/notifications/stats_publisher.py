# backend/cybershield/services/notifications/stats_publisher.py
import logging

from fastapi.encoders import jsonable_encoder

from cybershield.core.config import settings
from cybershield.schemas.notifications import Notification
from cybershield.services.events.event_store_service import EventStore, event_store
from cybershield.services.notifications.notifier import Notifier, notifier
from cybershield.services.scheduling.periodic_task import PeriodicTask

logger = logging.getLogger(__name__)


class StatsPublisher:
    """Pushes a `stats_update` to every live viewer on a fixed interval."""

    def __init__(
        self,
        store: EventStore,
        notifier: Notifier,
        interval: float = settings.STATS_BROADCAST_INTERVAL_SECONDS,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._task = PeriodicTask("stats-publisher", self.publish_once, interval)

    @property
    def is_running(self) -> bool:
        return self._task.is_running

    def start(self) -> None:
        self._task.start()

    async def stop(self) -> None:
        await self._task.stop()

    async def publish_once(self) -> bool:
        """One tick. Returns False (and logs) instead of raising."""
        try:
            stats = self._store.get_stats()
        except Exception:
            logger.exception("Could not read system stats; skipping this update.")
            return False

        try:
            self._notifier.broadcast(
                Notification(
                    type="stats_update",
                    payload={"stats": jsonable_encoder(stats)},
                )
            )
        except Exception:
            logger.exception("Stats broadcast failed; skipping this update.")
            return False
        return True


stats_publisher = StatsPublisher(event_store, notifier)
