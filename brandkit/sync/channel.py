"""Live sync channel - keeps a consumer's view of a subject's units current.

A change-feed subscription triggers full re-fetches. When the transport
drops, reconnects are retried with a linearly growing delay; once the
attempts are exhausted the channel switches for good to a fixed-interval
poller. Subscription and poller are never active together.
"""

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum

from brandkit.config import Settings
from brandkit.models.units import ExtractionUnit
from brandkit.sync.feed import ChangeFeed, Subscription, SubscriptionStatus, UnitChangeEvent
from brandkit.sync.timers import AsyncioTimers, TimerHandle, Timers

logger = logging.getLogger(__name__)

FetchAll = Callable[[], Awaitable[list[ExtractionUnit]]]
OnUpdate = Callable[[list[ExtractionUnit]], None]


class ConnectionState(str, Enum):
    """Connection state of a live sync channel."""

    idle = "idle"
    connecting = "connecting"
    connected = "connected"
    disconnected = "disconnected"
    reconnecting = "reconnecting"
    polling = "polling"
    closed = "closed"


@dataclass(frozen=True)
class SyncConfig:
    """Polling interval and reconnect policy."""

    polling_interval_sec: float = 3.0
    reconnect_delay_sec: float = 1.0
    max_reconnect_attempts: int = 5
    enable_polling: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> "SyncConfig":
        return cls(
            polling_interval_sec=settings.sync_polling_interval_sec,
            reconnect_delay_sec=settings.sync_reconnect_delay_sec,
            max_reconnect_attempts=settings.sync_max_reconnect_attempts,
            enable_polling=settings.sync_enable_polling,
        )


class LiveSyncChannel:
    """Delivers whole unit snapshots for one subject to a consumer callback."""

    def __init__(
        self,
        subject_id: uuid.UUID,
        fetch_all: FetchAll,
        on_update: OnUpdate,
        *,
        feed: ChangeFeed | None = None,
        timers: Timers | None = None,
        config: SyncConfig | None = None,
    ) -> None:
        """Initialize channel.

        Args:
            subject_id: Subject whose units are tracked
            fetch_all: Point-in-time fetch of every unit of the subject
            on_update: Consumer callback receiving each full snapshot
            feed: Change feed (None means polling only)
            timers: Timer source (default: asyncio event loop)
            config: Polling and reconnect policy
        """
        self.subject_id = subject_id
        self._fetch_all = fetch_all
        self._on_update = on_update
        self._feed = feed
        self._timers = timers or AsyncioTimers()
        self._config = config or SyncConfig()

        self.state = ConnectionState.idle
        self.reconnect_attempts = 0
        self._alive = False
        self._subscription: Subscription | None = None
        self._early_statuses: list[SubscriptionStatus] | None = None
        self._reconnect_timer: TimerHandle | None = None
        self._poller: TimerHandle | None = None
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def is_connected(self) -> bool:
        return self.state == ConnectionState.connected

    @property
    def is_polling(self) -> bool:
        return self._poller is not None

    def start(self) -> None:
        """Open the subscription, or start polling when there is no feed."""
        if self._alive or self.state == ConnectionState.closed:
            return
        self._alive = True
        self.state = ConnectionState.connecting

        if self._feed is None:
            logger.info(f"No change feed for subject {self.subject_id}, using polling only")
            self._start_polling()
            return

        logger.debug(f"Subscribing to unit changes for subject {self.subject_id}")
        # Feeds may report a status before subscribe returns; hold it until the handle exists.
        self._early_statuses = []
        try:
            self._subscription = self._feed.subscribe(
                self.subject_id, self._handle_event, self._handle_status
            )
        finally:
            early, self._early_statuses = self._early_statuses, None
        for status in early:
            self._handle_status(status)

    def stop(self) -> None:
        """Tear down transport, timers and in-flight fetches. Safe to call repeatedly."""
        if self.state == ConnectionState.closed:
            return
        self._alive = False
        self.state = ConnectionState.closed

        self._cancel_reconnect()
        self._stop_polling()
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()
        logger.debug(f"Live sync for subject {self.subject_id} stopped")

    async def refresh(self) -> None:
        """Fetch and deliver the current snapshot regardless of transport."""
        await self._fetch_and_deliver()

    def _handle_status(self, status: SubscriptionStatus) -> None:
        if not self._alive:
            return
        if self._early_statuses is not None:
            self._early_statuses.append(status)
            return
        logger.debug(f"Subscription status for subject {self.subject_id}: {status.value}")

        if status == SubscriptionStatus.subscribed:
            self.state = ConnectionState.connected
            self._stop_polling()
            self._cancel_reconnect()
            self.reconnect_attempts = 0
            return

        if self._poller is not None or self._subscription is None:
            return

        self.state = ConnectionState.disconnected
        if self._reconnect_timer is not None:
            return

        if self.reconnect_attempts < self._config.max_reconnect_attempts:
            self.reconnect_attempts += 1
            delay = self._config.reconnect_delay_sec * self.reconnect_attempts
            logger.debug(
                f"Scheduling reconnect {self.reconnect_attempts}/"
                f"{self._config.max_reconnect_attempts} in {delay}s"
            )
            self.state = ConnectionState.reconnecting
            self._reconnect_timer = self._timers.call_later(delay, self._reconnect)
        else:
            logger.warning(
                f"Max reconnect attempts reached for subject {self.subject_id}, "
                "falling back to polling"
            )
            self._subscription.close()
            self._subscription = None
            self._start_polling()

    def _reconnect(self) -> None:
        self._reconnect_timer = None
        if self._alive and self._subscription is not None:
            self._subscription.resubscribe()

    def _handle_event(self, event: UnitChangeEvent) -> None:
        if not self._alive:
            return
        logger.debug(
            f"Unit change for subject {self.subject_id}: {event.unit_type.value} {event.kind.value}"
        )
        self._spawn_fetch()

    def _start_polling(self) -> None:
        if self._poller is not None:
            return
        if not self._config.enable_polling:
            self.state = ConnectionState.disconnected
            return
        logger.debug(f"Starting fallback polling every {self._config.polling_interval_sec}s")
        self.state = ConnectionState.polling
        self._poller = self._timers.call_every(
            self._config.polling_interval_sec, self._spawn_fetch
        )

    def _stop_polling(self) -> None:
        if self._poller is not None:
            logger.debug("Stopping fallback polling")
            self._poller.cancel()
            self._poller = None

    def _cancel_reconnect(self) -> None:
        if self._reconnect_timer is not None:
            self._reconnect_timer.cancel()
            self._reconnect_timer = None

    def _spawn_fetch(self) -> None:
        if not self._alive:
            return
        task = asyncio.get_running_loop().create_task(self._fetch_and_deliver())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _fetch_and_deliver(self) -> None:
        try:
            units = await self._fetch_all()
        except Exception as e:
            logger.warning(f"Fetching units for subject {self.subject_id} failed: {e}")
            return
        if self.state != ConnectionState.closed:
            self._on_update(units)

    async def wait_idle(self) -> None:
        """Wait for in-flight fetches to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
