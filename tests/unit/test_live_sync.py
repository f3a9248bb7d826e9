"""Tests for LiveSyncChannel reconnect, fallback polling and teardown."""

import uuid
from collections.abc import Callable

import pytest

from brandkit.models.common import ExtractorId, UnitStatus
from brandkit.models.units import ExtractionUnit
from brandkit.sync.channel import ConnectionState, LiveSyncChannel, SyncConfig
from brandkit.sync.feed import (
    ChangeKind,
    InMemoryChangeFeed,
    SubscriptionStatus,
    UnitChangeEvent,
)
from tests.factories import make_unit


class FakeHandle:
    def __init__(self, callback: Callable[[], None]) -> None:
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeTimers:
    """Records timers instead of scheduling them."""

    def __init__(self) -> None:
        self.later: list[tuple[float, FakeHandle]] = []
        self.every: list[tuple[float, FakeHandle]] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeHandle:
        handle = FakeHandle(callback)
        self.later.append((delay, handle))
        return handle

    def call_every(self, interval: float, callback: Callable[[], None]) -> FakeHandle:
        handle = FakeHandle(callback)
        self.every.append((interval, handle))
        return handle

    def fire_pending(self) -> None:
        """Run the most recent one-shot timer if it is still live."""
        _, handle = self.later[-1]
        if not handle.cancelled:
            handle.callback()


class Recorder:
    """Collects delivered snapshots and serves a fixed unit list."""

    def __init__(self, units: list[ExtractionUnit], fail: bool = False) -> None:
        self.units = units
        self.fail = fail
        self.fetches = 0
        self.snapshots: list[list[ExtractionUnit]] = []

    async def fetch_all(self) -> list[ExtractionUnit]:
        self.fetches += 1
        if self.fail:
            raise RuntimeError("database unavailable")
        return list(self.units)

    def on_update(self, units: list[ExtractionUnit]) -> None:
        self.snapshots.append(units)


class FailingFeed(InMemoryChangeFeed):
    """Feed whose transport fails while the subscription is being opened."""

    def __init__(self) -> None:
        super().__init__(auto_ack=False)

    def subscribe(self, subject_id, on_event, on_status):
        subscription = super().subscribe(subject_id, on_event, on_status)
        on_status(SubscriptionStatus.channel_error)
        return subscription


def change(subject_id: uuid.UUID) -> UnitChangeEvent:
    return UnitChangeEvent(
        subject_id=subject_id,
        unit_type=ExtractorId.basics,
        kind=ChangeKind.update,
        status=UnitStatus.analyzing,
    )


@pytest.fixture
def subject_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def recorder(subject_id: uuid.UUID) -> Recorder:
    return Recorder([make_unit(subject_id, ExtractorId.basics)])


class TestReconnect:
    """Test reconnect backoff and the switch to polling."""

    def test_fails_over_to_polling_after_max_attempts(
        self, subject_id: uuid.UUID, recorder: Recorder
    ) -> None:
        """Five reconnects at 1..5s, then exactly one poller and nothing else."""
        feed = InMemoryChangeFeed(auto_ack=False)
        timers = FakeTimers()
        channel = LiveSyncChannel(
            subject_id, recorder.fetch_all, recorder.on_update, feed=feed, timers=timers
        )
        channel.start()
        assert channel.state == ConnectionState.connecting

        feed.emit_status(subject_id, SubscriptionStatus.channel_error)
        for _ in range(5):
            assert channel.state == ConnectionState.reconnecting
            timers.fire_pending()
            feed.emit_status(subject_id, SubscriptionStatus.channel_error)

        assert [delay for delay, _ in timers.later] == [1.0, 2.0, 3.0, 4.0, 5.0]
        assert [interval for interval, _ in timers.every] == [3.0]
        assert channel.state == ConnectionState.polling
        assert channel.is_polling
        assert not channel.is_connected
        assert feed.subscriptions(subject_id) == []

        # Transport is gone; further statuses cannot start anything new
        feed.emit_status(subject_id, SubscriptionStatus.channel_error)
        assert len(timers.later) == 5
        assert len(timers.every) == 1

    def test_subscribed_resets_attempts(self, subject_id: uuid.UUID, recorder: Recorder) -> None:
        feed = InMemoryChangeFeed(auto_ack=False)
        timers = FakeTimers()
        channel = LiveSyncChannel(
            subject_id, recorder.fetch_all, recorder.on_update, feed=feed, timers=timers
        )
        channel.start()

        feed.emit_status(subject_id, SubscriptionStatus.channel_error)
        timers.fire_pending()
        feed.emit_status(subject_id, SubscriptionStatus.channel_error)
        assert channel.reconnect_attempts == 2

        feed.emit_status(subject_id, SubscriptionStatus.subscribed)

        assert channel.state == ConnectionState.connected
        assert channel.reconnect_attempts == 0
        assert timers.later[-1][1].cancelled

        feed.emit_status(subject_id, SubscriptionStatus.closed)
        assert timers.later[-1][0] == 1.0

    def test_duplicate_errors_while_reconnect_pending(
        self, subject_id: uuid.UUID, recorder: Recorder
    ) -> None:
        feed = InMemoryChangeFeed(auto_ack=False)
        timers = FakeTimers()
        channel = LiveSyncChannel(
            subject_id, recorder.fetch_all, recorder.on_update, feed=feed, timers=timers
        )
        channel.start()

        feed.emit_status(subject_id, SubscriptionStatus.channel_error)
        feed.emit_status(subject_id, SubscriptionStatus.closed)

        assert len(timers.later) == 1
        assert channel.reconnect_attempts == 1

    def test_error_reported_during_subscribe(
        self, subject_id: uuid.UUID, recorder: Recorder
    ) -> None:
        """A failure the feed reports before subscribe returns still schedules a reconnect."""
        feed = FailingFeed()
        timers = FakeTimers()
        channel = LiveSyncChannel(
            subject_id, recorder.fetch_all, recorder.on_update, feed=feed, timers=timers
        )
        channel.start()

        assert channel.state == ConnectionState.reconnecting
        assert [delay for delay, _ in timers.later] == [1.0]

        timers.fire_pending()
        assert feed.subscriptions(subject_id)[0].resubscribe_count == 1

    def test_error_during_subscribe_with_no_attempts_polls(
        self, subject_id: uuid.UUID, recorder: Recorder
    ) -> None:
        feed = FailingFeed()
        timers = FakeTimers()
        channel = LiveSyncChannel(
            subject_id,
            recorder.fetch_all,
            recorder.on_update,
            feed=feed,
            timers=timers,
            config=SyncConfig(max_reconnect_attempts=0),
        )
        channel.start()

        assert channel.state == ConnectionState.polling
        assert [interval for interval, _ in timers.every] == [3.0]
        assert feed.subscriptions(subject_id) == []

    def test_auto_ack_feed_connects(self, subject_id: uuid.UUID, recorder: Recorder) -> None:
        channel = LiveSyncChannel(
            subject_id,
            recorder.fetch_all,
            recorder.on_update,
            feed=InMemoryChangeFeed(),
            timers=FakeTimers(),
        )
        channel.start()

        assert channel.is_connected

    def test_polling_disabled(self, subject_id: uuid.UUID, recorder: Recorder) -> None:
        feed = InMemoryChangeFeed(auto_ack=False)
        timers = FakeTimers()
        channel = LiveSyncChannel(
            subject_id,
            recorder.fetch_all,
            recorder.on_update,
            feed=feed,
            timers=timers,
            config=SyncConfig(max_reconnect_attempts=0, enable_polling=False),
        )
        channel.start()

        feed.emit_status(subject_id, SubscriptionStatus.channel_error)

        assert timers.every == []
        assert channel.state == ConnectionState.disconnected


class TestDelivery:
    """Test snapshot delivery and teardown."""

    @pytest.mark.asyncio
    async def test_change_event_delivers_full_snapshot(
        self, subject_id: uuid.UUID, recorder: Recorder
    ) -> None:
        feed = InMemoryChangeFeed()
        channel = LiveSyncChannel(subject_id, recorder.fetch_all, recorder.on_update, feed=feed)
        channel.start()
        assert channel.is_connected

        feed.publish(change(subject_id))
        feed.publish(change(uuid.uuid4()))
        await channel.wait_idle()

        assert recorder.snapshots == [recorder.units]
        channel.stop()

    @pytest.mark.asyncio
    async def test_polling_only_without_feed(
        self, subject_id: uuid.UUID, recorder: Recorder
    ) -> None:
        timers = FakeTimers()
        channel = LiveSyncChannel(
            subject_id, recorder.fetch_all, recorder.on_update, timers=timers
        )
        channel.start()

        assert channel.state == ConnectionState.polling
        interval, poller = timers.every[0]
        assert interval == 3.0

        poller.callback()
        await channel.wait_idle()

        assert len(recorder.snapshots) == 1
        channel.stop()
        assert poller.cancelled

    @pytest.mark.asyncio
    async def test_empty_snapshot_is_delivered(self, subject_id: uuid.UUID) -> None:
        recorder = Recorder([])
        channel = LiveSyncChannel(subject_id, recorder.fetch_all, recorder.on_update)

        await channel.refresh()

        assert recorder.snapshots == [[]]

    @pytest.mark.asyncio
    async def test_fetch_error_is_logged_not_delivered(
        self, subject_id: uuid.UUID, caplog: pytest.LogCaptureFixture
    ) -> None:
        recorder = Recorder([], fail=True)
        channel = LiveSyncChannel(subject_id, recorder.fetch_all, recorder.on_update)

        await channel.refresh()

        assert recorder.fetches == 1
        assert recorder.snapshots == []
        assert "database unavailable" in caplog.text

    @pytest.mark.asyncio
    async def test_nothing_delivered_after_stop(
        self, subject_id: uuid.UUID, recorder: Recorder
    ) -> None:
        feed = InMemoryChangeFeed()
        channel = LiveSyncChannel(subject_id, recorder.fetch_all, recorder.on_update, feed=feed)
        channel.start()

        feed.publish(change(subject_id))
        channel.stop()
        await channel.wait_idle()
        feed.publish(change(subject_id))

        assert recorder.snapshots == []
        assert feed.subscriptions(subject_id) == []

    def test_stop_is_idempotent(self, subject_id: uuid.UUID, recorder: Recorder) -> None:
        feed = InMemoryChangeFeed(auto_ack=False)
        timers = FakeTimers()
        channel = LiveSyncChannel(
            subject_id, recorder.fetch_all, recorder.on_update, feed=feed, timers=timers
        )
        channel.start()
        feed.emit_status(subject_id, SubscriptionStatus.channel_error)
        pending = timers.later[0][1]

        channel.stop()
        channel.stop()
        channel.start()

        assert channel.state == ConnectionState.closed
        assert pending.cancelled
        assert feed.subscriptions(subject_id) == []
