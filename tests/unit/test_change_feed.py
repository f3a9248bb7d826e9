"""Tests for the in-memory change feed and the events the unit repository publishes."""

import uuid

import pytest

from brandkit.db.inmemory import InMemorySubjectRepository, InMemoryUnitRepository
from brandkit.models.common import ExtractorId, UnitStatus
from brandkit.models.units import UnitUpdate
from brandkit.sync.feed import ChangeKind, InMemoryChangeFeed, SubscriptionStatus, UnitChangeEvent
from tests.factories import make_subject


@pytest.mark.asyncio
async def test_unit_repository_publishes_changes(
    feed: InMemoryChangeFeed,
    unit_repo: InMemoryUnitRepository,
    subject_repo: InMemorySubjectRepository,
) -> None:
    subject = await subject_repo.create_subject(make_subject())
    events: list[UnitChangeEvent] = []
    feed.subscribe(subject.subject_id, events.append, lambda status: None)

    await unit_repo.create_units(subject.subject_id, [ExtractorId.basics])
    await unit_repo.update_unit(
        subject.subject_id, ExtractorId.basics, UnitUpdate(status=UnitStatus.analyzing)
    )
    await unit_repo.create_units(subject.subject_id, [ExtractorId.basics])
    await subject_repo.delete_subject(subject.subject_id)

    assert [(e.kind, e.status) for e in events] == [
        (ChangeKind.insert, UnitStatus.queued),
        (ChangeKind.update, UnitStatus.analyzing),
        (ChangeKind.update, UnitStatus.queued),
        (ChangeKind.delete, UnitStatus.queued),
    ]


def test_events_are_scoped_to_subject() -> None:
    feed = InMemoryChangeFeed()
    mine, theirs = uuid.uuid4(), uuid.uuid4()
    received: list[UnitChangeEvent] = []
    feed.subscribe(mine, received.append, lambda status: None)

    feed.publish(UnitChangeEvent(theirs, ExtractorId.basics, ChangeKind.insert))
    feed.publish(UnitChangeEvent(mine, ExtractorId.customer, ChangeKind.insert))

    assert [e.unit_type for e in received] == [ExtractorId.customer]


def test_failing_subscriber_does_not_block_others() -> None:
    feed = InMemoryChangeFeed()
    subject_id = uuid.uuid4()
    received: list[UnitChangeEvent] = []

    def broken(event: UnitChangeEvent) -> None:
        raise RuntimeError("consumer crashed")

    feed.subscribe(subject_id, broken, lambda status: None)
    feed.subscribe(subject_id, received.append, lambda status: None)
    feed.publish(UnitChangeEvent(subject_id, ExtractorId.basics, ChangeKind.update))

    assert len(received) == 1


def test_subscription_lifecycle() -> None:
    feed = InMemoryChangeFeed(auto_ack=False)
    subject_id = uuid.uuid4()
    statuses: list[SubscriptionStatus] = []

    subscription = feed.subscribe(subject_id, lambda event: None, statuses.append)
    assert statuses == []

    feed.emit_status(subject_id, SubscriptionStatus.channel_error)
    subscription.resubscribe()
    subscription.close()
    subscription.close()
    subscription.resubscribe()
    feed.emit_status(subject_id, SubscriptionStatus.subscribed)

    assert statuses == [SubscriptionStatus.channel_error]
    assert subscription.resubscribe_count == 1
    assert feed.subscriptions(subject_id) == []
