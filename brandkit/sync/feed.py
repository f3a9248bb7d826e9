"""Change feed for extraction units, keyed by subject."""

import logging
import uuid
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from brandkit.models.common import ExtractorId, UnitStatus

logger = logging.getLogger(__name__)


class SubscriptionStatus(str, Enum):
    """Transport status reported to a subscriber."""

    subscribed = "subscribed"
    closed = "closed"
    channel_error = "channel_error"


class ChangeKind(str, Enum):
    insert = "insert"
    update = "update"
    delete = "delete"


@dataclass(frozen=True)
class UnitChangeEvent:
    """Something happened to one of a subject's units."""

    subject_id: uuid.UUID
    unit_type: ExtractorId
    kind: ChangeKind
    status: UnitStatus | None = None


EventCallback = Callable[[UnitChangeEvent], None]
StatusCallback = Callable[[SubscriptionStatus], None]


class Subscription(Protocol):
    """Handle to one live subscription."""

    def resubscribe(self) -> None:
        """Try to re-establish the transport; the outcome arrives as a status."""
        ...

    def close(self) -> None:
        """Stop delivering events and statuses. Idempotent."""
        ...


class ChangeFeed(Protocol):
    """Source of unit change events."""

    def subscribe(
        self,
        subject_id: uuid.UUID,
        on_event: EventCallback,
        on_status: StatusCallback,
    ) -> Subscription:
        """Open a subscription; acknowledgment or failure arrives via on_status."""
        ...


class InMemorySubscription:
    """Subscription held by InMemoryChangeFeed."""

    def __init__(
        self,
        feed: "InMemoryChangeFeed",
        subject_id: uuid.UUID,
        on_event: EventCallback,
        on_status: StatusCallback,
    ) -> None:
        self._feed = feed
        self.subject_id = subject_id
        self.on_event = on_event
        self.on_status = on_status
        self.closed = False
        self.resubscribe_count = 0

    def resubscribe(self) -> None:
        if self.closed:
            return
        self.resubscribe_count += 1
        if self._feed.auto_ack:
            self.on_status(SubscriptionStatus.subscribed)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._feed._remove(self)


class InMemoryChangeFeed:
    """Process-local change feed.

    With ``auto_ack`` every subscribe and resubscribe is acknowledged
    immediately; otherwise statuses are driven through ``emit_status``.
    """

    def __init__(self, auto_ack: bool = True) -> None:
        self.auto_ack = auto_ack
        self._subscriptions: dict[uuid.UUID, list[InMemorySubscription]] = defaultdict(list)

    def subscribe(
        self,
        subject_id: uuid.UUID,
        on_event: EventCallback,
        on_status: StatusCallback,
    ) -> InMemorySubscription:
        subscription = InMemorySubscription(self, subject_id, on_event, on_status)
        self._subscriptions[subject_id].append(subscription)
        if self.auto_ack:
            on_status(SubscriptionStatus.subscribed)
        return subscription

    def subscriptions(self, subject_id: uuid.UUID) -> list[InMemorySubscription]:
        return list(self._subscriptions.get(subject_id, []))

    def publish(self, event: UnitChangeEvent) -> None:
        """Deliver an event to every open subscription for its subject."""
        for subscription in self.subscriptions(event.subject_id):
            try:
                subscription.on_event(event)
            except Exception:
                logger.exception(f"Change subscriber for {event.subject_id} failed")

    def emit_status(self, subject_id: uuid.UUID, status: SubscriptionStatus) -> None:
        """Report a transport status to every open subscription for a subject."""
        for subscription in self.subscriptions(subject_id):
            subscription.on_status(status)

    def _remove(self, subscription: InMemorySubscription) -> None:
        current = self._subscriptions.get(subscription.subject_id, [])
        remaining = [s for s in current if s is not subscription]
        if remaining:
            self._subscriptions[subscription.subject_id] = remaining
        else:
            self._subscriptions.pop(subscription.subject_id, None)
