# cabinet_project_root/records/events.py
# IN-PROCESS CHANGE NOTIFICATION FEED

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class ChangeTopic(str, Enum):
    PATIENTS = "patients"
    SPECIALTIES = "specialties"
    MEDICATIONS = "medications"
    FAMILIES = "families"


class ChangeType(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class ChangeEvent:
    topic: ChangeTopic
    change_type: ChangeType
    record_id: Optional[str] = None
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


ChangeCallback = Callable[[ChangeEvent], None]


class ChangeFeed:
    """
    Synchronous pub/sub for row-level change notifications.

    Subscribers are told *that* a topic changed and are expected to re-fetch
    a fresh snapshot; events carry no row data.
    """

    def __init__(self) -> None:
        self._subscribers: Dict[ChangeTopic, List[ChangeCallback]] = {}

    def subscribe(self, topic: ChangeTopic, callback: ChangeCallback) -> Callable[[], None]:
        """Registers a callback for one topic. Returns a function that unsubscribes it."""
        topic = ChangeTopic(topic)
        self._subscribers.setdefault(topic, []).append(callback)

        def unsubscribe() -> None:
            callbacks = self._subscribers.get(topic, [])
            if callback in callbacks:
                callbacks.remove(callback)
            if not callbacks:
                self._subscribers.pop(topic, None)

        return unsubscribe

    def subscriber_count(self, topic: ChangeTopic) -> int:
        return len(self._subscribers.get(ChangeTopic(topic), []))

    def publish(self, event: ChangeEvent) -> int:
        """Delivers the event to every subscriber of its topic. Returns the number notified."""
        delivered = 0
        for callback in list(self._subscribers.get(event.topic, [])):
            try:
                callback(event)
                delivered += 1
            except Exception as e:
                logger.error(f"Change subscriber failed for '{event.topic.value}' event: {e}", exc_info=True)
        logger.debug(f"Published {event.change_type.value} on '{event.topic.value}' to {delivered} subscriber(s).")
        return delivered
