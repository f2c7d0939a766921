"""In-process channel for booking transitions.

The booking service publishes one event per committed transition. Consumers
such as a notification sender subscribe here instead of polling the store.
"""
import inspect
from dataclasses import dataclass, field
from datetime import datetime
from typing import Awaitable, Callable, List, Optional, Union

from parking_booking.domain.common import BookingStatus
from parking_booking.shared.utils import logger, utc_now


@dataclass(frozen=True)
class BookingEvent:
    name: str
    booking_id: str
    user_id: str
    from_status: Optional[BookingStatus]
    to_status: BookingStatus
    slot_id: Optional[str] = None
    occurred_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "booking_id": self.booking_id,
            "user_id": self.user_id,
            "from_status": self.from_status.value if self.from_status else None,
            "to_status": self.to_status.value,
            "slot_id": self.slot_id,
            "occurred_at": self.occurred_at.isoformat(),
        }


Subscriber = Callable[[BookingEvent], Union[None, Awaitable[None]]]


class BookingEventBus:
    def __init__(self):
        self._subscribers: List[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> None:
        self._subscribers.append(subscriber)

    def unsubscribe(self, subscriber: Subscriber) -> None:
        if subscriber in self._subscribers:
            self._subscribers.remove(subscriber)

    async def publish(self, event: BookingEvent) -> None:
        logger.debug(f"[event] {event.name} {event.to_dict()}")
        for subscriber in list(self._subscribers):
            try:
                result = subscriber(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                # Consumer failures never reach the caller of the committed transition.
                logger.exception(f"Subscriber {subscriber!r} failed on {event.name} for booking {event.booking_id}")
