from unittest.mock import AsyncMock, MagicMock

from parking_booking.domain.common import BookingStatus
from parking_booking.domain.events import BookingEvent, BookingEventBus


def make_event(**overrides):
    values = dict(
        name="booking.confirmed",
        booking_id="b-1",
        user_id="u-1",
        from_status=BookingStatus.PENDING_APPROVAL,
        to_status=BookingStatus.CONFIRMED,
        slot_id="s-1",
    )
    values.update(overrides)
    return BookingEvent(**values)


async def test_publish_reaches_sync_and_async_subscribers():
    bus = BookingEventBus()
    sync_subscriber = MagicMock()
    async_subscriber = AsyncMock()
    bus.subscribe(sync_subscriber)
    bus.subscribe(async_subscriber)

    event = make_event()
    await bus.publish(event)

    sync_subscriber.assert_called_once_with(event)
    async_subscriber.assert_awaited_once_with(event)


async def test_failing_subscriber_does_not_stop_others():
    bus = BookingEventBus()
    received = []
    bus.subscribe(MagicMock(side_effect=RuntimeError("mail server down")))
    bus.subscribe(received.append)

    await bus.publish(make_event())

    assert len(received) == 1


async def test_unsubscribe():
    bus = BookingEventBus()
    subscriber = MagicMock()
    bus.subscribe(subscriber)
    bus.unsubscribe(subscriber)
    bus.unsubscribe(subscriber)

    await bus.publish(make_event())

    subscriber.assert_not_called()


def test_event_to_dict():
    data = make_event(from_status=None, slot_id=None, name="booking.pending_approval",
                      to_status=BookingStatus.PENDING_APPROVAL).to_dict()
    assert data["from_status"] is None
    assert data["to_status"] == "pending_approval"
    assert data["slot_id"] is None
    assert "occurred_at" in data
