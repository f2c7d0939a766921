from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional

from loguru import logger

from parking_booking.application.repositories import AbstractUnitOfWork
from parking_booking.application.services.slot_allocator import SlotAllocator
from parking_booking.config.settings_env import settings
from parking_booking.domain.common import (
    BookingStatus,
    PaymentMethod,
    PaymentStatus,
    SlotStatus,
    SlotType,
)
from parking_booking.domain.entities import Booking, ParkingSlot
from parking_booking.domain.events import BookingEvent, BookingEventBus
from parking_booking.domain.exceptions import (
    ForbiddenError,
    InternalError,
    InvalidStateError,
    NotFoundError,
    SlotUnavailableError,
    ValidationError,
)
from parking_booking.domain.fees import FeeBreakdown, fee_breakdown
from parking_booking.domain.state_machine import (
    SLOT_BOUND_STATUSES,
    assert_transition,
    expected_slot_status,
)
from parking_booking.shared.utils import ensure_aware, utc_now

DEFAULT_APPROVAL_REMARKS = "Approved by admin"


@dataclass(frozen=True)
class PaymentReceipt:
    booking_id: str
    amount: Decimal
    currency: str
    billed_hours: int
    exact_hours: Decimal
    payment_method: str
    payment_date: datetime
    receipt_code: str


@dataclass(frozen=True)
class PaymentPreview:
    booking_id: str
    breakdown: FeeBreakdown
    currency: str


def receipt_code(booking_id: str) -> str:
    return "RCPT-" + booking_id.replace("-", "")[:8].upper()


class BookingService:
    """Booking lifecycle from request to a terminal state.

    Each public operation is one unit of work: the booking row and any slot
    row it touches are changed together or not at all. Status changes are
    compare-and-set on the expected current status, so of two concurrent
    callers acting on the same booking only one succeeds.
    """

    def __init__(
        self,
        uow: AbstractUnitOfWork,
        event_bus: Optional[BookingEventBus] = None,
        hourly_rate: Optional[Decimal] = None,
        currency: Optional[str] = None,
        lead_time: Optional[timedelta] = None,
        default_duration: Optional[timedelta] = None,
        default_payment_method: Optional[str] = None,
    ):
        self.uow = uow
        self.allocator = SlotAllocator(uow.slots)
        self.event_bus = event_bus or BookingEventBus()
        self.hourly_rate = Decimal(str(hourly_rate if hourly_rate is not None else settings.HOURLY_RATE))
        self.currency = currency or settings.CURRENCY
        self.lead_time = lead_time if lead_time is not None else timedelta(minutes=settings.BOOKING_LEAD_TIME_MINUTES)
        self.default_duration = default_duration or timedelta(minutes=settings.BOOKING_DEFAULT_DURATION_MINUTES)
        self.default_payment_method = default_payment_method or settings.DEFAULT_PAYMENT_METHOD

    async def list_my_bookings(self, user_id: str) -> List[Booking]:
        return await self.uow.bookings.get_by_user(user_id)

    async def list_pending_approvals(self) -> List[Booking]:
        return await self.uow.bookings.get_by_status(BookingStatus.PENDING_APPROVAL)

    async def list_all_bookings(self, status: Optional[BookingStatus] = None) -> List[Booking]:
        return await self.uow.bookings.get_all(status)

    async def list_slots(
        self, status: Optional[SlotStatus] = None, slot_type: Optional[SlotType] = None
    ) -> List[ParkingSlot]:
        return await self.uow.slots.get_all(status=status, slot_type=slot_type)

    async def get_booking(self, booking_id: str, user_id: Optional[str] = None) -> Booking:
        booking = await self._load(booking_id)
        if user_id is not None:
            self._check_owner(booking, user_id)
        return booking

    async def create_booking(self, user_id: str, vehicle_id: str, notes: Optional[str] = None) -> Booking:
        now = utc_now()
        async with self.uow:
            vehicle = await self.uow.vehicles.get_by_id(vehicle_id)
            if not vehicle:
                raise NotFoundError(f"Vehicle {vehicle_id} not found", vehicle_id=vehicle_id)
            if vehicle.user_id != user_id:
                raise ForbiddenError(
                    f"Vehicle {vehicle_id} does not belong to user {user_id}",
                    vehicle_id=vehicle_id,
                    user_id=user_id,
                )

            start = now + self.lead_time
            booking = await self.uow.bookings.add(Booking(
                user_id=user_id,
                vehicle_id=vehicle_id,
                requested_start_time=start,
                requested_end_time=start + self.default_duration,
                notes=notes,
            ))

        logger.info(f"Booking {booking.id} requested by user {user_id} for {vehicle.display_name}")
        await self._publish(booking, None)
        return booking

    async def cancel_by_user(self, booking_id: str, user_id: str) -> Booking:
        async with self.uow:
            booking = await self._load(booking_id)
            self._check_owner(booking, user_id)
            previous = booking.status
            cancelled = await self._cancel(booking, BookingStatus.CANCELLED_BY_USER)
        await self._publish(cancelled, previous)
        return cancelled

    async def calculate_payment(self, booking_id: str, user_id: str) -> PaymentPreview:
        """Fee the booking would owe if paid right now. Nothing is persisted."""
        booking = await self._load(booking_id)
        self._check_owner(booking, user_id)
        self._require_status(booking, BookingStatus.ACTIVE_PARKING)
        breakdown = fee_breakdown(ensure_aware(booking.actual_check_in_time), utc_now(), self.hourly_rate)
        return PaymentPreview(booking_id=booking.id, breakdown=breakdown, currency=self.currency)

    async def pay(self, booking_id: str, user_id: str, payment_method: Optional[str] = None) -> PaymentReceipt:
        method = self._payment_method(payment_method)
        now = utc_now()
        async with self.uow:
            booking = await self._load(booking_id)
            self._check_owner(booking, user_id)
            assert_transition(booking.status, BookingStatus.PAID, booking.id)

            breakdown = fee_breakdown(ensure_aware(booking.actual_check_in_time), now, self.hourly_rate)
            await self._transition(
                booking,
                BookingStatus.PAID,
                actual_check_out_time=now,
                amount=breakdown.amount,
                payment_status=PaymentStatus.PAID,
                payment_method=method.value,
                payment_date=now,
            )
            await self.allocator.release(booking.slot_id)
            paid = await self._verified(booking.id)

        logger.info(f"Booking {booking.id} paid {breakdown.amount} {self.currency} by {method.value}")
        await self._publish(paid, BookingStatus.ACTIVE_PARKING)
        return PaymentReceipt(
            booking_id=paid.id,
            amount=breakdown.amount,
            currency=self.currency,
            billed_hours=breakdown.billed_hours,
            exact_hours=breakdown.exact_hours,
            payment_method=method.value,
            payment_date=now,
            receipt_code=receipt_code(paid.id),
        )

    async def approve(
        self, booking_id: str, slot_id: Optional[str] = None, admin_remarks: Optional[str] = None
    ) -> Booking:
        async with self.uow:
            booking = await self._load(booking_id)
            assert_transition(booking.status, BookingStatus.CONFIRMED, booking.id)
            vehicle = await self.uow.vehicles.get_by_id(booking.vehicle_id)
            if not vehicle:
                raise NotFoundError(f"Vehicle {booking.vehicle_id} not found", vehicle_id=booking.vehicle_id)

            slot = await self.allocator.allocate(vehicle.vehicle_type, slot_id)
            await self._transition(
                booking,
                BookingStatus.CONFIRMED,
                slot_id=slot.id,
                admin_remarks=(admin_remarks or "").strip() or DEFAULT_APPROVAL_REMARKS,
            )
            confirmed = await self._verified(booking.id)

        logger.info(f"Booking {booking.id} confirmed on slot {slot.slot_number}")
        await self._publish(confirmed, BookingStatus.PENDING_APPROVAL)
        return confirmed

    async def reject(self, booking_id: str, admin_remarks: Optional[str]) -> Booking:
        remarks = self._require_remarks(admin_remarks, "rejecting")
        async with self.uow:
            booking = await self._load(booking_id)
            assert_transition(booking.status, BookingStatus.REJECTED, booking.id)
            await self._transition(booking, BookingStatus.REJECTED, admin_remarks=remarks)
            rejected = await self._verified(booking.id)

        logger.info(f"Booking {booking.id} rejected: {remarks}")
        await self._publish(rejected, BookingStatus.PENDING_APPROVAL)
        return rejected

    async def cancel_by_admin(self, booking_id: str, admin_remarks: Optional[str]) -> Booking:
        remarks = self._require_remarks(admin_remarks, "cancelling")
        async with self.uow:
            booking = await self._load(booking_id)
            previous = booking.status
            cancelled = await self._cancel(booking, BookingStatus.CANCELLED_BY_ADMIN, admin_remarks=remarks)
        await self._publish(cancelled, previous)
        return cancelled

    async def check_in(self, booking_id: str) -> Booking:
        now = utc_now()
        async with self.uow:
            booking = await self._load(booking_id)
            assert_transition(booking.status, BookingStatus.ACTIVE_PARKING, booking.id)
            if not booking.slot_id:
                raise InvalidStateError(f"Booking {booking.id} has no parking slot assigned", booking_id=booking.id)

            await self._transition(booking, BookingStatus.ACTIVE_PARKING, actual_check_in_time=now)
            try:
                slot = await self.allocator.mark_occupied(booking.slot_id)
            except SlotUnavailableError as e:
                raise InvalidStateError(
                    f"Booking {booking.id} cannot check in: {e.message}", booking_id=booking.id, **e.detail
                ) from e
            active = await self._verified(booking.id)

        logger.info(f"Booking {booking.id} checked in at slot {slot.slot_number}")
        await self._publish(active, BookingStatus.CONFIRMED)
        return active

    async def check_out(self, booking_id: str) -> Booking:
        now = utc_now()
        async with self.uow:
            booking = await self._load(booking_id)
            assert_transition(booking.status, BookingStatus.COMPLETED, booking.id)

            await self._transition(booking, BookingStatus.COMPLETED, actual_check_out_time=now)
            slot = await self.allocator.release(booking.slot_id)
            completed = await self._verified(booking.id)

        logger.info(f"Booking {booking.id} checked out from slot {slot.slot_number}")
        await self._publish(completed, BookingStatus.ACTIVE_PARKING)
        return completed

    async def _load(self, booking_id: str) -> Booking:
        booking = await self.uow.bookings.get_by_id(booking_id)
        if not booking:
            raise NotFoundError(f"Booking {booking_id} not found", booking_id=booking_id)
        return booking

    @staticmethod
    def _check_owner(booking: Booking, user_id: str) -> None:
        if not booking.is_owned_by(user_id):
            raise ForbiddenError(
                f"Booking {booking.id} does not belong to user {user_id}",
                booking_id=booking.id,
                user_id=user_id,
            )

    @staticmethod
    def _require_status(booking: Booking, status: BookingStatus) -> None:
        if booking.status != status:
            raise InvalidStateError(
                f"Booking {booking.id} is {booking.status.value}, expected {status.value}",
                booking_id=booking.id,
                status=booking.status.value,
                expected=status.value,
            )

    @staticmethod
    def _require_remarks(admin_remarks: Optional[str], action: str) -> str:
        remarks = (admin_remarks or "").strip()
        if not remarks:
            raise ValidationError(f"Admin remarks are required when {action} a booking", field="admin_remarks")
        return remarks

    def _payment_method(self, payment_method: Optional[str]) -> PaymentMethod:
        value = payment_method or self.default_payment_method
        try:
            return PaymentMethod(value)
        except ValueError:
            raise ValidationError(
                f"Unsupported payment method {value!r}",
                field="payment_method",
                allowed=[m.value for m in PaymentMethod],
            ) from None

    async def _transition(self, booking: Booking, target: BookingStatus, **changes) -> None:
        changed = await self.uow.bookings.compare_and_set_status(booking.id, booking.status, target, **changes)
        if not changed:
            current = await self._load(booking.id)
            raise InvalidStateError(
                f"Booking {booking.id} changed concurrently, now {current.status.value}",
                booking_id=booking.id,
                status=current.status.value,
                requested=target.value,
            )

    async def _cancel(self, booking: Booking, target: BookingStatus, **changes) -> Booking:
        assert_transition(booking.status, target, booking.id)
        # Cancelled bookings give their slot back and keep no reference to it.
        await self._transition(booking, target, slot_id=None, **changes)
        if booking.slot_id:
            await self.allocator.release(booking.slot_id)
        cancelled = await self._verified(booking.id)
        logger.info(f"Booking {booking.id} {target.value} (was {booking.status.value})")
        return cancelled

    async def _verified(self, booking_id: str) -> Booking:
        """Re-read a booking after a transition and check it against its slot."""
        booking = await self._load(booking_id)
        if booking.status in SLOT_BOUND_STATUSES and not booking.slot_id:
            logger.error(f"Booking {booking.id} is {booking.status.value} without a slot")
            raise InternalError()

        expected = expected_slot_status(booking.status)
        if expected is not None:
            slot = await self.allocator.get_slot(booking.slot_id)
            holders = await self.uow.slots.count_holding_bookings(slot.id)
            if slot.occupancy_status != expected or holders != 1:
                logger.error(
                    f"Slot {slot.slot_number} is {slot.occupancy_status.value} with {holders} holders "
                    f"while booking {booking.id} is {booking.status.value}"
                )
                raise InternalError()
        return booking

    async def _publish(self, booking: Booking, previous: Optional[BookingStatus]) -> None:
        await self.event_bus.publish(BookingEvent(
            name=f"booking.{booking.status.value}",
            booking_id=booking.id,
            user_id=booking.user_id,
            from_status=previous,
            to_status=booking.status,
            slot_id=booking.slot_id,
        ))
