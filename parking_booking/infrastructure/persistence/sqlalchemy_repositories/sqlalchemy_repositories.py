from enum import Enum
from typing import Any, Iterable, List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from parking_booking.application.repositories import (
    AbstractBookingRepository,
    AbstractParkingSlotRepository,
    AbstractVehicleRepository,
)
from parking_booking.domain.common import BookingStatus, PaymentStatus, SlotStatus, SlotType, VehicleType
from parking_booking.domain.entities import Booking, ParkingSlot, Vehicle
from parking_booking.domain.state_machine import SLOT_HOLDING_STATUSES
from parking_booking.infrastructure.persistence.models.models import (
    Booking as ORMBooking,
    ParkingSlot as ORMParkingSlot,
    Vehicle as ORMVehicle,
)


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _to_vehicle(orm_vehicle: ORMVehicle) -> Vehicle:
    return Vehicle(
        id=orm_vehicle.id,
        user_id=orm_vehicle.user_id,
        license_plate=orm_vehicle.license_plate,
        vehicle_type=VehicleType(orm_vehicle.vehicle_type),
        make=orm_vehicle.make,
        model=orm_vehicle.model,
        color=orm_vehicle.color,
        created_at=orm_vehicle.created_at,
    )


def _to_slot(orm_slot: ORMParkingSlot) -> ParkingSlot:
    return ParkingSlot(
        id=orm_slot.id,
        slot_number=orm_slot.slot_number,
        row=orm_slot.row,
        position=orm_slot.position,
        slot_type=SlotType(orm_slot.slot_type),
        occupancy_status=SlotStatus(orm_slot.occupancy_status),
        is_ev_charging_available=orm_slot.is_ev_charging_available,
        is_special_slot=orm_slot.is_special_slot,
        location_description=orm_slot.location_description,
        version=orm_slot.version,
    )


def _to_booking(orm_booking: ORMBooking, with_relations: bool = False) -> Booking:
    booking = Booking(
        id=orm_booking.id,
        user_id=orm_booking.user_id,
        vehicle_id=orm_booking.vehicle_id,
        slot_id=orm_booking.slot_id,
        requested_start_time=orm_booking.requested_start_time,
        requested_end_time=orm_booking.requested_end_time,
        actual_check_in_time=orm_booking.actual_check_in_time,
        actual_check_out_time=orm_booking.actual_check_out_time,
        status=BookingStatus(orm_booking.status),
        amount=orm_booking.amount,
        payment_status=PaymentStatus(orm_booking.payment_status),
        payment_method=orm_booking.payment_method,
        payment_date=orm_booking.payment_date,
        notes=orm_booking.notes,
        admin_remarks=orm_booking.admin_remarks,
        created_at=orm_booking.created_at,
        updated_at=orm_booking.updated_at,
    )
    if with_relations:
        booking.vehicle = _to_vehicle(orm_booking.vehicle) if orm_booking.vehicle else None
        booking.parking_slot = _to_slot(orm_booking.parking_slot) if orm_booking.parking_slot else None
    return booking


class SQLAlchemyVehicleRepository(AbstractVehicleRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, vehicle_id: str) -> Optional[Vehicle]:
        result = await self.session.execute(
            select(ORMVehicle).where(ORMVehicle.id == vehicle_id)
        )
        orm_vehicle = result.scalars().first()
        if orm_vehicle:
            return _to_vehicle(orm_vehicle)
        return None


class SQLAlchemyParkingSlotRepository(AbstractParkingSlotRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, slot_id: str) -> Optional[ParkingSlot]:
        result = await self.session.execute(
            select(ORMParkingSlot)
            .where(ORMParkingSlot.id == slot_id)
            .execution_options(populate_existing=True)
        )
        orm_slot = result.scalars().first()
        if orm_slot:
            return _to_slot(orm_slot)
        return None

    async def get_all(self, status: Optional[SlotStatus] = None, slot_type: Optional[SlotType] = None) -> List[ParkingSlot]:
        query = select(ORMParkingSlot)
        if status is not None:
            query = query.where(ORMParkingSlot.occupancy_status == _plain(status))
        if slot_type is not None:
            query = query.where(ORMParkingSlot.slot_type == _plain(slot_type))
        query = query.order_by(ORMParkingSlot.row, ORMParkingSlot.position).execution_options(populate_existing=True)

        result = await self.session.execute(query)
        return [_to_slot(s) for s in result.scalars().all()]

    async def find_first_available(self, slot_types: Iterable[SlotType]) -> Optional[ParkingSlot]:
        slot_query = (
            select(ORMParkingSlot)
            .where(
                ORMParkingSlot.occupancy_status == SlotStatus.AVAILABLE.value,
                ORMParkingSlot.slot_type.in_([_plain(t) for t in slot_types]),
            )
            .order_by(ORMParkingSlot.row, ORMParkingSlot.position)
            .limit(1)
            .execution_options(populate_existing=True)
        )

        result = await self.session.execute(slot_query)
        orm_slot = result.scalars().first()
        if orm_slot:
            return _to_slot(orm_slot)
        return None

    async def compare_and_set_status(
        self, slot_id: str, expected: Iterable[SlotStatus], new_status: SlotStatus
    ) -> bool:
        result = await self.session.execute(
            update(ORMParkingSlot)
            .where(
                ORMParkingSlot.id == slot_id,
                ORMParkingSlot.occupancy_status.in_([_plain(s) for s in expected]),
            )
            .values(occupancy_status=_plain(new_status), version=ORMParkingSlot.version + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def count_holding_bookings(self, slot_id: str) -> int:
        result = await self.session.execute(
            select(func.count(ORMBooking.id)).where(
                ORMBooking.slot_id == slot_id,
                ORMBooking.status.in_([s.value for s in SLOT_HOLDING_STATUSES]),
            )
        )
        return result.scalar() or 0


# Listings carry the vehicle and slot so callers can tell bookings apart.
_BOOKING_SUMMARIES = (selectinload(ORMBooking.vehicle), selectinload(ORMBooking.parking_slot))


class SQLAlchemyBookingRepository(AbstractBookingRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, booking: Booking) -> Booking:
        orm_booking = ORMBooking(
            id=booking.id,
            user_id=booking.user_id,
            vehicle_id=booking.vehicle_id,
            slot_id=booking.slot_id,
            requested_start_time=booking.requested_start_time,
            requested_end_time=booking.requested_end_time,
            status=_plain(booking.status),
            payment_status=_plain(booking.payment_status),
            notes=booking.notes,
        )
        self.session.add(orm_booking)
        await self.session.flush()
        await self.session.refresh(orm_booking)
        return _to_booking(orm_booking)

    async def get_by_id(self, booking_id: str) -> Optional[Booking]:
        result = await self.session.execute(
            select(ORMBooking)
            .where(ORMBooking.id == booking_id)
            .execution_options(populate_existing=True)
        )
        orm_booking = result.scalars().first()
        if orm_booking:
            return _to_booking(orm_booking)
        return None

    async def get_by_user(self, user_id: str) -> List[Booking]:
        result = await self.session.execute(
            select(ORMBooking)
            .options(*_BOOKING_SUMMARIES)
            .where(ORMBooking.user_id == user_id)
            .order_by(ORMBooking.created_at.desc())
            .execution_options(populate_existing=True)
        )
        return [_to_booking(b, with_relations=True) for b in result.scalars().all()]

    async def get_by_status(self, status: BookingStatus) -> List[Booking]:
        result = await self.session.execute(
            select(ORMBooking)
            .options(*_BOOKING_SUMMARIES)
            .where(ORMBooking.status == _plain(status))
            .order_by(ORMBooking.created_at.asc())
            .execution_options(populate_existing=True)
        )
        return [_to_booking(b, with_relations=True) for b in result.scalars().all()]

    async def get_all(self, status: Optional[BookingStatus] = None) -> List[Booking]:
        query = select(ORMBooking).options(*_BOOKING_SUMMARIES)
        if status is not None:
            query = query.where(ORMBooking.status == _plain(status))
        query = query.order_by(ORMBooking.created_at.desc()).execution_options(populate_existing=True)

        result = await self.session.execute(query)
        return [_to_booking(b, with_relations=True) for b in result.scalars().all()]

    async def compare_and_set_status(
        self, booking_id: str, expected: BookingStatus, new_status: BookingStatus, **changes: Any
    ) -> bool:
        values = {key: _plain(value) for key, value in changes.items()}
        values["status"] = _plain(new_status)
        result = await self.session.execute(
            update(ORMBooking)
            .where(ORMBooking.id == booking_id, ORMBooking.status == _plain(expected))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
