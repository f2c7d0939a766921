import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import relationship

from parking_booking.shared.custom_types import Money, UTCDateTime

Base = declarative_base()


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), nullable=False, index=True)
    license_plate = Column(String, unique=True, index=True, nullable=False)
    make = Column(String, nullable=True)
    model = Column(String, nullable=True)
    color = Column(String, nullable=True)
    vehicle_type = Column(String, nullable=False, default="car")  # car, motorcycle, van, electric_car, disabled
    created_at = Column(UTCDateTime, default=_now)

    bookings = relationship("Booking", back_populates="vehicle")


class ParkingSlot(Base):
    __tablename__ = "parking_slots"
    __table_args__ = (UniqueConstraint("row", "position", name="uq_slot_row_position"),)

    id = Column(String(36), primary_key=True, default=_uuid)
    slot_number = Column(String, unique=True, index=True, nullable=False)
    row = Column(String(1), nullable=False)
    position = Column(Integer, nullable=False)
    slot_type = Column(String, nullable=False, default="car")
    occupancy_status = Column(String, nullable=False, default="available", index=True)  # available, reserved, occupied, maintenance
    is_ev_charging_available = Column(Boolean, nullable=False, default=False)
    is_special_slot = Column(Boolean, nullable=False, default=False)
    location_description = Column(String, nullable=True)
    version = Column(Integer, nullable=False, default=0)

    bookings = relationship("Booking", back_populates="parking_slot")


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), nullable=False, index=True)
    vehicle_id = Column(String(36), ForeignKey("vehicles.id"), nullable=False)
    slot_id = Column(String(36), ForeignKey("parking_slots.id"), nullable=True, index=True)
    requested_start_time = Column(UTCDateTime, nullable=False)
    requested_end_time = Column(UTCDateTime, nullable=False)
    actual_check_in_time = Column(UTCDateTime, nullable=True)
    actual_check_out_time = Column(UTCDateTime, nullable=True)
    status = Column(String, nullable=False, default="pending_approval", index=True)
    amount = Column(Money, nullable=True)
    payment_status = Column(String, nullable=False, default="unpaid")  # unpaid, paid
    payment_method = Column(String, nullable=True)
    payment_date = Column(UTCDateTime, nullable=True)
    notes = Column(Text, nullable=True)
    admin_remarks = Column(Text, nullable=True)
    created_at = Column(UTCDateTime, default=_now, nullable=False)
    updated_at = Column(UTCDateTime, default=_now, onupdate=_now, nullable=False)

    vehicle = relationship("Vehicle", back_populates="bookings")
    parking_slot = relationship("ParkingSlot", back_populates="bookings")

