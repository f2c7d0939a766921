from datetime import datetime
from decimal import Decimal
from typing import Optional

from parking_booking.domain.common import (
    BookingStatus,
    PaymentStatus,
    SlotStatus,
    SlotType,
    VehicleType,
)
from parking_booking.domain.state_machine import TERMINAL_STATUSES


class Vehicle:
    def __init__(
        self,
        user_id: str,
        license_plate: str,
        vehicle_type: VehicleType = VehicleType.CAR,
        make: Optional[str] = None,
        model: Optional[str] = None,
        color: Optional[str] = None,
        id: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ):
        self.id = id
        self.user_id = user_id
        self.license_plate = license_plate
        self.vehicle_type = vehicle_type
        self.make = make
        self.model = model
        self.color = color
        self.created_at = created_at

    @property
    def display_name(self) -> str:
        name = " ".join(part for part in (self.make, self.model) if part)
        return f"{name} ({self.license_plate})" if name else self.license_plate


class ParkingSlot:
    def __init__(
        self,
        slot_number: str,
        row: str,
        position: int,
        slot_type: SlotType = SlotType.CAR,
        occupancy_status: SlotStatus = SlotStatus.AVAILABLE,
        is_ev_charging_available: bool = False,
        is_special_slot: bool = False,
        location_description: Optional[str] = None,
        version: int = 0,
        id: Optional[str] = None,
    ):
        self.id = id
        self.slot_number = slot_number
        self.row = row
        self.position = position
        self.slot_type = slot_type
        self.occupancy_status = occupancy_status
        self.is_ev_charging_available = is_ev_charging_available
        self.is_special_slot = is_special_slot
        self.location_description = location_description
        self.version = version

    @property
    def is_available(self) -> bool:
        return self.occupancy_status == SlotStatus.AVAILABLE


class Booking:
    def __init__(
        self,
        user_id: str,
        vehicle_id: str,
        requested_start_time: datetime,
        requested_end_time: datetime,
        status: BookingStatus = BookingStatus.PENDING_APPROVAL,
        id: Optional[str] = None,
        slot_id: Optional[str] = None,
        actual_check_in_time: Optional[datetime] = None,
        actual_check_out_time: Optional[datetime] = None,
        amount: Optional[Decimal] = None,
        payment_status: PaymentStatus = PaymentStatus.UNPAID,
        payment_method: Optional[str] = None,
        payment_date: Optional[datetime] = None,
        notes: Optional[str] = None,
        admin_remarks: Optional[str] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
        vehicle: Optional[Vehicle] = None,
        parking_slot: Optional[ParkingSlot] = None,
    ):
        self.id = id
        self.user_id = user_id
        self.vehicle_id = vehicle_id
        self.slot_id = slot_id
        self.requested_start_time = requested_start_time
        self.requested_end_time = requested_end_time
        self.actual_check_in_time = actual_check_in_time
        self.actual_check_out_time = actual_check_out_time
        self.status = status
        self.amount = amount
        self.payment_status = payment_status
        self.payment_method = payment_method
        self.payment_date = payment_date
        self.notes = notes
        self.admin_remarks = admin_remarks
        self.created_at = created_at
        self.updated_at = updated_at
        # Loaded only by listing queries.
        self.vehicle = vehicle
        self.parking_slot = parking_slot

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def is_owned_by(self, user_id: str) -> bool:
        return self.user_id == user_id
