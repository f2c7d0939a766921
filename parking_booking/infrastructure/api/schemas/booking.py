from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from parking_booking.domain.common import (
    BookingStatus,
    PaymentMethod,
    PaymentStatus,
    SlotStatus,
    SlotType,
    VehicleType,
)


def _aware(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return dt
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


class BookingRequest(BaseModel):
    vehicle_id: str = Field(..., min_length=1, max_length=36)
    notes: Optional[str] = Field(default=None, max_length=1000)


class ApproveRequest(BaseModel):
    slot_id: Optional[str] = Field(default=None, max_length=36)
    admin_remarks: Optional[str] = Field(default=None, max_length=1000)


class RemarksRequest(BaseModel):
    admin_remarks: str = Field(..., max_length=1000)

    @field_validator('admin_remarks')
    def validate_admin_remarks(cls, v):  # pylint: disable=no-self-argument
        v = v.strip()
        if not v:
            raise ValueError("Admin remarks are required")
        return v


class PaymentRequest(BaseModel):
    payment_method: PaymentMethod = PaymentMethod.CASH


class ParkingSlotResponse(BaseModel):
    id: str
    slot_number: str
    row: str
    position: int
    slot_type: SlotType
    occupancy_status: SlotStatus
    is_ev_charging_available: bool
    is_special_slot: bool
    location_description: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class VehicleSummary(BaseModel):
    id: str
    license_plate: str
    make: Optional[str] = None
    model: Optional[str] = None
    vehicle_type: VehicleType

    model_config = ConfigDict(from_attributes=True)


class SlotSummary(BaseModel):
    id: str
    slot_number: str
    slot_type: SlotType
    location_description: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class BookingResponse(BaseModel):
    id: str
    user_id: str
    vehicle_id: str
    slot_id: Optional[str] = None
    status: BookingStatus
    requested_start_time: datetime
    requested_end_time: datetime
    actual_check_in_time: Optional[datetime] = None
    actual_check_out_time: Optional[datetime] = None
    amount: Optional[Decimal] = None
    payment_status: PaymentStatus
    payment_method: Optional[str] = None
    payment_date: Optional[datetime] = None
    notes: Optional[str] = None
    admin_remarks: Optional[str] = None
    created_at: Optional[datetime] = None
    vehicle: Optional[VehicleSummary] = None
    parking_slot: Optional[SlotSummary] = None

    @field_validator(
        'requested_start_time', 'requested_end_time', 'actual_check_in_time',
        'actual_check_out_time', 'payment_date', 'created_at',
    )
    @classmethod
    def make_datetime_aware(cls, dt: Optional[datetime]) -> Optional[datetime]:
        return _aware(dt)

    model_config = ConfigDict(from_attributes=True)


class PaymentDuration(BaseModel):
    hours: int
    exact_hours: Decimal
    minutes: Optional[int] = None


class PaymentPreviewResponse(BaseModel):
    booking_id: str
    check_in_time: datetime
    current_time: datetime
    duration: PaymentDuration
    hourly_rate: Decimal
    amount: Decimal
    currency: str


class PaymentReceiptResponse(BaseModel):
    booking_id: str
    amount: Decimal
    currency: str
    duration: PaymentDuration
    payment_method: PaymentMethod
    payment_date: datetime
    receipt: str


class BookingList(BaseModel):
    bookings: List[BookingResponse]


class SlotList(BaseModel):
    slots: List[ParkingSlotResponse]
