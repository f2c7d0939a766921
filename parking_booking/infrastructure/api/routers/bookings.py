from typing import Optional

from fastapi import APIRouter, Depends, Query

from parking_booking.application.services.booking_service import (
    BookingService,
    PaymentPreview,
    PaymentReceipt,
)
from parking_booking.domain.common import BookingStatus, Role, SlotStatus, SlotType
from parking_booking.infrastructure.api.dependencies import (
    Caller,
    get_booking_service,
    get_caller,
    require_role,
)
from parking_booking.infrastructure.api.schemas.booking import (
    ApproveRequest,
    BookingList,
    BookingRequest,
    BookingResponse,
    ParkingSlotResponse,
    PaymentDuration,
    PaymentPreviewResponse,
    PaymentReceiptResponse,
    PaymentRequest,
    RemarksRequest,
    SlotList,
)

router = APIRouter(prefix="/api/bookings", tags=["bookings"])
slots_router = APIRouter(prefix="/api/slots", tags=["slots"])

owner = require_role(Role.USER)
admin = require_role(Role.ADMIN)


def _booking(booking) -> BookingResponse:
    return BookingResponse.model_validate(booking)


def _bookings(bookings) -> BookingList:
    return BookingList(bookings=[_booking(b) for b in bookings])


def _preview(preview: PaymentPreview) -> PaymentPreviewResponse:
    breakdown = preview.breakdown
    return PaymentPreviewResponse(
        booking_id=preview.booking_id,
        check_in_time=breakdown.check_in,
        current_time=breakdown.check_out,
        duration=PaymentDuration(
            hours=breakdown.billed_hours, exact_hours=breakdown.exact_hours, minutes=breakdown.minutes
        ),
        hourly_rate=breakdown.hourly_rate,
        amount=breakdown.amount,
        currency=preview.currency,
    )


def _receipt(receipt: PaymentReceipt) -> PaymentReceiptResponse:
    return PaymentReceiptResponse(
        booking_id=receipt.booking_id,
        amount=receipt.amount,
        currency=receipt.currency,
        duration=PaymentDuration(hours=receipt.billed_hours, exact_hours=receipt.exact_hours),
        payment_method=receipt.payment_method,
        payment_date=receipt.payment_date,
        receipt=receipt.receipt_code,
    )


@router.post("/request", response_model=BookingResponse, status_code=201)
async def create_booking_request(
    request: BookingRequest,
    caller: Caller = Depends(owner),
    service: BookingService = Depends(get_booking_service),
):
    booking = await service.create_booking(caller.user_id, request.vehicle_id, request.notes)
    return _booking(booking)


@router.get("/my-bookings", response_model=BookingList)
async def list_my_bookings(
    caller: Caller = Depends(owner),
    service: BookingService = Depends(get_booking_service),
):
    return _bookings(await service.list_my_bookings(caller.user_id))


@router.put("/{booking_id}/cancel-by-user", response_model=BookingResponse)
async def cancel_booking_by_user(
    booking_id: str,
    caller: Caller = Depends(owner),
    service: BookingService = Depends(get_booking_service),
):
    return _booking(await service.cancel_by_user(booking_id, caller.user_id))


@router.get("/{booking_id}/calculate", response_model=PaymentPreviewResponse)
async def calculate_payment(
    booking_id: str,
    caller: Caller = Depends(owner),
    service: BookingService = Depends(get_booking_service),
):
    return _preview(await service.calculate_payment(booking_id, caller.user_id))


@router.post("/{booking_id}/pay", response_model=PaymentReceiptResponse)
async def pay_booking(
    booking_id: str,
    request: Optional[PaymentRequest] = None,
    caller: Caller = Depends(owner),
    service: BookingService = Depends(get_booking_service),
):
    method = request.payment_method.value if request else None
    return _receipt(await service.pay(booking_id, caller.user_id, method))


@router.get("/admin/all", response_model=BookingList)
async def list_all_bookings(
    status: Optional[BookingStatus] = None,
    caller: Caller = Depends(admin),
    service: BookingService = Depends(get_booking_service),
):
    return _bookings(await service.list_all_bookings(status))


@router.get("/admin/pending-approval", response_model=BookingList)
async def list_pending_approvals(
    caller: Caller = Depends(admin),
    service: BookingService = Depends(get_booking_service),
):
    return _bookings(await service.list_pending_approvals())


@router.put("/admin/{booking_id}/approve", response_model=BookingResponse)
async def approve_booking(
    booking_id: str,
    request: ApproveRequest,
    caller: Caller = Depends(admin),
    service: BookingService = Depends(get_booking_service),
):
    return _booking(await service.approve(booking_id, request.slot_id, request.admin_remarks))


@router.put("/admin/{booking_id}/reject", response_model=BookingResponse)
async def reject_booking(
    booking_id: str,
    request: RemarksRequest,
    caller: Caller = Depends(admin),
    service: BookingService = Depends(get_booking_service),
):
    return _booking(await service.reject(booking_id, request.admin_remarks))


@router.put("/admin/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking_by_admin(
    booking_id: str,
    request: RemarksRequest,
    caller: Caller = Depends(admin),
    service: BookingService = Depends(get_booking_service),
):
    return _booking(await service.cancel_by_admin(booking_id, request.admin_remarks))


@router.post("/admin/{booking_id}/check-in", response_model=BookingResponse)
async def check_in_booking(
    booking_id: str,
    caller: Caller = Depends(admin),
    service: BookingService = Depends(get_booking_service),
):
    return _booking(await service.check_in(booking_id))


@router.post("/admin/{booking_id}/check-out", response_model=BookingResponse)
async def check_out_booking(
    booking_id: str,
    caller: Caller = Depends(admin),
    service: BookingService = Depends(get_booking_service),
):
    return _booking(await service.check_out(booking_id))


@slots_router.get("", response_model=SlotList)
async def list_slots(
    status: Optional[SlotStatus] = None,
    slot_type: Optional[SlotType] = Query(default=None, alias="type"),
    caller: Caller = Depends(get_caller),
    service: BookingService = Depends(get_booking_service),
):
    slots = await service.list_slots(status=status, slot_type=slot_type)
    return SlotList(slots=[ParkingSlotResponse.model_validate(s) for s in slots])
