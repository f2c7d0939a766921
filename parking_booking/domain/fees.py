"""Time-based parking fees.

Durations are billed in whole hours: partial hours round up and every stay
is billed at least one hour, so a zero-length stay costs one hourly rate.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP

from parking_booking.domain.exceptions import ValidationError
from parking_booking.shared.custom_types import quantize_money

ONE_HOUR = timedelta(hours=1)


@dataclass(frozen=True)
class FeeBreakdown:
    check_in: datetime
    check_out: datetime
    billed_hours: int
    exact_hours: Decimal
    minutes: int
    hourly_rate: Decimal
    amount: Decimal


def billed_hours(check_in: datetime, check_out: datetime) -> int:
    duration = check_out - check_in
    if duration < timedelta(0):
        raise ValidationError(
            "Check-out time precedes check-in time",
            field="check_out",
            check_in=check_in.isoformat(),
            check_out=check_out.isoformat(),
        )
    whole_hours, remainder = divmod(duration, ONE_HOUR)
    if remainder:
        whole_hours += 1
    return max(1, whole_hours)


def compute_fee(check_in: datetime, check_out: datetime, hourly_rate: Decimal) -> Decimal:
    hourly_rate = quantize_money(hourly_rate)
    if hourly_rate < 0:
        raise ValidationError("Hourly rate cannot be negative", field="hourly_rate")
    return quantize_money(billed_hours(check_in, check_out) * hourly_rate)


def fee_breakdown(check_in: datetime, check_out: datetime, hourly_rate: Decimal) -> FeeBreakdown:
    amount = compute_fee(check_in, check_out, hourly_rate)
    duration = check_out - check_in
    exact_hours = (Decimal(duration.total_seconds()) / Decimal(3600)).quantize(
        Decimal("0.01"), rounding=ROUND_HALF_UP
    )
    return FeeBreakdown(
        check_in=check_in,
        check_out=check_out,
        billed_hours=billed_hours(check_in, check_out),
        exact_hours=exact_hours,
        minutes=int(duration // timedelta(minutes=1)),
        hourly_rate=quantize_money(hourly_rate),
        amount=amount,
    )
