# parking_booking/shared/custom_types.py
import datetime
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import DateTime, Numeric, TypeDecorator
from sqlalchemy.dialects.sqlite import DATETIME as SQLITE_DATETIME

CENT = Decimal("0.01")


class UTCDateTime(TypeDecorator):
    """A custom SQLAlchemy type to store timezone-aware datetime objects in UTC.

    SQLite has no timezone support, so values are written there as naive UTC
    and re-tagged with ``timezone.utc`` on the way out.
    """
    impl = DateTime
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'sqlite':
            return dialect.type_descriptor(SQLITE_DATETIME())
        else:
            return dialect.type_descriptor(DateTime(timezone=True))

    def process_bind_param(self, value: datetime.datetime | None, dialect) -> datetime.datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            # Assume naive datetime is in local timezone and convert to UTC
            value = value.astimezone(datetime.timezone.utc)
        return value.astimezone(datetime.timezone.utc).replace(tzinfo=None)

    def process_result_value(self, value: datetime.datetime | None, dialect) -> datetime.datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=datetime.timezone.utc)
        return value.astimezone(datetime.timezone.utc)


def quantize_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


class Money(TypeDecorator):
    """Two-decimal amounts, always handed back to Python as ``Decimal``."""
    impl = Numeric(10, 2)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return quantize_money(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return quantize_money(value)
