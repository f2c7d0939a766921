from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from parking_booking.application.services.booking_service import BookingService
from parking_booking.domain.common import Role
from parking_booking.domain.events import BookingEventBus
from parking_booking.infrastructure.persistence.database import get_async_db
from parking_booking.infrastructure.persistence.unit_of_work import SQLAlchemyUnitOfWork

# Shared by every request; notification consumers subscribe here at startup.
event_bus = BookingEventBus()


@dataclass(frozen=True)
class Caller:
    user_id: str
    role: Role


async def get_booking_service(db: AsyncSession = Depends(get_async_db)) -> BookingService:
    return BookingService(SQLAlchemyUnitOfWork(db), event_bus=event_bus)


async def get_caller(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> Caller:
    """Identity established upstream by the authentication gateway."""
    if not x_user_id or not x_user_role:
        raise HTTPException(status_code=401, detail="Missing caller identity")
    try:
        role = Role(x_user_role.lower())
    except ValueError:
        raise HTTPException(status_code=403, detail=f"Unknown role {x_user_role!r}") from None
    return Caller(user_id=x_user_id, role=role)


def require_role(role: Role):
    async def dependency(caller: Caller = Depends(get_caller)) -> Caller:
        if caller.role != role:
            raise HTTPException(status_code=403, detail=f"{role.value} role required")
        return caller

    return dependency
