from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from parking_booking.application.repositories import AbstractUnitOfWork
from parking_booking.domain.exceptions import InternalError
from parking_booking.infrastructure.persistence.sqlalchemy_repositories import (
    SQLAlchemyBookingRepository,
    SQLAlchemyParkingSlotRepository,
    SQLAlchemyVehicleRepository,
)
from parking_booking.shared.utils import logger


class SQLAlchemyUnitOfWork(AbstractUnitOfWork):
    """Unit of work over a single ``AsyncSession``.

    The session is owned by the caller (a request dependency or a test
    fixture); this class only decides when its transaction ends.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.vehicles = SQLAlchemyVehicleRepository(session)
        self.slots = SQLAlchemyParkingSlotRepository(session)
        self.bookings = SQLAlchemyBookingRepository(session)

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            await self.commit()
            return
        await self.rollback()
        if isinstance(exc_val, SQLAlchemyError):
            logger.error(f"Storage failure, transaction rolled back: {exc_val}")
            raise InternalError() from exc_val

    async def commit(self):
        try:
            await self.session.commit()
            logger.trace("Transaction committed")
        except SQLAlchemyError as e:
            logger.error(f"Error committing transaction: {e}")
            await self.session.rollback()
            raise InternalError() from e

    async def rollback(self):
        await self.session.rollback()
        logger.trace("Transaction rolled back")
