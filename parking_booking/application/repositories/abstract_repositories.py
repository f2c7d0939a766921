from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Optional

from parking_booking.domain.common import BookingStatus, SlotStatus, SlotType
from parking_booking.domain.entities import Booking, ParkingSlot, Vehicle


class AbstractVehicleRepository(ABC):
    @abstractmethod
    async def get_by_id(self, vehicle_id: str) -> Optional[Vehicle]:
        pass


class AbstractParkingSlotRepository(ABC):
    @abstractmethod
    async def get_by_id(self, slot_id: str) -> Optional[ParkingSlot]:
        pass

    @abstractmethod
    async def get_all(self, status: Optional[SlotStatus] = None, slot_type: Optional[SlotType] = None) -> List[ParkingSlot]:
        pass

    @abstractmethod
    async def find_first_available(self, slot_types: Iterable[SlotType]) -> Optional[ParkingSlot]:
        pass

    @abstractmethod
    async def compare_and_set_status(
        self, slot_id: str, expected: Iterable[SlotStatus], new_status: SlotStatus
    ) -> bool:
        """Move the slot to ``new_status`` only if it currently has one of ``expected``.

        Returns whether the row was changed. Check and write happen in one statement.
        """

    @abstractmethod
    async def count_holding_bookings(self, slot_id: str) -> int:
        pass


class AbstractBookingRepository(ABC):
    @abstractmethod
    async def add(self, booking: Booking) -> Booking:
        pass

    @abstractmethod
    async def get_by_id(self, booking_id: str) -> Optional[Booking]:
        pass

    @abstractmethod
    async def get_by_user(self, user_id: str) -> List[Booking]:
        pass

    @abstractmethod
    async def get_by_status(self, status: BookingStatus) -> List[Booking]:
        pass

    @abstractmethod
    async def get_all(self, status: Optional[BookingStatus] = None) -> List[Booking]:
        pass

    @abstractmethod
    async def compare_and_set_status(
        self, booking_id: str, expected: BookingStatus, new_status: BookingStatus, **changes: Any
    ) -> bool:
        """Apply ``new_status`` and ``changes`` only if the booking is still in ``expected``."""


class AbstractUnitOfWork(ABC):
    """One atomic logical operation over the vehicle, slot and booking stores.

    Used as ``async with uow:``; leaving the block normally commits, leaving
    it with an exception rolls every change back.
    """

    vehicles: AbstractVehicleRepository
    slots: AbstractParkingSlotRepository
    bookings: AbstractBookingRepository

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            await self.rollback()
        else:
            await self.commit()

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass
