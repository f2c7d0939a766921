from typing import Optional

from loguru import logger

from parking_booking.application.repositories import AbstractParkingSlotRepository
from parking_booking.domain.common import SlotStatus, VehicleType
from parking_booking.domain.compatibility import compatible_slot_types, is_compatible
from parking_booking.domain.entities import ParkingSlot
from parking_booking.domain.exceptions import NotFoundError, SlotUnavailableError


class SlotAllocator:
    """Binds slots to bookings.

    Every status change is a single compare-and-set against the slot row, so
    two callers racing for the same slot cannot both win. Only the booking
    service calls the mutating methods, always inside its unit of work.
    """

    def __init__(self, parking_slot_repo: AbstractParkingSlotRepository):
        self.parking_slot_repo = parking_slot_repo

    async def find_compatible(self, vehicle_type: VehicleType) -> Optional[ParkingSlot]:
        return await self.parking_slot_repo.find_first_available(compatible_slot_types(vehicle_type))

    async def get_slot(self, slot_id: str) -> ParkingSlot:
        slot = await self.parking_slot_repo.get_by_id(slot_id)
        if not slot:
            raise NotFoundError(f"Parking slot {slot_id} not found", slot_id=slot_id)
        return slot

    async def reserve(self, slot_id: str) -> ParkingSlot:
        reserved = await self.parking_slot_repo.compare_and_set_status(
            slot_id, expected=[SlotStatus.AVAILABLE], new_status=SlotStatus.RESERVED
        )
        if not reserved:
            slot = await self.get_slot(slot_id)
            raise SlotUnavailableError(
                f"Parking slot {slot.slot_number} is not available",
                slot_id=slot_id,
                slot_number=slot.slot_number,
                occupancy_status=slot.occupancy_status.value,
            )

        # A slot marked available while a booking still holds it is drift; refuse to double-bind.
        holders = await self.parking_slot_repo.count_holding_bookings(slot_id)
        if holders:
            raise SlotUnavailableError(
                f"Parking slot {slot_id} is still held by another booking",
                slot_id=slot_id,
                holding_bookings=holders,
            )

        slot = await self.get_slot(slot_id)
        logger.info(f"Slot {slot.slot_number} reserved")
        return slot

    async def allocate(self, vehicle_type: VehicleType, slot_id: Optional[str] = None) -> ParkingSlot:
        """Reserve ``slot_id`` for a vehicle, or the first compatible slot when none is named."""
        if slot_id is None:
            candidate = await self.find_compatible(vehicle_type)
            if candidate is None:
                raise SlotUnavailableError(
                    f"No available slot for vehicle type {VehicleType(vehicle_type).value}",
                    vehicle_type=VehicleType(vehicle_type).value,
                )
            slot_id = candidate.id
        else:
            candidate = await self.get_slot(slot_id)
            if not is_compatible(vehicle_type, candidate.slot_type):
                raise SlotUnavailableError(
                    f"Parking slot {candidate.slot_number} ({candidate.slot_type.value}) "
                    f"does not accept vehicle type {VehicleType(vehicle_type).value}",
                    slot_id=slot_id,
                    slot_number=candidate.slot_number,
                    slot_type=candidate.slot_type.value,
                    vehicle_type=VehicleType(vehicle_type).value,
                )
        return await self.reserve(slot_id)

    async def mark_occupied(self, slot_id: str) -> ParkingSlot:
        occupied = await self.parking_slot_repo.compare_and_set_status(
            slot_id, expected=[SlotStatus.RESERVED], new_status=SlotStatus.OCCUPIED
        )
        slot = await self.get_slot(slot_id)
        if not occupied:
            raise SlotUnavailableError(
                f"Parking slot {slot.slot_number} is {slot.occupancy_status.value}, expected reserved",
                slot_id=slot_id,
                slot_number=slot.slot_number,
                occupancy_status=slot.occupancy_status.value,
            )
        logger.info(f"Slot {slot.slot_number} occupied")
        return slot

    async def release(self, slot_id: str) -> ParkingSlot:
        """Return a slot to ``available``. Releasing a free slot is a no-op.

        Slots under maintenance stay under maintenance.
        """
        released = await self.parking_slot_repo.compare_and_set_status(
            slot_id, expected=[SlotStatus.RESERVED, SlotStatus.OCCUPIED], new_status=SlotStatus.AVAILABLE
        )
        slot = await self.get_slot(slot_id)
        if released:
            logger.info(f"Slot {slot.slot_number} released")
        elif slot.occupancy_status == SlotStatus.MAINTENANCE:
            logger.warning(f"Slot {slot.slot_number} left in maintenance on release")
        return slot
