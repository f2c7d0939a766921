import pytest
from sqlalchemy import update

from parking_booking.application.services.slot_allocator import SlotAllocator
from parking_booking.domain.common import SlotStatus, SlotType, VehicleType
from parking_booking.domain.exceptions import NotFoundError, SlotUnavailableError
from parking_booking.infrastructure.persistence.models.models import ParkingSlot as ORMParkingSlot
from parking_booking.infrastructure.persistence.sqlalchemy_repositories import SQLAlchemyParkingSlotRepository


@pytest.fixture
def allocator(db_session):
    return SlotAllocator(SQLAlchemyParkingSlotRepository(db_session))


async def set_status(db_session, slot_number, status):
    await db_session.execute(
        update(ORMParkingSlot).where(ORMParkingSlot.slot_number == slot_number).values(occupancy_status=status)
    )
    await db_session.commit()


class TestFindCompatible:
    """Test the first-fit slot search."""

    async def test_first_available_in_row_then_position_order(self, allocator, init_parking_slots):
        slot = await allocator.find_compatible(VehicleType.CAR)
        assert slot.slot_number == "A1"

    async def test_skips_unavailable_slots(self, allocator, db_session, init_parking_slots):
        await set_status(db_session, "A1", "reserved")
        await set_status(db_session, "A2", "maintenance")

        slot = await allocator.find_compatible(VehicleType.CAR)
        assert slot.slot_number == "A3"
        assert slot.slot_type == SlotType.DISABLED

    async def test_repeated_calls_are_reproducible(self, allocator, init_parking_slots):
        first = await allocator.find_compatible(VehicleType.ELECTRIC_CAR)
        second = await allocator.find_compatible(VehicleType.ELECTRIC_CAR)
        assert first.id == second.id == init_parking_slots["A1"].id

    async def test_motorcycle_gets_disabled_slot_before_its_own_row(self, allocator, init_parking_slots):
        slot = await allocator.find_compatible(VehicleType.MOTORCYCLE)
        assert slot.slot_number == "A3"

    async def test_none_when_lot_is_full(self, allocator, db_session, init_parking_slots):
        for number in ("A1", "A2", "A3"):
            await set_status(db_session, number, "occupied")
        assert await allocator.find_compatible(VehicleType.CAR) is None


class TestReserve:
    """Test the atomic available -> reserved step."""

    async def test_reserve_available_slot(self, allocator, db_session, init_parking_slots):
        slot = await allocator.reserve(init_parking_slots["A1"].id)
        await db_session.commit()

        assert slot.occupancy_status == SlotStatus.RESERVED
        assert slot.version == 1

    async def test_reserve_twice_fails(self, allocator, init_parking_slots):
        slot_id = init_parking_slots["A1"].id
        await allocator.reserve(slot_id)

        with pytest.raises(SlotUnavailableError) as exc_info:
            await allocator.reserve(slot_id)
        assert exc_info.value.detail["slot_number"] == "A1"
        assert exc_info.value.detail["occupancy_status"] == "reserved"

    async def test_reserve_maintenance_slot_fails(self, allocator, db_session, init_parking_slots):
        await set_status(db_session, "A2", "maintenance")
        with pytest.raises(SlotUnavailableError):
            await allocator.reserve(init_parking_slots["A2"].id)

    async def test_reserve_unknown_slot(self, allocator, init_parking_slots):
        with pytest.raises(NotFoundError):
            await allocator.reserve("no-such-slot")


class TestAllocate:
    async def test_named_slot_must_be_compatible(self, allocator, init_parking_slots):
        with pytest.raises(SlotUnavailableError) as exc_info:
            await allocator.allocate(VehicleType.CAR, init_parking_slots["B2"].id)
        assert exc_info.value.detail["slot_type"] == "motorcycle"
        assert exc_info.value.detail["vehicle_type"] == "car"

    async def test_electric_car_may_take_car_slot(self, allocator, init_parking_slots):
        slot = await allocator.allocate(VehicleType.ELECTRIC_CAR, init_parking_slots["A2"].id)
        assert slot.occupancy_status == SlotStatus.RESERVED

    async def test_auto_assignment(self, allocator, init_parking_slots):
        slot = await allocator.allocate(VehicleType.VAN)
        assert slot.slot_number == "A3"

    async def test_auto_assignment_without_candidates(self, allocator, db_session, init_parking_slots):
        await set_status(db_session, "A3", "occupied")
        await set_status(db_session, "B3", "occupied")
        with pytest.raises(SlotUnavailableError) as exc_info:
            await allocator.allocate(VehicleType.VAN)
        assert exc_info.value.detail == {"vehicle_type": "van"}


class TestOccupyAndRelease:
    async def test_mark_occupied_requires_reserved(self, allocator, init_parking_slots):
        slot_id = init_parking_slots["A1"].id
        with pytest.raises(SlotUnavailableError):
            await allocator.mark_occupied(slot_id)

        await allocator.reserve(slot_id)
        slot = await allocator.mark_occupied(slot_id)
        assert slot.occupancy_status == SlotStatus.OCCUPIED

    async def test_release_occupied_slot(self, allocator, init_parking_slots):
        slot_id = init_parking_slots["A1"].id
        await allocator.reserve(slot_id)
        await allocator.mark_occupied(slot_id)

        slot = await allocator.release(slot_id)
        assert slot.occupancy_status == SlotStatus.AVAILABLE
        assert slot.version == 3

    async def test_release_is_idempotent(self, allocator, init_parking_slots):
        slot_id = init_parking_slots["A1"].id
        first = await allocator.release(slot_id)
        second = await allocator.release(slot_id)
        assert first.occupancy_status == second.occupancy_status == SlotStatus.AVAILABLE
        assert second.version == 0

    async def test_release_leaves_maintenance_alone(self, allocator, db_session, init_parking_slots):
        await set_status(db_session, "A2", "maintenance")
        slot = await allocator.release(init_parking_slots["A2"].id)
        assert slot.occupancy_status == SlotStatus.MAINTENANCE
