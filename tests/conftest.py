import os
import tempfile
from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from parking_booking.application.services.booking_service import BookingService
from parking_booking.config.settings_env import Settings
from parking_booking.domain.events import BookingEventBus
from parking_booking.infrastructure.persistence.models.models import Base, ParkingSlot, Vehicle
from parking_booking.infrastructure.persistence.sqlalchemy_repositories import (
    SQLAlchemyParkingSlotRepository,
    SQLAlchemyVehicleRepository,
)
from parking_booking.infrastructure.persistence.unit_of_work import SQLAlchemyUnitOfWork

OWNER_ID = "user-owner"
OTHER_USER_ID = "user-other"


@pytest.fixture(scope="function")
async def test_db():
    """Create a test database for each test function."""
    # Concurrency tests need several connections on one database, so use a file
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as tmp_file:
        test_db_path = tmp_file.name

    # Create async engine with NullPool to avoid connection issues
    test_db_url = f"sqlite+aiosqlite:///{test_db_path}"
    engine = create_async_engine(
        test_db_url,
        poolclass=NullPool,
        echo=False
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # Create session factory
    async_session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False
    )

    # Yield the session factory
    yield async_session_maker

    # Cleanup
    await engine.dispose()
    os.unlink(test_db_path)


@pytest.fixture
async def db_session(test_db):
    """Create a database session for a test."""
    async with test_db() as session:
        yield session
        await session.rollback()


@pytest.fixture
def test_settings():
    """Provide test settings."""
    return Settings(
        DATABASE_URL="sqlite:///:memory:",
        ASYNC_DATABASE_URL="sqlite+aiosqlite:///:memory:",
        HOURLY_RATE=Decimal("2.00"),
        BOOKING_LEAD_TIME_MINUTES=30,
        BOOKING_DEFAULT_DURATION_MINUTES=150,
    )


@pytest.fixture
def event_bus():
    return BookingEventBus()


@pytest.fixture
def published_events(event_bus):
    """Every event published on the test bus, in order."""
    events = []
    event_bus.subscribe(events.append)
    return events


def build_service(session, event_bus, test_settings) -> BookingService:
    return BookingService(
        SQLAlchemyUnitOfWork(session),
        event_bus=event_bus,
        hourly_rate=test_settings.HOURLY_RATE,
        currency=test_settings.CURRENCY,
        lead_time=timedelta(minutes=test_settings.BOOKING_LEAD_TIME_MINUTES),
        default_duration=timedelta(minutes=test_settings.BOOKING_DEFAULT_DURATION_MINUTES),
    )


@pytest.fixture
async def booking_service(db_session, event_bus, test_settings):
    """Create a BookingService instance with test database session."""
    return build_service(db_session, event_bus, test_settings)


@pytest.fixture
async def make_service(test_db, event_bus, test_settings):
    """Factory for services that each own an independent session, like concurrent requests."""
    sessions = []

    def factory() -> BookingService:
        session = test_db()
        sessions.append(session)
        return build_service(session, event_bus, test_settings)

    yield factory

    for session in sessions:
        await session.close()


@pytest.fixture
async def init_parking_slots(db_session: AsyncSession):
    """Initialize a small lot: two rows with mixed slot types.

    Returns domain entities keyed by slot number, which outlive session rollbacks.
    """
    layout = [
        ("A", 1, "car"),
        ("A", 2, "car"),
        ("A", 3, "disabled"),
        ("B", 1, "electric_car"),
        ("B", 2, "motorcycle"),
        ("B", 3, "van"),
    ]
    for row, position, slot_type in layout:
        slot = ParkingSlot(
            slot_number=f"{row}{position}",
            row=row,
            position=position,
            slot_type=slot_type,
            is_ev_charging_available=slot_type == "electric_car",
            location_description=f"Row {row}",
        )
        db_session.add(slot)

    await db_session.commit()
    slots = await SQLAlchemyParkingSlotRepository(db_session).get_all()
    return {slot.slot_number: slot for slot in slots}


async def _add_vehicle(db_session, user_id, license_plate, vehicle_type):
    vehicle = Vehicle(
        user_id=user_id,
        license_plate=license_plate,
        make="Toyota",
        model="Corolla",
        color="Red",
        vehicle_type=vehicle_type,
    )
    db_session.add(vehicle)
    await db_session.commit()
    return await SQLAlchemyVehicleRepository(db_session).get_by_id(vehicle.id)


@pytest.fixture
async def car(db_session):
    return await _add_vehicle(db_session, OWNER_ID, "CAR001", "car")


@pytest.fixture
async def second_car(db_session):
    return await _add_vehicle(db_session, OWNER_ID, "CAR002", "car")


@pytest.fixture
async def electric_car(db_session):
    return await _add_vehicle(db_session, OWNER_ID, "EV0001", "electric_car")


@pytest.fixture
async def motorcycle(db_session):
    return await _add_vehicle(db_session, OWNER_ID, "MOTO01", "motorcycle")


@pytest.fixture
async def other_users_car(db_session):
    return await _add_vehicle(db_session, OTHER_USER_ID, "OTHER1", "car")


@pytest.fixture
async def pending_booking(booking_service, car, init_parking_slots):
    return await booking_service.create_booking(OWNER_ID, car.id, notes="Near the lift please")


@pytest.fixture
async def confirmed_booking(booking_service, pending_booking, init_parking_slots):
    return await booking_service.approve(pending_booking.id, init_parking_slots["A1"].id)


@pytest.fixture
async def active_booking(booking_service, confirmed_booking):
    return await booking_service.check_in(confirmed_booking.id)
