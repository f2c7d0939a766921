from sqlalchemy import create_engine, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session

from parking_booking.config.settings_env import settings
from parking_booking.domain.common import SlotType
from parking_booking.infrastructure.persistence.models.models import Base, ParkingSlot
from parking_booking.shared.utils import logger

DATABASE_URL = settings.DATABASE_URL
ASYNC_DATABASE_URL = settings.ASYNC_DATABASE_URL

# Sync engine for initialization
engine = create_engine(DATABASE_URL, connect_args={
                       "check_same_thread": False} if "sqlite" in DATABASE_URL else {})

# Async engine for application
async_engine = create_async_engine(ASYNC_DATABASE_URL, echo=False)
AsyncSessionLocal = async_sessionmaker(
    async_engine, class_=AsyncSession, expire_on_commit=False)


async def get_async_db():
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


def seed_slot_type(row: str, position: int) -> SlotType:
    """Layout of a freshly seeded lot: the first two bays of each row are
    accessible, the last two are wired for EV charging and row ``F`` is
    reserved for motorcycles and vans."""
    if position <= 2:
        return SlotType.DISABLED
    if row == "F":
        return SlotType.MOTORCYCLE if position % 2 else SlotType.VAN
    return SlotType.CAR


def build_seed_slots(rows: str, positions_per_row: int) -> list[ParkingSlot]:
    slots = []
    for row in rows:
        for position in range(1, positions_per_row + 1):
            slots.append(ParkingSlot(
                slot_number=f"{row}{position}",
                row=row,
                position=position,
                slot_type=seed_slot_type(row, position).value,
                is_ev_charging_available=position > positions_per_row - 2,
                location_description=f"Row {row}",
            ))
    # Special bays live in their own row and take any vehicle class.
    for position in range(1, 3):
        slots.append(ParkingSlot(
            slot_number=f"V{position:02d}",
            row="V",
            position=position,
            slot_type=SlotType.DISABLED.value,
            is_special_slot=True,
            location_description="Visitor entrance",
        ))
    return slots


def init_db(bind=None):
    bind = bind or engine
    logger.info(f"Initializing database at: {bind.url}")
    Base.metadata.create_all(bind=bind, checkfirst=True)
    logger.info("Tables created")

    with Session(bind) as session:
        # Check if slots already exist
        existing_slots = session.execute(select(func.count(ParkingSlot.id))).scalar()
        if existing_slots == 0:
            slots = build_seed_slots(settings.SEED_ROWS, settings.SEED_POSITIONS_PER_ROW)
            session.add_all(slots)
            session.commit()
            logger.info(f"Created {len(slots)} parking slots")
            return len(slots)
    return 0
