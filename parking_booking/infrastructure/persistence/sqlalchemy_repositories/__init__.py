from .sqlalchemy_repositories import (
    SQLAlchemyVehicleRepository,
    SQLAlchemyParkingSlotRepository,
    SQLAlchemyBookingRepository,
)

__all__ = [
    "SQLAlchemyVehicleRepository",
    "SQLAlchemyParkingSlotRepository",
    "SQLAlchemyBookingRepository",
]
