from .abstract_repositories import (
    AbstractUnitOfWork,
    AbstractVehicleRepository,
    AbstractParkingSlotRepository,
    AbstractBookingRepository,
)

__all__ = [
    "AbstractUnitOfWork",
    "AbstractVehicleRepository",
    "AbstractParkingSlotRepository",
    "AbstractBookingRepository",
]
