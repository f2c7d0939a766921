"""Initialize the parking booking database."""
from parking_booking.infrastructure.persistence.database import init_db
from parking_booking.shared.utils import logger

if __name__ == "__main__":
    logger.info("Initializing parking booking database...")
    init_db()
    logger.info("Database initialization complete!")
