from decimal import Decimal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Development
    DEV_MODE: bool = Field(default=True, description="Enable debug mode")

    # Database
    DATABASE_URL: str = Field(default="sqlite:///./parking_booking.db", description="Database connection URL")
    ASYNC_DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///./parking_booking.db", description="Async database URL"
    )

    # FastAPI
    FASTAPI_HOST: str = Field(default="localhost", description="FastAPI host")
    FASTAPI_PORT: int = Field(default=8080, description="FastAPI port")

    # Billing
    HOURLY_RATE: Decimal = Field(default=Decimal("2.00"), description="Flat hourly parking rate")
    CURRENCY: str = Field(default="USD", description="Currency code shown on receipts")
    DEFAULT_PAYMENT_METHOD: str = Field(default="cash", description="Payment method when none is given")

    # Booking window policy
    BOOKING_LEAD_TIME_MINUTES: int = Field(default=30, ge=0, description="Minutes between request and window start")
    BOOKING_DEFAULT_DURATION_MINUTES: int = Field(default=150, gt=0, description="Length of the requested window")

    # Slot inventory seed
    SEED_ROWS: str = Field(default="ABCDEF", description="Row letters created by init_database")
    SEED_POSITIONS_PER_ROW: int = Field(default=20, ge=1, le=20, description="Slots per row")


# Create settings instance
settings = Settings()
