import uvicorn
from fastapi import FastAPI

from parking_booking.config.settings_env import settings
from parking_booking.infrastructure.api.errors import register_error_handlers
from parking_booking.infrastructure.api.routers.bookings import router, slots_router


def create_app() -> FastAPI:
    app = FastAPI(title="Parking Booking", version="0.1.0")
    app.include_router(router)
    app.include_router(slots_router)
    register_error_handlers(app)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host=settings.FASTAPI_HOST, port=settings.FASTAPI_PORT)
