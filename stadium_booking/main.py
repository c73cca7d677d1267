"""Main FastAPI application."""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stadium_booking.api import auth, availability, bookings, reviews, stadiums, users
from stadium_booking.core.config import settings
from stadium_booking.core.database import init_db
from stadium_booking.core.exceptions import register_error_handlers
from stadium_booking.services.scheduler import completion_scheduler

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info("Starting Stadium Booking API")
    logger.info(f"Debug mode: {settings.DEBUG}")

    if settings.CREATE_TABLES_ON_STARTUP:
        await init_db()

    if settings.SCHEDULER_ENABLED:
        await completion_scheduler.start()

    yield

    # Shutdown
    logger.info("Shutting down Stadium Booking API")
    await completion_scheduler.stop()


# Create FastAPI app
app = FastAPI(
    title="Stadium Booking API",
    description="Discover, list and book sports venues",
    version="1.0.0",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Include routers
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(stadiums.router)
app.include_router(availability.router)
app.include_router(reviews.router)
app.include_router(bookings.router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "scheduler_running": completion_scheduler.running,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "stadium_booking.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG,
    )
