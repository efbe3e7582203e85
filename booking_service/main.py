import asyncio
import logging
import time
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .booking_scheduler import run_booking_scheduler
from .cache import InMemoryCache
from .config import settings
from .routers import booking_router
from .service import BookingService
from .store import BookingStore

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", level=settings.LOG_LEVEL
)

# Setup logger
logger = logging.getLogger("booking_service")
http_logger = logging.getLogger("booking_service.http")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Builds the store, cache and service, and owns the background tasks.
    """
    store = BookingStore()
    if settings.SEED_DEMO_BOOKINGS:
        store.load_demo_bookings()
        logger.info(f"Loaded {len(store)} demo bookings.")

    service = BookingService.from_settings(store, InMemoryCache(), settings)
    app.state.booking_service = service

    logger.info("Starting background tasks...")
    scheduler_task = asyncio.create_task(
        run_booking_scheduler(service, poll_interval=settings.EXPIRY_SWEEP_INTERVAL_SECONDS)
    )

    yield  # The application is now running

    # --- Code to run on shutdown ---
    logger.info("Shutting down background tasks...")
    scheduler_task.cancel()

    try:
        await scheduler_task
    except asyncio.CancelledError:
        logger.info("Booking scheduler task successfully cancelled.")
    except Exception as e:
        logger.error(f"Error during booking scheduler shutdown: {e}")

    await service.shutdown()


# Create the FastAPI app instance, passing the lifespan manager
app = FastAPI(
    title="Booking Service API",
    description="Create, list and cancel service bookings.",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - start) * 1000
    http_logger.info(
        f"[{request.method}] {request.url.path} - Status: {response.status_code} - Response time: {elapsed_ms:.2f}ms"
    )
    return response


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Malformed bodies and parameters are a 400 for this API, not FastAPI's 422
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid request parameters"},
    )


# Include the API routes from booking_router.py
app.include_router(booking_router.router)


@app.get("/")
def read_root():
    return {"message": "Welcome to the Booking Service"}
