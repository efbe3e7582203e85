# Imports for testing tools
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from unittest.mock import MagicMock, AsyncMock

# Import your application code
from booking_service.cache import InMemoryCache
from booking_service.config import Settings
from booking_service.main import app
from booking_service.service import BookingService
from booking_service.store import BookingStore


# --- Settings used by the API tests ---
@pytest.fixture
def test_settings():
    """
    No demo data, and a credit check delay long enough that it never fires
    while a test is running.
    """
    return Settings(
        SEED_DEMO_BOOKINGS=False,
        CREDIT_CHECK_DELAY_SECONDS=3600,
        EXPIRY_SWEEP_INTERVAL_SECONDS=3600,
    )


# --- Core components ---
@pytest.fixture
def store():
    return BookingStore()


@pytest.fixture
def cache():
    return InMemoryCache()


@pytest.fixture
def rng():
    """Random source for the credit check; 0.9 means the check passes."""
    mock_rng = MagicMock()
    mock_rng.random.return_value = 0.9
    return mock_rng


@pytest_asyncio.fixture
async def service(store, cache, rng):
    """
    A service with a very short credit check delay.
    In-flight credit checks are cancelled when the test ends.
    """
    booking_service = BookingService(
        store,
        cache,
        credit_check_delay=0.01,
        pending_timeout=300,
        rng=rng,
    )
    yield booking_service
    await booking_service.shutdown()


# --- Mocking the background scheduler ---
@pytest.fixture(scope="function", autouse=True)
def mock_background_tasks(mocker):
    """
    Mocks the expiry sweep loop that runs on app lifespan.
    """
    mocker.patch("booking_service.main.run_booking_scheduler", new_callable=AsyncMock)


# --- API Test Client Fixture ---
@pytest.fixture(scope="function")
def client(mocker, test_settings):
    """Provides a TestClient whose lifespan builds the service from test settings."""
    mocker.patch("booking_service.main.settings", test_settings)

    with TestClient(app) as c:
        yield c
