from typing import Iterator

from unittest.mock import MagicMock, patch
import pytest

from aitap.application.cache import ResponseCache
from aitap.infrastructure.storage import InMemoryStorage


# Configure anyio to only use asyncio backend
@pytest.fixture
def anyio_backend() -> str:
    """Force tests to use asyncio backend only."""
    return "asyncio"


@pytest.fixture(autouse=True, scope="session")
def mock_logger() -> Iterator[MagicMock]:
    with patch("aitap.logging._logger", MagicMock()) as mock_logger:
        mock_logger.log.return_value = None
        yield mock_logger


class FakeClock:
    """Millisecond clock advanced explicitly by tests."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def response_cache(clock: FakeClock, storage: InMemoryStorage) -> ResponseCache:
    return ResponseCache(
        max_cache_size=10,
        cache_expiry_ms=60_000,
        storage=storage,
        clock=clock,
    )
