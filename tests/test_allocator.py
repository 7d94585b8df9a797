"""Tests for generated identifier allocation.

Most tests drive the allocator against a mocked store so collisions can be
scripted; the last one exhausts a real one-character id space.
"""

import datetime
from unittest.mock import AsyncMock

import pytest

from qrlocal.allocator import DEFAULT_MAX_ATTEMPTS, IdentifierAllocator
from qrlocal.codec import ALPHABET
from qrlocal.errors import AllocationExhausted, DuplicateKey, StoreFailure
from qrlocal.models import Redirect
from qrlocal.store import RedirectStore


def _record(identifier: str, destination: str) -> Redirect:
    return Redirect(
        id=identifier,
        destination=destination,
        created_at=datetime.datetime.now(datetime.timezone.utc),
        visit_count=0,
        last_visit_at=None,
    )


@pytest.fixture
def mock_store() -> AsyncMock:
    store = AsyncMock(spec=RedirectStore)
    store.exists.return_value = False
    store.insert_if_absent.side_effect = _record
    return store


@pytest.mark.parametrize("length", [1, 7, 14, 20])
def test_candidate_length_and_alphabet(mock_store: AsyncMock, length: int) -> None:
    allocator = IdentifierAllocator(mock_store, length)
    for attempt in range(20):
        candidate = allocator.candidate("https://example.com", attempt)
        assert len(candidate) == length
        assert set(candidate) <= set(ALPHABET.lower())


def test_candidates_differ_between_calls(mock_store: AsyncMock) -> None:
    allocator = IdentifierAllocator(mock_store, 14)
    candidates = {allocator.candidate("https://example.com", 0) for _ in range(50)}
    assert len(candidates) == 50


@pytest.mark.parametrize("length", [0, 21, -1])
def test_rejects_out_of_range_length(mock_store: AsyncMock, length: int) -> None:
    with pytest.raises(ValueError):
        IdentifierAllocator(mock_store, length)


@pytest.mark.asyncio
async def test_assign_first_attempt(mock_store: AsyncMock) -> None:
    allocator = IdentifierAllocator(mock_store, 7)
    record = await allocator.assign("https://example.com")

    assert len(record.id) == 7
    assert record.destination == "https://example.com"
    mock_store.exists.assert_awaited_once()
    mock_store.insert_if_absent.assert_awaited_once_with(record.id, "https://example.com")


@pytest.mark.asyncio
async def test_assign_skips_taken_candidates(mock_store: AsyncMock) -> None:
    mock_store.exists.side_effect = [True, True, False]
    allocator = IdentifierAllocator(mock_store, 7)

    record = await allocator.assign("https://example.com")

    assert mock_store.exists.await_count == 3
    mock_store.insert_if_absent.assert_awaited_once()
    assert record.id == mock_store.insert_if_absent.await_args.args[0]


@pytest.mark.asyncio
async def test_assign_retries_after_losing_insert_race(mock_store: AsyncMock) -> None:
    mock_store.insert_if_absent.side_effect = [
        DuplicateKey(),
        _record("abc2def", "https://example.com"),
    ]
    allocator = IdentifierAllocator(mock_store, 7)

    record = await allocator.assign("https://example.com")

    assert record.id == "abc2def"
    assert mock_store.insert_if_absent.await_count == 2


@pytest.mark.asyncio
async def test_assign_exhausts_after_max_attempts(mock_store: AsyncMock) -> None:
    mock_store.exists.return_value = True
    allocator = IdentifierAllocator(mock_store, 7)

    with pytest.raises(AllocationExhausted, match="Unable to generate unique ID"):
        await allocator.assign("https://example.com")

    assert mock_store.exists.await_count == DEFAULT_MAX_ATTEMPTS
    mock_store.insert_if_absent.assert_not_awaited()


@pytest.mark.asyncio
async def test_assign_honours_configured_attempts(mock_store: AsyncMock) -> None:
    mock_store.exists.return_value = True
    allocator = IdentifierAllocator(mock_store, 7, max_attempts=3)

    with pytest.raises(AllocationExhausted):
        await allocator.assign("https://example.com")

    assert mock_store.exists.await_count == 3


@pytest.mark.asyncio
async def test_store_failure_is_not_retried(mock_store: AsyncMock) -> None:
    mock_store.insert_if_absent.side_effect = StoreFailure()
    allocator = IdentifierAllocator(mock_store, 7)

    with pytest.raises(StoreFailure):
        await allocator.assign("https://example.com")

    mock_store.insert_if_absent.assert_awaited_once()


@pytest.mark.asyncio
async def test_exhausted_id_space_with_real_store(store: RedirectStore) -> None:
    for symbol in ALPHABET.lower():
        await store.insert_if_absent(symbol, "https://taken.example.com")

    allocator = IdentifierAllocator(store, 1)
    with pytest.raises(AllocationExhausted):
        await allocator.assign("https://example.com")

    assert len(await store.list_all()) == 32
