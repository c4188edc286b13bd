import asyncio
from unittest.mock import AsyncMock

import pytest

from throughcache.domain.exceptions import NotFoundError, StoreError
from throughcache.domain.interfaces.backing_source import BackingSource
from throughcache.infrastructure.backing.in_memory_source import InMemoryBackingSource
from throughcache.infrastructure.resilience.retrying_source import RetryingBackingSource

@pytest.fixture
def mock_sleep():
    return AsyncMock()

@pytest.fixture
def mock_inner():
    return AsyncMock(spec=BackingSource)

def test_retries_store_errors_with_exponential_backoff(mock_inner, mock_sleep):
    mock_inner.fetch.side_effect = [StoreError("k", "fetch"), StoreError("k", "fetch"), "value"]
    source = RetryingBackingSource(mock_inner, max_retries=3, initial_backoff_s=0.5, backoff_factor=2.0, sleep=mock_sleep)

    assert asyncio.run(source.fetch("k")) == "value"
    assert mock_inner.fetch.await_count == 3
    assert [call.args[0] for call in mock_sleep.await_args_list] == [0.5, 1.0]

def test_raises_last_error_when_retries_exhausted(mock_inner, mock_sleep):
    errors = [StoreError("k", "persist", RuntimeError(str(index))) for index in range(3)]
    mock_inner.persist.side_effect = errors
    source = RetryingBackingSource(mock_inner, max_retries=2, sleep=mock_sleep)

    with pytest.raises(StoreError) as excinfo:
        asyncio.run(source.persist("k", 1))
    assert excinfo.value is errors[-1]
    assert mock_inner.persist.await_count == 3
    assert mock_sleep.await_count == 2

def test_zero_retries_raises_first_error_without_sleeping(mock_inner, mock_sleep):
    error = StoreError("k", "fetch")
    mock_inner.fetch.side_effect = error
    source = RetryingBackingSource(mock_inner, max_retries=0, sleep=mock_sleep)

    with pytest.raises(StoreError) as excinfo:
        asyncio.run(source.fetch("k"))
    assert excinfo.value is error
    assert mock_inner.fetch.await_count == 1
    mock_sleep.assert_not_awaited()

def test_not_found_is_never_retried(mock_inner, mock_sleep):
    mock_inner.fetch.side_effect = NotFoundError("k")
    source = RetryingBackingSource(mock_inner, max_retries=5, sleep=mock_sleep)

    with pytest.raises(NotFoundError):
        asyncio.run(source.fetch("k"))
    assert mock_inner.fetch.await_count == 1
    mock_sleep.assert_not_awaited()

def test_other_exceptions_propagate_unretried(mock_inner, mock_sleep):
    mock_inner.erase.side_effect = ValueError("bad key")
    source = RetryingBackingSource(mock_inner, max_retries=5, sleep=mock_sleep)

    with pytest.raises(ValueError):
        asyncio.run(source.erase("k"))
    assert mock_inner.erase.await_count == 1

def test_from_policy_and_passthrough(mock_sleep):
    inner = InMemoryBackingSource({"k": "v"})
    source = RetryingBackingSource.from_policy(
        inner, {"max_retries": 1, "initial_backoff_s": 0.0, "backoff_factor": 1.0}
    )
    assert source.max_retries == 1

    async def scenario():
        inner.fail_next("fetch")
        value = await source.fetch("k")
        await source.erase("k")
        return value

    assert asyncio.run(scenario()) == "v"
    assert inner.calls["fetch"] == 2
    assert inner.snapshot() == {}

def test_negative_retries_rejected(mock_inner):
    with pytest.raises(ValueError):
        RetryingBackingSource(mock_inner, max_retries=-1)
