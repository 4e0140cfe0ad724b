#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import asyncio
import logging
from datetime import UTC, datetime, timedelta

import pytest
from smithy_aws_credentials.cache import (
    DEFAULT_REFRESH_BUFFER,
    RefreshingCredentialsResolver,
)
from smithy_aws_credentials.exceptions import (
    CredentialsError,
    NetworkCredentialsError,
)
from smithy_aws_credentials.identity import (
    AWSCredentialsIdentity,
    CredentialsProperties,
)

NOW = datetime(2025, 1, 1, 12, 0, 0, tzinfo=UTC)


class FakeClock:
    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


class SequenceResolver:
    """Returns the queued results in order, optionally waiting on a gate."""

    def __init__(self, *results: AWSCredentialsIdentity | Exception) -> None:
        self.results = list(results)
        self.calls = 0
        self.gate: asyncio.Event | None = None

    async def get_identity(
        self, *, properties: CredentialsProperties
    ) -> AWSCredentialsIdentity:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


def credentials(
    name: str, expiration: datetime | None = None
) -> AWSCredentialsIdentity:
    return AWSCredentialsIdentity(
        access_key_id=f"{name}-akid",
        secret_access_key=f"{name}-secret",
        expiration=expiration,
    )


def test_default_buffer():
    assert DEFAULT_REFRESH_BUFFER == timedelta(minutes=5)


def test_negative_buffer_rejected():
    with pytest.raises(ValueError, match="buffer"):
        RefreshingCredentialsResolver(SequenceResolver(), buffer=timedelta(seconds=-1))


async def test_first_call_populates_cache():
    clock = FakeClock()
    first = credentials("first", NOW + timedelta(hours=1))
    inner = SequenceResolver(first)
    cache = RefreshingCredentialsResolver(inner, clock=clock)

    assert cache.cached is None
    assert await cache.get_identity(properties={}) is first
    assert await cache.get_identity(properties={}) is first
    assert inner.calls == 1
    assert cache.cached is not None
    assert cache.cached.credentials is first
    assert cache.cached.fetched_at == NOW


async def test_long_term_credentials_never_refreshed():
    clock = FakeClock()
    inner = SequenceResolver(credentials("static"))
    cache = RefreshingCredentialsResolver(inner, clock=clock)

    await cache.get_identity(properties={})
    clock.advance(timedelta(days=365))
    await cache.get_identity(properties={})
    assert inner.calls == 1


async def test_refresh_at_buffer_boundary():
    clock = FakeClock()
    expiration = NOW + timedelta(minutes=10)
    first = credentials("first", expiration)
    second = credentials("second", expiration + timedelta(hours=1))
    inner = SequenceResolver(first, second)
    cache = RefreshingCredentialsResolver(inner, clock=clock)

    await cache.get_identity(properties={})

    # One second before the buffer starts the cached entry is still served.
    clock.now = expiration - DEFAULT_REFRESH_BUFFER - timedelta(seconds=1)
    assert await cache.get_identity(properties={}) is first
    assert inner.calls == 1

    # Inside the buffer the entry is refreshed even though it hasn't expired.
    clock.now = expiration - DEFAULT_REFRESH_BUFFER + timedelta(seconds=1)
    assert await cache.get_identity(properties={}) is second
    assert inner.calls == 2


async def test_exactly_at_buffer_refreshes():
    clock = FakeClock()
    expiration = NOW + timedelta(minutes=10)
    inner = SequenceResolver(
        credentials("first", expiration), credentials("second", expiration)
    )
    cache = RefreshingCredentialsResolver(inner, clock=clock)
    await cache.get_identity(properties={})

    clock.now = expiration - DEFAULT_REFRESH_BUFFER
    await cache.get_identity(properties={})
    assert inner.calls == 2


async def test_custom_buffer():
    clock = FakeClock()
    expiration = NOW + timedelta(minutes=10)
    inner = SequenceResolver(credentials("first", expiration), credentials("second"))
    cache = RefreshingCredentialsResolver(
        inner, buffer=timedelta(seconds=30), clock=clock
    )
    await cache.get_identity(properties={})

    clock.now = expiration - timedelta(minutes=1)
    await cache.get_identity(properties={})
    assert inner.calls == 1

    clock.now = expiration - timedelta(seconds=10)
    await cache.get_identity(properties={})
    assert inner.calls == 2


async def test_naive_clock_treated_as_utc():
    expiration = NOW + timedelta(minutes=10)
    inner = SequenceResolver(credentials("first", expiration), credentials("second"))
    clock = FakeClock(NOW.replace(tzinfo=None))
    cache = RefreshingCredentialsResolver(inner, clock=clock)

    await cache.get_identity(properties={})
    await cache.get_identity(properties={})
    assert inner.calls == 1


async def test_concurrent_callers_share_one_refresh():
    first = credentials("first", NOW + timedelta(hours=1))
    inner = SequenceResolver(first)
    inner.gate = asyncio.Event()
    cache = RefreshingCredentialsResolver(inner, clock=FakeClock())

    waiters = [
        asyncio.create_task(cache.get_identity(properties={})) for _ in range(10)
    ]
    await asyncio.sleep(0)
    inner.gate.set()
    results = await asyncio.gather(*waiters)

    assert inner.calls == 1
    assert all(result is first for result in results)


async def test_concurrent_callers_share_one_error():
    error = NetworkCredentialsError("endpoint down")
    inner = SequenceResolver(error, credentials("later"))
    inner.gate = asyncio.Event()
    cache = RefreshingCredentialsResolver(inner, clock=FakeClock())

    waiters = [
        asyncio.create_task(cache.get_identity(properties={})) for _ in range(5)
    ]
    await asyncio.sleep(0)
    inner.gate.set()
    results = await asyncio.gather(*waiters, return_exceptions=True)

    assert inner.calls == 1
    assert all(result is error for result in results)
    assert cache.cached is None

    # A failed refresh is not cached, so the next call tries again.
    assert (await cache.get_identity(properties={})).access_key_id == "later-akid"
    assert inner.calls == 2


async def test_refresh_error_propagates_by_default():
    clock = FakeClock()
    expiration = NOW + timedelta(minutes=10)
    inner = SequenceResolver(
        credentials("first", expiration), NetworkCredentialsError("down")
    )
    cache = RefreshingCredentialsResolver(inner, clock=clock)
    await cache.get_identity(properties={})

    clock.now = expiration - timedelta(minutes=1)
    with pytest.raises(NetworkCredentialsError):
        await cache.get_identity(properties={})


async def test_serve_unexpired_on_failure(caplog: pytest.LogCaptureFixture):
    clock = FakeClock()
    expiration = NOW + timedelta(minutes=10)
    first = credentials("first", expiration)
    inner = SequenceResolver(
        first, NetworkCredentialsError("down"), NetworkCredentialsError("down")
    )
    cache = RefreshingCredentialsResolver(
        inner, clock=clock, serve_unexpired_on_failure=True
    )
    await cache.get_identity(properties={})

    clock.now = expiration - timedelta(minutes=1)
    with caplog.at_level(logging.WARNING, logger="smithy_aws_credentials.cache"):
        assert await cache.get_identity(properties={}) is first
    assert "serving previously cached credentials" in caplog.text

    # Once actually expired the failure is raised.
    clock.now = expiration
    with pytest.raises(NetworkCredentialsError):
        await cache.get_identity(properties={})


async def test_unexpected_errors_not_masked_by_fallback():
    clock = FakeClock()
    expiration = NOW + timedelta(minutes=10)
    inner = SequenceResolver(credentials("first", expiration), RuntimeError("bug"))
    cache = RefreshingCredentialsResolver(
        inner, clock=clock, serve_unexpired_on_failure=True
    )
    await cache.get_identity(properties={})

    clock.now = expiration - timedelta(minutes=1)
    with pytest.raises(RuntimeError, match="bug"):
        await cache.get_identity(properties={})


async def test_cancelled_caller_does_not_cancel_refresh():
    first = credentials("first", NOW + timedelta(hours=1))
    inner = SequenceResolver(first)
    inner.gate = asyncio.Event()
    cache = RefreshingCredentialsResolver(inner, clock=FakeClock())

    cancelled = asyncio.create_task(cache.get_identity(properties={}))
    survivor = asyncio.create_task(cache.get_identity(properties={}))
    await asyncio.sleep(0)

    cancelled.cancel()
    with pytest.raises(asyncio.CancelledError):
        await cancelled

    inner.gate.set()
    assert await survivor is first
    assert inner.calls == 1
    assert cache.cached is not None


async def test_refresh_completes_after_sole_caller_cancelled():
    first = credentials("first", NOW + timedelta(hours=1))
    inner = SequenceResolver(first)
    inner.gate = asyncio.Event()
    cache = RefreshingCredentialsResolver(inner, clock=FakeClock())

    caller = asyncio.create_task(cache.get_identity(properties={}))
    await asyncio.sleep(0)
    caller.cancel()
    with pytest.raises(asyncio.CancelledError):
        await caller

    inner.gate.set()
    assert await cache.get_identity(properties={}) is first
    assert inner.calls == 1


async def test_invalidate_forces_refresh():
    inner = SequenceResolver(credentials("first"), credentials("second"))
    cache = RefreshingCredentialsResolver(inner, clock=FakeClock())

    await cache.get_identity(properties={})
    cache.invalidate()
    assert cache.cached is None
    assert (await cache.get_identity(properties={})).access_key_id == "second-akid"


async def test_errors_are_credentials_errors():
    inner = SequenceResolver(NetworkCredentialsError("down"))
    cache = RefreshingCredentialsResolver(inner, clock=FakeClock())
    with pytest.raises(CredentialsError):
        await cache.get_identity(properties={})
