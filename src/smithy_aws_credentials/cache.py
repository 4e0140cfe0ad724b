#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Final

from smithy_core.aio.interfaces.identity import IdentityResolver
from smithy_core.utils import ensure_utc

from .exceptions import CredentialsError
from .identity import AWSCredentialsIdentity, AWSCredentialsResolver, CredentialsProperties

logger: Final = logging.getLogger(__name__)

DEFAULT_REFRESH_BUFFER: Final = timedelta(minutes=5)
"""Credentials expiring within this window are refreshed before use."""


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class CachedEntry:
    credentials: AWSCredentialsIdentity
    fetched_at: datetime


class RefreshingCredentialsResolver(
    IdentityResolver[AWSCredentialsIdentity, CredentialsProperties]
):
    """Caches the credentials of another resolver until they are about to expire.

    A cached entry is served while its credentials have no expiration, or while
    ``now + buffer`` is before the expiration. Otherwise the wrapped resolver is
    called again. Refreshes happen only when :py:meth:`get_identity` is called;
    nothing runs in the background.

    Concurrent callers that find the cache empty or expired share a single
    refresh and all receive its result, whether credentials or an error. A caller
    that is cancelled while waiting does not cancel the shared refresh, whose
    result is still cached for later callers.

    The cache holds a single entry regardless of the properties it is called
    with, so use one instance per profile.
    """

    def __init__(
        self,
        resolver: AWSCredentialsResolver,
        *,
        buffer: timedelta = DEFAULT_REFRESH_BUFFER,
        clock: Callable[[], datetime] = _utc_now,
        serve_unexpired_on_failure: bool = False,
    ) -> None:
        """Construct a RefreshingCredentialsResolver.

        :param resolver: The resolver whose credentials are cached.
        :param buffer: How long before their expiration credentials are refreshed.
        :param clock: Returns the current time. Naive values are taken as UTC.
        :param serve_unexpired_on_failure: If a refresh fails while the previously
            cached credentials are inside the buffer but not yet actually expired,
            serve them instead of raising. Disabled by default, in which case
            every refresh failure is raised to the caller.
        """
        if buffer < timedelta(0):
            raise ValueError("buffer must not be negative")
        self._resolver = resolver
        self._buffer = buffer
        self._clock = clock
        self._serve_unexpired_on_failure = serve_unexpired_on_failure
        self._entry: CachedEntry | None = None
        self._refresh_task: asyncio.Task[AWSCredentialsIdentity] | None = None

    @property
    def cached(self) -> CachedEntry | None:
        """The current cache entry, if any."""
        return self._entry

    def _now(self) -> datetime:
        return ensure_utc(self._clock())

    def _is_fresh(self, entry: CachedEntry) -> bool:
        return not entry.credentials.expires_within(self._buffer, now=self._now())

    async def get_identity(
        self, *, properties: CredentialsProperties
    ) -> AWSCredentialsIdentity:
        entry = self._entry
        if entry is not None and self._is_fresh(entry):
            return entry.credentials

        if self._refresh_task is None:
            logger.debug("Refreshing credentials from %s.", type(self._resolver).__name__)
            self._refresh_task = asyncio.create_task(self._refresh(properties))
            self._refresh_task.add_done_callback(self._refresh_done)
        else:
            logger.debug("Waiting on in-flight credentials refresh.")

        return await asyncio.shield(self._refresh_task)

    async def _refresh(self, properties: CredentialsProperties) -> AWSCredentialsIdentity:
        previous = self._entry
        try:
            credentials = await self._resolver.get_identity(properties=properties)
        except CredentialsError:
            if (
                self._serve_unexpired_on_failure
                and previous is not None
                and not previous.credentials.expires_within(timedelta(0), now=self._now())
            ):
                logger.warning(
                    "Failed to refresh credentials, serving previously cached "
                    "credentials that expire at %s.",
                    previous.credentials.expiration,
                    exc_info=True,
                )
                return previous.credentials
            raise
        finally:
            if self._refresh_task is asyncio.current_task():
                self._refresh_task = None

        self._entry = CachedEntry(credentials=credentials, fetched_at=self._now())
        logger.debug("Cached credentials expiring at %s.", credentials.expiration)
        return credentials

    def _refresh_done(self, task: asyncio.Task[AWSCredentialsIdentity]) -> None:
        # Retrieve the exception so it isn't reported as unhandled when every
        # waiter was cancelled.
        if not task.cancelled():
            task.exception()

    def invalidate(self) -> None:
        """Discard the cached entry so the next call refreshes."""
        self._entry = None
