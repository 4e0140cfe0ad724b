#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from types import TracebackType
from typing import Any, Self

import aiohttp

from .interfaces.http import FetchRequest, FetchResponse, HTTPFetcher


class AIOHTTPFetcher(HTTPFetcher):
    """Implementation of :py:class:`.interfaces.http.HTTPFetcher` using aiohttp.

    Each call makes a single attempt. The underlying session is created on first
    use unless one is given, and is only closed by :py:meth:`close` if this
    fetcher created it.
    """

    def __init__(self, *, _session: aiohttp.ClientSession | None = None) -> None:
        self._session = _session
        self._owns_session = _session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def fetch(self, request: FetchRequest) -> FetchResponse:
        """Send the request using aiohttp.

        :param request: The request including method, URL, headers, and timeout.
        """
        kwargs: dict[str, Any] = {"headers": dict(request.headers)}
        if request.timeout is not None:
            kwargs["timeout"] = aiohttp.ClientTimeout(total=request.timeout)

        async with self._get_session().request(
            request.method, request.url, **kwargs
        ) as resp:
            body = await resp.read()
            return FetchResponse(status=resp.status, body=body)

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.close()
