#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol


@dataclass(kw_only=True, frozen=True)
class FetchRequest:
    """A single request to a remote credentials endpoint."""

    method: str = "GET"
    """The HTTP method, for example ``GET`` or ``PUT``."""

    url: str
    """The absolute URL to request."""

    headers: Mapping[str, str] = field(default_factory=dict)
    """Headers to send with the request."""

    timeout: float | None = None
    """The total time in seconds the request may take, if limited."""


@dataclass(kw_only=True, frozen=True)
class FetchResponse:
    """The response from a remote credentials endpoint."""

    status: int
    """The HTTP status code."""

    body: bytes = b""
    """The full response body."""


class HTTPFetcher(Protocol):
    """Performs requests against instance and container metadata endpoints.

    Implementations make exactly one attempt per call. Retrying is left to the
    caller.
    """

    async def fetch(self, request: FetchRequest) -> FetchResponse:
        """Send the request and return the complete response.

        :param request: The request to send.
        :raises Exception: Any transport failure. Resolvers wrap these in
            :py:class:`NetworkCredentialsError`.
        """
        ...
