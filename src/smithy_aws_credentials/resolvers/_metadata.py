#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import json
from typing import Any

from ..exceptions import NetworkCredentialsError
from ..interfaces.http import FetchRequest, HTTPFetcher


async def fetch_body(fetcher: HTTPFetcher, request: FetchRequest, *, source: str) -> str:
    """Make a single request and return the decoded body of a 200 response.

    :raises NetworkCredentialsError: If the request fails or doesn't return 200.
    """
    try:
        response = await fetcher.fetch(request)
    except Exception as e:
        raise NetworkCredentialsError(
            f"Unable to reach {source} at {request.url}: {e}"
        ) from e

    body = response.body.decode("utf-8", errors="replace")
    if response.status != 200:
        raise NetworkCredentialsError(
            f"{source} returned {response.status}: {body}"
        )
    return body


def parse_json(body: str, *, source: str) -> Any:
    try:
        return json.loads(body)
    except json.JSONDecodeError as e:
        raise NetworkCredentialsError(
            f"Unable to parse JSON from {source}: {body}"
        ) from e
