#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from smithy_core.utils import ensure_utc

from .exceptions import CredentialsError


def parse_rfc3339(value: str) -> datetime:
    """Parses an RFC3339 timestamp, such as ``2030-01-01T00:00:00Z``, into a UTC
    datetime.

    :param value: The timestamp string.
    :returns: A UTC timezone-aware datetime.
    :raises ValueError: If the value isn't a valid timestamp.
    """
    return ensure_utc(datetime.fromisoformat(value.strip()))


def parse_credentials_envelope(
    envelope: Any, *, source: str, token_key: str, error_type: type[CredentialsError]
) -> dict[str, Any]:
    """Validates the JSON credentials document returned by a credentials source.

    The document must be an object containing ``AccessKeyId`` and
    ``SecretAccessKey``. ``Expiration`` is parsed into a UTC datetime if present.

    :param envelope: The decoded JSON value.
    :param source: A human-readable name of the source, used in error messages.
    :param token_key: The key the session token is stored under.
    :param error_type: The exception type to raise on invalid documents.
    :returns: Keyword arguments for :py:class:`AWSCredentialsIdentity`.
    """
    if not isinstance(envelope, Mapping):
        raise error_type(
            f"Expected a JSON object from {source}, got {type(envelope).__name__}"
        )

    access_key_id = envelope.get("AccessKeyId")
    secret_access_key = envelope.get("SecretAccessKey")
    if not access_key_id or not secret_access_key:
        raise error_type(f"AccessKeyId and SecretAccessKey are required for {source}")

    expiration = envelope.get("Expiration")
    if expiration is not None:
        try:
            if not isinstance(expiration, str):
                raise TypeError(f"expected a string, got {type(expiration).__name__}")
            expiration = parse_rfc3339(expiration)
        except (TypeError, ValueError) as e:
            raise error_type(
                f"Invalid Expiration '{expiration}' returned by {source}"
            ) from e

    return {
        "access_key_id": access_key_id,
        "secret_access_key": secret_access_key,
        "session_token": envelope.get(token_key) or None,
        "expiration": expiration,
        "account_id": envelope.get("AccountId"),
    }
