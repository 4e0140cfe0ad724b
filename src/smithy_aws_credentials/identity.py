#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import TypedDict

from smithy_core.aio.interfaces.identity import IdentityResolver
from smithy_core.interfaces.identity import Identity
from smithy_core.utils import ensure_utc


@dataclass(kw_only=True, frozen=True)
class AWSCredentialsIdentity(Identity):
    access_key_id: str
    """A unique identifier for an AWS user or role."""

    secret_access_key: str = field(repr=False)
    """A secret key used in conjunction with the access key ID to authenticate
    programmatic access to AWS services."""

    session_token: str | None = field(default=None, repr=False)
    """A temporary token used to specify the current session for the supplied
    credentials."""

    expiration: datetime | None = None
    """The expiration time of the identity.

    If time zone is provided, it is updated to UTC. The value must always be in UTC.
    If it is not set, the credentials are long-term and never expire.
    """

    account_id: str | None = None
    """The AWS account's ID."""

    def __post_init__(self) -> None:
        if self.expiration is not None:
            object.__setattr__(self, "expiration", ensure_utc(self.expiration))

    def expires_within(self, buffer: timedelta, now: datetime | None = None) -> bool:
        """Whether the credentials expire before ``now + buffer``.

        Credentials expiring exactly at ``now + buffer`` are treated as expiring.
        Long-term credentials never expire.

        :param buffer: The safety window before the actual expiration.
        :param now: The current time. Defaults to the current UTC time.
        """
        if self.expiration is None:
            return False
        if now is None:
            now = datetime.now(UTC)
        return ensure_utc(now) + buffer >= self.expiration


class CredentialsProperties(TypedDict, total=False):
    """Hints passed to every credentials resolver.

    Any key that is left out falls back to the process environment and the
    default file locations.
    """

    profile: str | None
    """The profile to resolve instead of ``AWS_PROFILE`` or ``default``."""

    config_file: str | None
    """Path to the shared config file."""

    credentials_file: str | None
    """Path to the shared credentials file."""

    environ: Mapping[str, str] | None
    """A snapshot of the environment variables to resolve against."""

    access_key_id: str | None
    secret_access_key: str | None
    session_token: str | None


type AWSCredentialsResolver = IdentityResolver[
    AWSCredentialsIdentity, CredentialsProperties
]
