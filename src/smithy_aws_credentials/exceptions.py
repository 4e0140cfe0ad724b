#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from collections.abc import Sequence

from smithy_core.exceptions import SmithyIdentityError


class CredentialsError(SmithyIdentityError):
    """Base exception type for all exceptions raised in credentials resolution.

    Deriving from :py:class:`SmithyIdentityError` lets smithy identity resolver
    chains move on to their next resolver.
    """


class ProfileParseError(CredentialsError):
    """A config or credentials file was missing, unreadable, or not valid INI."""


class CredentialsNotFoundError(CredentialsError):
    """A source had no credentials to offer.

    Raised when a profile, section, environment variable, or required field is
    absent.
    """


class InvalidCredentialsValueError(CredentialsError):
    """A credentials setting was present but its value could not be used."""


class ProcessCredentialsError(CredentialsError):
    """A ``credential_process`` command could not be run or produced invalid
    output."""


class NetworkCredentialsError(CredentialsError):
    """A remote credentials endpoint could not be reached or returned an
    unusable response."""


class RoleChainError(CredentialsError):
    """The base credentials for an assume-role profile could not be resolved."""


class CredentialChainTooLongError(RoleChainError):
    """A chain of ``source_profile`` references exceeded the maximum depth.

    This is almost always caused by a cycle between profiles.
    """


class AssumeRoleError(CredentialsError):
    """The STS assume-role call failed."""


class AggregateChainError(CredentialsError):
    """Every resolver in a credentials chain failed.

    The individual failures are kept in :py:attr:`errors` in the order they were
    attempted.
    """

    def __init__(self, errors: Sequence[tuple[str, CredentialsError]]) -> None:
        self.errors: tuple[tuple[str, CredentialsError], ...] = tuple(errors)
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if not self.errors:
            return "No credentials resolvers were configured."
        details = "\n".join(f"  {name}: {error}" for name, error in self.errors)
        return f"Failed to resolve credentials from any source:\n{details}"

