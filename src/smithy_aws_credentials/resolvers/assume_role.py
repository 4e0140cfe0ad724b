#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import asyncio
import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Final

from smithy_core.aio.interfaces.identity import IdentityResolver

from ..config.profile import ConfigFile, CredentialsFile, Profile
from ..exceptions import (
    AssumeRoleError,
    CredentialChainTooLongError,
    CredentialsError,
    CredentialsNotFoundError,
    RoleChainError,
)
from ..identity import AWSCredentialsIdentity, AWSCredentialsResolver, CredentialsProperties
from ..interfaces.sts import STSClient
from ._properties import load_config_file, load_credentials_file, profile_of
from .environment import EnvironmentCredentialsResolver
from .process import ProcessCredentialsConfig, ProcessCredentialsResolver
from .profile import static_credentials_from_profile

logger: Final = logging.getLogger(__name__)

MAX_ROLE_CHAIN_DEPTH: Final = 5
"""The number of ``source_profile`` hops allowed before resolution is abandoned."""

_SESSION_NAME_PREFIX = "smithy-aws-credentials"


class _Profiles:
    """Profiles visible to assume-role resolution.

    A profile's settings are the union of its config file and credentials file
    sections, with the credentials file winning for keys set in both.
    """

    def __init__(
        self, config_file: ConfigFile | None, credentials_file: CredentialsFile | None
    ) -> None:
        self._config_file = config_file
        self._credentials_file = credentials_file

    def get(self, name: str) -> Profile | None:
        merged: dict[str, str] = {}
        found = False
        for store in (self._config_file, self._credentials_file):
            if store is not None and (profile := store.profile(name)) is not None:
                merged.update(profile.as_dict())
                found = True
        return Profile(name, merged) if found else None


class AssumeRoleCredentialsResolver(
    IdentityResolver[AWSCredentialsIdentity, CredentialsProperties]
):
    """Resolves AWS Credentials for profiles that set ``role_arn``.

    The base credentials come from the profile's ``source_profile``, which may
    itself assume a role, or from its ``credential_source``. They are exchanged
    for temporary role credentials through the given STS client.

    Profiles without ``role_arn`` are not handled and raise
    :py:class:`CredentialsNotFoundError`, so the next resolver in a chain is tried.
    """

    def __init__(
        self,
        sts_client: STSClient,
        *,
        credential_sources: Mapping[str, AWSCredentialsResolver] | None = None,
        process_config: ProcessCredentialsConfig | None = None,
    ) -> None:
        """Construct an AssumeRoleCredentialsResolver.

        :param sts_client: The client used to call ``sts:AssumeRole``.
        :param credential_sources: Resolvers available to the ``credential_source``
            setting, keyed by its value. Defaults to ``Environment`` only.
        :param process_config: Configuration for source profiles that use
            ``credential_process``.
        """
        self._sts_client = sts_client
        if credential_sources is None:
            credential_sources = {"Environment": EnvironmentCredentialsResolver()}
        self._credential_sources = credential_sources
        self._process_config = process_config

    async def get_identity(
        self, *, properties: CredentialsProperties
    ) -> AWSCredentialsIdentity:
        name = profile_of(properties)
        config_file, credentials_file = await asyncio.gather(
            load_config_file(properties), load_credentials_file(properties)
        )
        profiles = _Profiles(config_file, credentials_file)

        profile = profiles.get(name)
        if profile is None or not profile.role_arn():
            raise CredentialsNotFoundError(f"Profile '{name}' does not set role_arn")

        return await self._resolve_profile(profile, profiles, properties, depth=0)

    async def _resolve_profile(
        self,
        profile: Profile,
        profiles: _Profiles,
        properties: CredentialsProperties,
        depth: int,
    ) -> AWSCredentialsIdentity:
        if depth > MAX_ROLE_CHAIN_DEPTH:
            raise CredentialChainTooLongError(
                f"Exceeded the maximum of {MAX_ROLE_CHAIN_DEPTH} source_profile hops "
                f"while resolving profile '{profile.name}'. Check for a cycle."
            )

        if not (role_arn := profile.role_arn()):
            return await self._resolve_base_profile(profile, properties)

        base = await self._resolve_source(profile, profiles, properties, depth)
        return await self._assume_role(profile, role_arn, base)

    async def _resolve_base_profile(
        self, profile: Profile, properties: CredentialsProperties
    ) -> AWSCredentialsIdentity:
        if (credentials := static_credentials_from_profile(profile)) is not None:
            return credentials
        if command := profile.credential_process():
            resolver = ProcessCredentialsResolver(command, self._process_config)
            return await resolver.get_identity(properties=properties)
        raise CredentialsNotFoundError(
            f"Profile '{profile.name}' has no static credentials or credential_process"
        )

    async def _resolve_source(
        self,
        profile: Profile,
        profiles: _Profiles,
        properties: CredentialsProperties,
        depth: int,
    ) -> AWSCredentialsIdentity:
        source_profile = profile.source_profile()
        credential_source = profile.credential_source()
        if source_profile and credential_source:
            raise RoleChainError(
                f"Profile '{profile.name}' sets both source_profile and credential_source"
            )
        if credential_source:
            return await self._resolve_credential_source(
                profile, credential_source, properties
            )
        if not source_profile:
            raise RoleChainError(
                f"Profile '{profile.name}' sets role_arn without source_profile "
                "or credential_source"
            )

        if source_profile == profile.name:
            # A profile may use its own static keys as the base credentials.
            if (credentials := static_credentials_from_profile(profile)) is None:
                raise RoleChainError(
                    f"Profile '{profile.name}' names itself as source_profile but "
                    "has no static credentials"
                )
            return credentials

        source = profiles.get(source_profile)
        if source is None:
            raise RoleChainError(
                f"Source profile '{source_profile}' of profile '{profile.name}' not found"
            )

        logger.debug(
            "Resolving source profile '%s' for profile '%s'.", source_profile, profile.name
        )
        try:
            return await self._resolve_profile(source, profiles, properties, depth + 1)
        except RoleChainError:
            raise
        except CredentialsError as e:
            raise RoleChainError(
                f"Unable to resolve source profile '{source_profile}' of profile "
                f"'{profile.name}': {e}"
            ) from e

    async def _resolve_credential_source(
        self, profile: Profile, credential_source: str, properties: CredentialsProperties
    ) -> AWSCredentialsIdentity:
        resolver = self._credential_sources.get(credential_source)
        if resolver is None:
            raise RoleChainError(
                f"Unsupported credential_source '{credential_source}' in profile "
                f"'{profile.name}', supported sources: "
                f"{', '.join(sorted(self._credential_sources))}"
            )
        try:
            return await resolver.get_identity(properties=properties)
        except CredentialsError as e:
            raise RoleChainError(
                f"Unable to resolve credential_source '{credential_source}' of "
                f"profile '{profile.name}': {e}"
            ) from e

    async def _assume_role(
        self, profile: Profile, role_arn: str, base: AWSCredentialsIdentity
    ) -> AWSCredentialsIdentity:
        session_name = profile.role_session_name() or (
            f"{_SESSION_NAME_PREFIX}-{int(datetime.now(UTC).timestamp())}"
        )
        duration_seconds = None
        if raw_duration := profile.duration_seconds():
            try:
                duration_seconds = int(raw_duration)
            except ValueError as e:
                raise AssumeRoleError(
                    f"Invalid duration_seconds '{raw_duration}' in profile '{profile.name}'"
                ) from e

        logger.debug("Assuming role %s for profile '%s'.", role_arn, profile.name)
        try:
            credentials = await self._sts_client.assume_role(
                credentials=base,
                role_arn=role_arn,
                role_session_name=session_name,
                external_id=profile.external_id() or None,
                duration_seconds=duration_seconds,
            )
        except Exception as e:
            raise AssumeRoleError(f"Failed to assume role {role_arn}: {e}") from e

        if credentials.expiration is None:
            raise AssumeRoleError(
                f"Assuming role {role_arn} returned credentials without an expiration"
            )
        return credentials
