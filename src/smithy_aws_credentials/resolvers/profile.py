#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import logging
from typing import Final

from smithy_core.aio.interfaces.identity import IdentityResolver

from ..config.profile import Profile
from ..exceptions import CredentialsNotFoundError, ProfileParseError
from ..identity import AWSCredentialsIdentity, CredentialsProperties
from ._properties import (
    credentials_path_of,
    load_config_file,
    load_credentials_file,
    profile_of,
)

logger: Final = logging.getLogger(__name__)


def static_credentials_from_profile(profile: Profile) -> AWSCredentialsIdentity | None:
    """Build credentials from a profile's static keys.

    Returns ``None`` unless both ``aws_access_key_id`` and
    ``aws_secret_access_key`` are set to non-empty values.
    """
    access_key_id = profile.aws_access_key_id()
    secret_access_key = profile.aws_secret_access_key()
    if not access_key_id or not secret_access_key:
        return None
    return AWSCredentialsIdentity(
        access_key_id=access_key_id,
        secret_access_key=secret_access_key,
        session_token=profile.aws_session_token() or None,
    )


class ProfileCredentialsResolver(
    IdentityResolver[AWSCredentialsIdentity, CredentialsProperties]
):
    """Resolves AWS Credentials from a profile in the shared credentials file.

    Profiles that set ``role_arn`` in either shared file are skipped; their keys
    are only ever used as the source of an assume-role call.
    """

    async def get_identity(
        self, *, properties: CredentialsProperties
    ) -> AWSCredentialsIdentity:
        name = profile_of(properties)
        credentials_file = await load_credentials_file(properties)
        if credentials_file is None:
            raise CredentialsNotFoundError(
                f"No shared credentials file found at {credentials_path_of(properties)}"
            )

        profile = credentials_file.profile(name)
        if profile is None:
            raise CredentialsNotFoundError(
                f"Profile '{name}' not found in {credentials_file.path}"
            )

        config_profile = await self._config_profile(name, properties)
        if profile.role_arn() or (config_profile and config_profile.role_arn()):
            raise CredentialsNotFoundError(
                f"Profile '{name}' sets role_arn and must be resolved by assuming the role"
            )

        credentials = static_credentials_from_profile(profile)
        if credentials is None:
            raise CredentialsNotFoundError(
                f"Profile '{name}' in {credentials_file.path} must set both "
                "aws_access_key_id and aws_secret_access_key"
            )

        logger.debug("Resolved credentials from profile '%s'.", name)
        return credentials

    async def _config_profile(
        self, name: str, properties: CredentialsProperties
    ) -> Profile | None:
        # The config file is only consulted for role_arn, so a broken one must not
        # hide usable keys in the credentials file.
        try:
            config_file = await load_config_file(properties)
        except ProfileParseError as e:
            logger.debug(
                "Ignoring unreadable config file for profile '%s': %s", name, e
            )
            return None
        return config_file.profile(name) if config_file is not None else None
