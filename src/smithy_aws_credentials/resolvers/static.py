#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from smithy_core.aio.interfaces.identity import IdentityResolver

from ..exceptions import CredentialsNotFoundError
from ..identity import AWSCredentialsIdentity, CredentialsProperties


class StaticCredentialsResolver(
    IdentityResolver[AWSCredentialsIdentity, CredentialsProperties]
):
    """Resolve Static AWS Credentials.

    Credentials given to the constructor are always returned. Otherwise the
    ``access_key_id``, ``secret_access_key`` and ``session_token`` properties are
    used.
    """

    def __init__(self, *, credentials: AWSCredentialsIdentity | None = None) -> None:
        self._credentials = credentials

    async def get_identity(
        self, *, properties: CredentialsProperties
    ) -> AWSCredentialsIdentity:
        if self._credentials is not None:
            return self._credentials

        access_key_id = properties.get("access_key_id")
        secret_access_key = properties.get("secret_access_key")
        if access_key_id and secret_access_key:
            return AWSCredentialsIdentity(
                access_key_id=access_key_id,
                secret_access_key=secret_access_key,
                session_token=properties.get("session_token") or None,
            )
        raise CredentialsNotFoundError(
            "Attempted to resolve AWS credentials from config, but credentials weren't configured."
        )
