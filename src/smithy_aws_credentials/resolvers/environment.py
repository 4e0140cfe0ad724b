#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from smithy_core.aio.interfaces.identity import IdentityResolver

from ..exceptions import CredentialsNotFoundError, InvalidCredentialsValueError
from ..identity import AWSCredentialsIdentity, CredentialsProperties
from ..utils import parse_rfc3339
from ._properties import environ_of


class EnvironmentCredentialsResolver(
    IdentityResolver[AWSCredentialsIdentity, CredentialsProperties]
):
    """Resolves AWS Credentials from system environment variables."""

    ACCESS_KEY_ID = "AWS_ACCESS_KEY_ID"
    SECRET_ACCESS_KEY = "AWS_SECRET_ACCESS_KEY"  # noqa: S105
    SESSION_TOKEN = "AWS_SESSION_TOKEN"  # noqa: S105
    EXPIRATION = "AWS_CREDENTIAL_EXPIRATION"
    ACCOUNT_ID = "AWS_ACCOUNT_ID"

    async def get_identity(
        self, *, properties: CredentialsProperties
    ) -> AWSCredentialsIdentity:
        environ = environ_of(properties)

        # Empty values are treated as unset.
        access_key_id = environ.get(self.ACCESS_KEY_ID) or None
        secret_access_key = environ.get(self.SECRET_ACCESS_KEY) or None
        session_token = environ.get(self.SESSION_TOKEN) or None
        account_id = environ.get(self.ACCOUNT_ID) or None

        if access_key_id is None:
            raise CredentialsNotFoundError(f"{self.ACCESS_KEY_ID} is not set")
        if secret_access_key is None:
            raise CredentialsNotFoundError(
                f"{self.ACCESS_KEY_ID} is set but {self.SECRET_ACCESS_KEY} is not"
            )

        expiration = None
        if raw_expiration := environ.get(self.EXPIRATION):
            try:
                expiration = parse_rfc3339(raw_expiration)
            except ValueError as e:
                raise InvalidCredentialsValueError(
                    f"{self.EXPIRATION} is not a valid RFC3339 timestamp: {raw_expiration}"
                ) from e

        return AWSCredentialsIdentity(
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            session_token=session_token,
            expiration=expiration,
            account_id=account_id,
        )
