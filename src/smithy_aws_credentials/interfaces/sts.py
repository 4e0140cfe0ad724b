#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from typing import Protocol

from ..identity import AWSCredentialsIdentity


class STSClient(Protocol):
    """Exchanges base credentials for temporary role credentials.

    Supplied by the SDK runtime, which owns request signing and the STS wire
    protocol.
    """

    async def assume_role(
        self,
        *,
        credentials: AWSCredentialsIdentity,
        role_arn: str,
        role_session_name: str,
        external_id: str | None = None,
        duration_seconds: int | None = None,
    ) -> AWSCredentialsIdentity:
        """Call ``sts:AssumeRole`` signed with ``credentials``.

        :param credentials: The base credentials used to sign the call.
        :param role_arn: The ARN of the role to assume.
        :param role_session_name: An identifier for the assumed role session.
        :param external_id: An optional external ID required by the role's trust
            policy.
        :param duration_seconds: The requested session duration.
        :returns: Temporary credentials with an expiration.
        """
        ...
