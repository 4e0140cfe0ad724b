#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import logging
from collections.abc import Sequence
from typing import Final

from smithy_core.aio.interfaces.identity import IdentityResolver

from .exceptions import AggregateChainError, CredentialsError
from .identity import AWSCredentialsIdentity, AWSCredentialsResolver, CredentialsProperties
from .interfaces.http import HTTPFetcher
from .interfaces.sts import STSClient
from .resolvers.assume_role import AssumeRoleCredentialsResolver
from .resolvers.container import ContainerCredentialsConfig, ContainerCredentialsResolver
from .resolvers.environment import EnvironmentCredentialsResolver
from .resolvers.imds import IMDSConfig, IMDSCredentialsResolver
from .resolvers.process import ProcessCredentialsConfig, ProcessCredentialsResolver
from .resolvers.profile import ProfileCredentialsResolver
from .resolvers.static import StaticCredentialsResolver

logger: Final = logging.getLogger(__name__)


class ChainedCredentialsResolver(
    IdentityResolver[AWSCredentialsIdentity, CredentialsProperties]
):
    """Attempts to resolve credentials by checking a sequence of sub-resolvers.

    Resolvers are tried in order and the first success is returned; resolvers
    after it are never called. If a nested resolver raises a
    :py:class:`CredentialsError`, the error is recorded and the next resolver is
    attempted. If every resolver fails, an :py:class:`AggregateChainError` listing
    each failure is raised.
    """

    def __init__(self, resolvers: Sequence[AWSCredentialsResolver]) -> None:
        """Construct a ChainedCredentialsResolver.

        :param resolvers: The sequence of resolvers to resolve credentials from, in
            order of precedence.
        """
        self._resolvers = tuple(resolvers)

    @property
    def resolvers(self) -> tuple[AWSCredentialsResolver, ...]:
        return self._resolvers

    async def get_identity(
        self, *, properties: CredentialsProperties
    ) -> AWSCredentialsIdentity:
        logger.debug("Attempting to resolve credentials from resolver chain.")
        errors: list[tuple[str, CredentialsError]] = []
        for resolver in self._resolvers:
            name = type(resolver).__name__
            try:
                logger.debug("Attempting to resolve credentials from %s.", name)
                credentials = await resolver.get_identity(properties=properties)
            except CredentialsError as e:
                logger.debug("Failed to resolve credentials from %s: %s", name, e)
                errors.append((name, e))
                continue
            logger.debug("Resolved credentials from %s.", name)
            return credentials

        raise AggregateChainError(errors)


def create_default_chain(
    *,
    fetcher: HTTPFetcher | None = None,
    sts_client: STSClient | None = None,
    static_credentials: AWSCredentialsIdentity | None = None,
    process_config: ProcessCredentialsConfig | None = None,
    container_config: ContainerCredentialsConfig | None = None,
    imds_config: IMDSConfig | None = None,
) -> ChainedCredentialsResolver:
    """Creates the default AWS credential provider chain.

    The precedence is: explicit static credentials, environment variables,
    assume-role profiles, the shared credentials file, ``credential_process``,
    the container credentials endpoint, and finally the instance metadata
    service.

    The assume-role step is only included when ``sts_client`` is given, and the
    container and instance metadata steps only when ``fetcher`` is given.

    :param fetcher: Transport used to reach container and instance metadata
        endpoints.
    :param sts_client: Client used for profiles that set ``role_arn``.
    :param static_credentials: Credentials that take precedence over every other
        source. If omitted, static credentials are read from the properties.
    :param process_config: Settings for running ``credential_process`` commands.
    :param container_config: Settings for the container credentials endpoint.
    :param imds_config: Settings for the instance metadata service.
    """
    environment = EnvironmentCredentialsResolver()
    container = imds = None
    if fetcher is not None:
        container = ContainerCredentialsResolver(fetcher, container_config)
        imds = IMDSCredentialsResolver(fetcher, imds_config)

    resolvers: list[AWSCredentialsResolver] = [
        StaticCredentialsResolver(credentials=static_credentials),
        environment,
    ]
    if sts_client is not None:
        credential_sources: dict[str, AWSCredentialsResolver] = {
            "Environment": environment
        }
        if container is not None and imds is not None:
            credential_sources["EcsContainer"] = container
            credential_sources["Ec2InstanceMetadata"] = imds
        resolvers.append(
            AssumeRoleCredentialsResolver(
                sts_client,
                credential_sources=credential_sources,
                process_config=process_config,
            )
        )
    resolvers.append(ProfileCredentialsResolver())
    resolvers.append(ProcessCredentialsResolver(config=process_config))
    if container is not None and imds is not None:
        resolvers.extend((container, imds))

    return ChainedCredentialsResolver(resolvers)
