#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import importlib.metadata

__version__: str = importlib.metadata.version("smithy-aws-credentials")


from collections.abc import Mapping
from datetime import timedelta

from .cache import DEFAULT_REFRESH_BUFFER, RefreshingCredentialsResolver
from .chain import ChainedCredentialsResolver, create_default_chain
from .config import ConfigFile, CredentialsFile, Profile
from .config.locations import config_file_path
from .exceptions import CredentialsError
from .identity import AWSCredentialsIdentity, AWSCredentialsResolver, CredentialsProperties
from .interfaces.http import HTTPFetcher
from .interfaces.sts import STSClient
from .resolvers.container import ContainerCredentialsConfig
from .resolvers.imds import IMDSConfig
from .resolvers.process import ProcessCredentialsConfig

__all__ = (
    "AWSCredentialsIdentity",
    "AWSCredentialsResolver",
    "ChainedCredentialsResolver",
    "ConfigFile",
    "CredentialsError",
    "CredentialsFile",
    "CredentialsProperties",
    "Profile",
    "RefreshingCredentialsResolver",
    "create_default_chain",
    "create_default_resolver",
    "load_config_file",
    "resolve_credentials",
)


def create_default_resolver(
    *,
    fetcher: HTTPFetcher | None = None,
    sts_client: STSClient | None = None,
    static_credentials: AWSCredentialsIdentity | None = None,
    process_config: ProcessCredentialsConfig | None = None,
    container_config: ContainerCredentialsConfig | None = None,
    imds_config: IMDSConfig | None = None,
    buffer: timedelta = DEFAULT_REFRESH_BUFFER,
) -> RefreshingCredentialsResolver:
    """Create a caching resolver over the default credential provider chain.

    See :py:func:`create_default_chain` for the order in which sources are tried
    and the meaning of each argument.
    """
    chain = create_default_chain(
        fetcher=fetcher,
        sts_client=sts_client,
        static_credentials=static_credentials,
        process_config=process_config,
        container_config=container_config,
        imds_config=imds_config,
    )
    return RefreshingCredentialsResolver(chain, buffer=buffer)


async def resolve_credentials(
    profile: str | None = None,
    *,
    fetcher: HTTPFetcher | None = None,
    sts_client: STSClient | None = None,
    environ: Mapping[str, str] | None = None,
    config_file: str | None = None,
    credentials_file: str | None = None,
) -> AWSCredentialsIdentity:
    """Resolve credentials once from the default credential provider chain.

    :param profile: The profile to use instead of ``AWS_PROFILE`` or ``default``.
    :param fetcher: Transport for the container and instance metadata endpoints.
        Those sources are skipped if it isn't given.
    :param sts_client: Client for profiles that assume a role. Those profiles are
        skipped if it isn't given.
    :param environ: Environment variables to use instead of ``os.environ``.
    :param config_file: Path to use instead of the default config file.
    :param credentials_file: Path to use instead of the default credentials file.
    :raises AggregateChainError: If no source produced credentials. The error
        lists why each source failed.
    """
    chain = create_default_chain(fetcher=fetcher, sts_client=sts_client)
    properties = CredentialsProperties(
        profile=profile,
        environ=environ,
        config_file=config_file,
        credentials_file=credentials_file,
    )
    return await chain.get_identity(properties=properties)


def load_config_file(environ: Mapping[str, str] | None = None) -> ConfigFile | None:
    """Load the shared config file for configuration-loading code.

    Returns ``None`` if there is no config file.

    :param environ: Environment variables to use instead of ``os.environ``.
    :raises ProfileParseError: If the file exists but is not valid INI.
    """
    return ConfigFile.load_if_exists(config_file_path(environ))
