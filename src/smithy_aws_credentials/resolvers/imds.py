#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from types import MappingProxyType
from typing import Final, Literal

from smithy_core.aio.interfaces.identity import IdentityResolver

from .. import __version__
from ..exceptions import CredentialsNotFoundError, NetworkCredentialsError
from ..identity import AWSCredentialsIdentity, CredentialsProperties
from ..interfaces.http import FetchRequest, HTTPFetcher
from ..utils import parse_credentials_envelope
from ._metadata import fetch_body, parse_json
from ._properties import environ_of

logger: Final = logging.getLogger(__name__)

_USER_AGENT = f"aws-sdk-python-imds-client/{__version__}"
_SOURCE = "instance metadata service"


@dataclass(init=False)
class IMDSConfig:
    """Configuration for EC2Metadata."""

    _HOST_MAPPING = MappingProxyType(
        {"IPv4": "http://169.254.169.254", "IPv6": "http://[fd00:ec2::254]"}
    )
    _MIN_TTL = 5
    _MAX_TTL = 21600

    endpoint_uri: str
    endpoint_mode: Literal["IPv4", "IPv6"]
    token_ttl: int
    timeout: float
    ec2_instance_profile_name: str | None

    def __init__(
        self,
        *,
        endpoint_uri: str | None = None,
        endpoint_mode: Literal["IPv4", "IPv6"] = "IPv4",
        token_ttl: int = _MAX_TTL,
        timeout: float = 1,
        ec2_instance_profile_name: str | None = None,
    ):
        self.endpoint_mode = endpoint_mode
        self.endpoint_uri = self._resolve_endpoint(endpoint_uri, endpoint_mode)
        self.token_ttl = self._validate_token_ttl(token_ttl)
        self.timeout = timeout
        self.ec2_instance_profile_name = ec2_instance_profile_name

    def _validate_token_ttl(self, ttl: int) -> int:
        if not self._MIN_TTL <= ttl <= self._MAX_TTL:
            raise ValueError(
                f"Token TTL must be between {self._MIN_TTL} and {self._MAX_TTL} seconds."
            )
        return ttl

    def _resolve_endpoint(
        self, endpoint_uri: str | None, endpoint_mode: Literal["IPv4", "IPv6"]
    ) -> str:
        if endpoint_uri is not None:
            return endpoint_uri.rstrip("/")
        return self._HOST_MAPPING.get(endpoint_mode, self._HOST_MAPPING["IPv4"])


class Token:
    """Represents an IMDSv2 session token with a value and method for checking
    expiration."""

    def __init__(self, value: str, ttl: int):
        self._value = value
        self._ttl = ttl
        self._created_time = datetime.now()

    def is_expired(self) -> bool:
        return datetime.now() - self._created_time >= timedelta(seconds=self._ttl)

    @property
    def value(self) -> str:
        return self._value


class TokenCache:
    """Holds the token needed to fetch instance metadata.

    In addition, it knows how to refresh itself.
    """

    _TOKEN_PATH = "/latest/api/token"  # noqa: S105

    def __init__(self, fetcher: HTTPFetcher, config: IMDSConfig):
        self._fetcher = fetcher
        self._config = config
        self._refresh_lock = asyncio.Lock()
        self._token: Token | None = None

    def _should_refresh(self) -> bool:
        return self._token is None or self._token.is_expired()

    async def _refresh(self) -> None:
        async with self._refresh_lock:
            if not self._should_refresh():
                return
            request = FetchRequest(
                method="PUT",
                url=f"{self._config.endpoint_uri}{self._TOKEN_PATH}",
                headers={
                    "User-Agent": _USER_AGENT,
                    "x-aws-ec2-metadata-token-ttl-seconds": str(self._config.token_ttl),
                },
                timeout=self._config.timeout,
            )
            token_value = await fetch_body(self._fetcher, request, source=_SOURCE)
            self._token = Token(token_value, self._config.token_ttl)

    async def get_token(self) -> Token:
        if self._should_refresh():
            await self._refresh()
        assert self._token is not None  # noqa: S101
        return self._token


class EC2Metadata:
    def __init__(self, fetcher: HTTPFetcher, config: IMDSConfig | None = None):
        self._fetcher = fetcher
        self._config = config or IMDSConfig()
        self._token_cache = TokenCache(fetcher=self._fetcher, config=self._config)

    async def get(self, *, path: str) -> str:
        token = await self._token_cache.get_token()
        request = FetchRequest(
            method="GET",
            url=f"{self._config.endpoint_uri}{path}",
            headers={
                "User-Agent": _USER_AGENT,
                "x-aws-ec2-metadata-token": token.value,
            },
            timeout=self._config.timeout,
        )
        return await fetch_body(self._fetcher, request, source=_SOURCE)


class IMDSCredentialsResolver(
    IdentityResolver[AWSCredentialsIdentity, CredentialsProperties]
):
    """Resolves AWS Credentials from an EC2 Instance Metadata Service (IMDS) client."""

    _METADATA_PATH_BASE = "/latest/meta-data/iam/security-credentials/"
    DISABLED_ENV_VAR = "AWS_EC2_METADATA_DISABLED"

    def __init__(self, fetcher: HTTPFetcher, config: IMDSConfig | None = None):
        self._config = config or IMDSConfig()
        self._ec2_metadata_client = EC2Metadata(fetcher=fetcher, config=self._config)

    async def get_identity(
        self, *, properties: CredentialsProperties
    ) -> AWSCredentialsIdentity:
        environ = environ_of(properties)
        if environ.get(self.DISABLED_ENV_VAR, "").lower() == "true":
            raise CredentialsNotFoundError(
                f"Instance metadata credentials are disabled by {self.DISABLED_ENV_VAR}"
            )

        profile = self._config.ec2_instance_profile_name
        if profile is None:
            listing = await self._ec2_metadata_client.get(path=self._METADATA_PATH_BASE)
            profile = next(iter(listing.split()), None)
            if profile is None:
                raise CredentialsNotFoundError(
                    "No IAM role is attached to this instance."
                )

        logger.debug("Fetching credentials for instance profile '%s'.", profile)
        creds_str = await self._ec2_metadata_client.get(
            path=f"{self._METADATA_PATH_BASE}{profile}"
        )
        creds = parse_json(creds_str, source=_SOURCE)

        if isinstance(creds, dict) and creds.get("Code", "Success") != "Success":
            raise NetworkCredentialsError(
                f"{_SOURCE} returned code '{creds['Code']}': {creds.get('Message', '')}"
            )

        return AWSCredentialsIdentity(
            **parse_credentials_envelope(
                creds,
                source="instance metadata credentials",
                token_key="Token",
                error_type=NetworkCredentialsError,
            )
        )
