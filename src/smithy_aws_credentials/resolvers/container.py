#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import asyncio
import ipaddress
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Final
from urllib.parse import urlparse

from smithy_core.aio.interfaces.identity import IdentityResolver

from ..exceptions import CredentialsNotFoundError, NetworkCredentialsError
from ..identity import AWSCredentialsIdentity, CredentialsProperties
from ..interfaces.http import FetchRequest, HTTPFetcher
from ..utils import parse_credentials_envelope
from ._metadata import fetch_body, parse_json
from ._properties import environ_of

logger: Final = logging.getLogger(__name__)

_CONTAINER_METADATA_IP = "169.254.170.2"
_CONTAINER_METADATA_ALLOWED_HOSTS = {
    _CONTAINER_METADATA_IP,
    "169.254.170.23",
    "fd00:ec2::23",
    "localhost",
}
_DEFAULT_TIMEOUT = 2
_SOURCE = "container credentials endpoint"


@dataclass
class ContainerCredentialsConfig:
    """Configuration for container credential retrieval operations."""

    timeout: float = _DEFAULT_TIMEOUT


class ContainerCredentialsResolver(
    IdentityResolver[AWSCredentialsIdentity, CredentialsProperties]
):
    """Resolves AWS Credentials from container credential sources like ECS and
    EKS."""

    ENV_VAR = "AWS_CONTAINER_CREDENTIALS_RELATIVE_URI"
    ENV_VAR_FULL = "AWS_CONTAINER_CREDENTIALS_FULL_URI"
    ENV_VAR_AUTH_TOKEN = "AWS_CONTAINER_AUTHORIZATION_TOKEN"  # noqa: S105
    ENV_VAR_AUTH_TOKEN_FILE = "AWS_CONTAINER_AUTHORIZATION_TOKEN_FILE"  # noqa: S105

    def __init__(
        self,
        fetcher: HTTPFetcher,
        config: ContainerCredentialsConfig | None = None,
    ):
        self._fetcher = fetcher
        self._config = config or ContainerCredentialsConfig()

    def _resolve_url(self, environ: Mapping[str, str]) -> str:
        if relative := environ.get(self.ENV_VAR):
            if not relative.startswith("/"):
                relative = f"/{relative}"
            return f"http://{_CONTAINER_METADATA_IP}{relative}"

        if full := environ.get(self.ENV_VAR_FULL):
            host = urlparse(full).hostname or ""
            if not (self._is_loopback(host) or host in _CONTAINER_METADATA_ALLOWED_HOSTS):
                raise NetworkCredentialsError(
                    f"Unsupported host '{host}'. "
                    f"Can only retrieve metadata from a loopback address or "
                    f"one of: {', '.join(sorted(_CONTAINER_METADATA_ALLOWED_HOSTS))}"
                )
            return full

        raise CredentialsNotFoundError(
            f"Neither {self.ENV_VAR} or {self.ENV_VAR_FULL} environment "
            "variables are set. Unable to resolve credentials."
        )

    async def _resolve_headers(self, environ: Mapping[str, str]) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        auth_token = None
        if filename := environ.get(self.ENV_VAR_AUTH_TOKEN_FILE):
            try:
                auth_token = await asyncio.to_thread(self._read_file, filename)
            except (OSError, UnicodeDecodeError) as e:
                raise NetworkCredentialsError(
                    f"Unable to read authorization token from {filename}: {e}"
                ) from e
        elif token := environ.get(self.ENV_VAR_AUTH_TOKEN):
            auth_token = token

        if auth_token is not None:
            if "\r" in auth_token or "\n" in auth_token:
                raise NetworkCredentialsError(
                    "Container authorization token contains invalid line break characters."
                )
            headers["Authorization"] = auth_token
        return headers

    def _read_file(self, filename: str) -> str:
        with open(filename, encoding="utf-8") as f:
            return f.read().strip()

    def _is_loopback(self, hostname: str) -> bool:
        try:
            return ipaddress.ip_address(hostname).is_loopback
        except ValueError:
            return False

    async def get_identity(
        self, *, properties: CredentialsProperties
    ) -> AWSCredentialsIdentity:
        environ = environ_of(properties)
        url = self._resolve_url(environ)
        headers = await self._resolve_headers(environ)

        logger.debug("Fetching credentials from %s.", _SOURCE)
        body = await fetch_body(
            self._fetcher,
            FetchRequest(
                method="GET", url=url, headers=headers, timeout=self._config.timeout
            ),
            source=_SOURCE,
        )
        creds = parse_json(body, source=_SOURCE)
        return AWSCredentialsIdentity(
            **parse_credentials_envelope(
                creds,
                source="container credentials",
                token_key="Token",
                error_type=NetworkCredentialsError,
            )
        )
