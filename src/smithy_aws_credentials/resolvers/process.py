#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import asyncio
import contextlib
import json
import logging
import shlex
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Final

from smithy_core.aio.interfaces.identity import IdentityResolver

from ..exceptions import CredentialsNotFoundError, ProcessCredentialsError
from ..identity import AWSCredentialsIdentity, CredentialsProperties
from ..utils import parse_credentials_envelope
from ._properties import config_path_of, load_config_file, profile_of

logger: Final = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 30
_SUPPORTED_VERSION = 1


@dataclass
class ProcessCredentialsConfig:
    """Configuration for process credential retrieval operations."""

    timeout: int = _DEFAULT_TIMEOUT


def split_command(command: str) -> list[str]:
    """Split a ``credential_process`` command line into arguments.

    :raises ProcessCredentialsError: If the command line can't be parsed.
    """
    try:
        args = shlex.split(command)
    except ValueError as e:
        raise ProcessCredentialsError(
            f"Unable to parse credential_process command '{command}': {e}"
        ) from e
    if not args:
        raise ProcessCredentialsError("credential_process command is empty")
    return args


class ProcessCredentialsResolver(
    IdentityResolver[AWSCredentialsIdentity, CredentialsProperties]
):
    """Resolves AWS Credentials from a process.

    If no command is given, the ``credential_process`` setting of the requested
    profile in the shared config file is used.
    """

    def __init__(
        self,
        command: Sequence[str] | str | None = None,
        config: ProcessCredentialsConfig | None = None,
    ):
        if command is not None and not command:
            raise ValueError("command must be a non-empty list")
        if isinstance(command, str):
            command = split_command(command)
        self._command = list(command) if command is not None else None
        self._config = config or ProcessCredentialsConfig()

    async def get_identity(
        self, *, properties: CredentialsProperties
    ) -> AWSCredentialsIdentity:
        command = self._command
        if command is None:
            command = await self._command_from_profile(properties)

        stdout = await self._run(command)
        return self._parse_output(stdout)

    async def _command_from_profile(
        self, properties: CredentialsProperties
    ) -> list[str]:
        name = profile_of(properties)
        config_file = await load_config_file(properties)
        if config_file is None:
            raise CredentialsNotFoundError(
                f"No shared config file found at {config_path_of(properties)}"
            )
        profile = config_file.profile(name)
        if profile is None:
            raise CredentialsNotFoundError(
                f"Profile '{name}' not found in {config_file.path}"
            )
        if not (command := profile.credential_process()):
            raise CredentialsNotFoundError(
                f"Profile '{name}' does not configure credential_process"
            )
        return split_command(command)

    async def _run(self, command: list[str]) -> bytes:
        logger.debug("Running credential process %s.", command[0])
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ProcessCredentialsError(
                f"Unable to start credential process '{command[0]}': {e}"
            ) from e

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self._config.timeout
            )
        except TimeoutError as e:
            with contextlib.suppress(ProcessLookupError):
                process.kill()
            await process.wait()
            raise ProcessCredentialsError(
                f"Credential process timed out after {self._config.timeout} seconds"
            ) from e

        if process.returncode != 0:
            raise ProcessCredentialsError(
                f"Credential process failed with non-zero exit code {process.returncode}: "
                f"{stderr.decode('utf-8', errors='replace').strip()}"
            )
        return stdout

    def _parse_output(self, stdout: bytes) -> AWSCredentialsIdentity:
        try:
            creds = json.loads(stdout.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ProcessCredentialsError(
                f"Credential process returned invalid JSON: {e}"
            ) from e

        if not isinstance(creds, dict):
            raise ProcessCredentialsError(
                f"Expected a JSON object from credential process, got {type(creds).__name__}"
            )

        version = creds.get("Version")
        if type(version) is not int or version != _SUPPORTED_VERSION:
            raise ProcessCredentialsError(
                f"Unsupported version '{version}' for credential process provider, "
                f"supported versions: {_SUPPORTED_VERSION}"
            )

        return AWSCredentialsIdentity(
            **parse_credentials_envelope(
                creds,
                source="process credentials",
                token_key="SessionToken",
                error_type=ProcessCredentialsError,
            )
        )
