#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import asyncio
import os
from collections.abc import Mapping
from pathlib import Path

from ..config.locations import config_file_path, credentials_file_path, profile_name
from ..config.profile import ConfigFile, CredentialsFile
from ..identity import CredentialsProperties


def environ_of(properties: CredentialsProperties) -> Mapping[str, str]:
    environ = properties.get("environ")
    return os.environ if environ is None else environ


def profile_of(properties: CredentialsProperties) -> str:
    return profile_name(environ_of(properties), properties.get("profile"))


def config_path_of(properties: CredentialsProperties) -> Path:
    if path := properties.get("config_file"):
        return Path(path)
    return config_file_path(environ_of(properties))


def credentials_path_of(properties: CredentialsProperties) -> Path:
    if path := properties.get("credentials_file"):
        return Path(path)
    return credentials_file_path(environ_of(properties))


async def load_config_file(properties: CredentialsProperties) -> ConfigFile | None:
    return await asyncio.to_thread(
        ConfigFile.load_if_exists, config_path_of(properties)
    )


async def load_credentials_file(
    properties: CredentialsProperties,
) -> CredentialsFile | None:
    return await asyncio.to_thread(
        CredentialsFile.load_if_exists, credentials_path_of(properties)
    )
