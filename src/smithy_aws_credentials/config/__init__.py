#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from .locations import config_file_path, credentials_file_path, profile_name
from .profile import ConfigFile, CredentialsFile, Profile, ProfileFile

__all__ = (
    "ConfigFile",
    "CredentialsFile",
    "Profile",
    "ProfileFile",
    "config_file_path",
    "credentials_file_path",
    "profile_name",
)
