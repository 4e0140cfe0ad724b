#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from .assume_role import MAX_ROLE_CHAIN_DEPTH, AssumeRoleCredentialsResolver
from .container import ContainerCredentialsConfig, ContainerCredentialsResolver
from .environment import EnvironmentCredentialsResolver
from .imds import IMDSConfig, IMDSCredentialsResolver
from .process import ProcessCredentialsConfig, ProcessCredentialsResolver
from .profile import ProfileCredentialsResolver
from .static import StaticCredentialsResolver

__all__ = (
    "MAX_ROLE_CHAIN_DEPTH",
    "AssumeRoleCredentialsResolver",
    "ContainerCredentialsConfig",
    "ContainerCredentialsResolver",
    "EnvironmentCredentialsResolver",
    "IMDSConfig",
    "IMDSCredentialsResolver",
    "ProcessCredentialsConfig",
    "ProcessCredentialsResolver",
    "ProfileCredentialsResolver",
    "StaticCredentialsResolver",
)
