#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
"""Default locations of the shared AWS files.

Every function here is a pure function of an environment snapshot so that the
locations are recomputed for each resolution and can be substituted in tests.
"""

import os
from collections.abc import Mapping
from pathlib import Path

AWS_CONFIG_FILE = "AWS_CONFIG_FILE"
AWS_SHARED_CREDENTIALS_FILE = "AWS_SHARED_CREDENTIALS_FILE"
AWS_PROFILE = "AWS_PROFILE"
AWS_DEFAULT_PROFILE = "AWS_DEFAULT_PROFILE"

DEFAULT_PROFILE_NAME = "default"


def _home_dir(environ: Mapping[str, str]) -> Path:
    for key in ("HOME", "USERPROFILE"):
        if value := environ.get(key):
            return Path(value)
    return Path.home()


def _expand_user(path: str, environ: Mapping[str, str]) -> Path:
    if path == "~" or path.startswith(("~/", "~\\")):
        return _home_dir(environ) / path[2:]
    return Path(path)


def config_file_path(environ: Mapping[str, str] | None = None) -> Path:
    """The shared config file: ``AWS_CONFIG_FILE`` or ``~/.aws/config``."""
    environ = os.environ if environ is None else environ
    if override := environ.get(AWS_CONFIG_FILE):
        return _expand_user(override, environ)
    return _home_dir(environ) / ".aws" / "config"


def credentials_file_path(environ: Mapping[str, str] | None = None) -> Path:
    """The shared credentials file: ``AWS_SHARED_CREDENTIALS_FILE`` or
    ``~/.aws/credentials``."""
    environ = os.environ if environ is None else environ
    if override := environ.get(AWS_SHARED_CREDENTIALS_FILE):
        return _expand_user(override, environ)
    return _home_dir(environ) / ".aws" / "credentials"


def profile_name(
    environ: Mapping[str, str] | None = None, override: str | None = None
) -> str:
    """The profile to resolve.

    An explicit override wins, followed by ``AWS_PROFILE``,
    ``AWS_DEFAULT_PROFILE``, and finally ``default``.
    """
    if override:
        return override
    environ = os.environ if environ is None else environ
    return (
        environ.get(AWS_PROFILE)
        or environ.get(AWS_DEFAULT_PROFILE)
        or DEFAULT_PROFILE_NAME
    )
