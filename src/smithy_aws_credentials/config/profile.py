#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import configparser
import logging
from collections.abc import Mapping
from os import PathLike
from pathlib import Path
from types import MappingProxyType
from typing import ClassVar, Final, Self

from ..exceptions import ProfileParseError
from .locations import DEFAULT_PROFILE_NAME, config_file_path, credentials_file_path

logger: Final = logging.getLogger(__name__)

_PROFILE_PREFIX = "profile "


class Profile:
    """A named profile read from a single section of a shared AWS file.

    Every accessor reads one fixed key and returns ``None`` when the key is absent.
    Whether a missing value is fatal is left to the caller.
    """

    def __init__(self, name: str, properties: Mapping[str, str]) -> None:
        self._name = name
        self._properties = properties

    @property
    def name(self) -> str:
        """The profile name, without any ``profile`` prefix."""
        return self._name

    def get(self, key: str) -> str | None:
        """Return the raw value of ``key``, or ``None`` if it isn't set."""
        return self._properties.get(key)

    def region(self) -> str | None:
        return self.get("region")

    def credential_process(self) -> str | None:
        return self.get("credential_process")

    def aws_access_key_id(self) -> str | None:
        return self.get("aws_access_key_id")

    def aws_secret_access_key(self) -> str | None:
        return self.get("aws_secret_access_key")

    def aws_session_token(self) -> str | None:
        return self.get("aws_session_token")

    def role_arn(self) -> str | None:
        return self.get("role_arn")

    def source_profile(self) -> str | None:
        return self.get("source_profile")

    def role_session_name(self) -> str | None:
        return self.get("role_session_name")

    def external_id(self) -> str | None:
        return self.get("external_id")

    def duration_seconds(self) -> str | None:
        return self.get("duration_seconds")

    def credential_source(self) -> str | None:
        return self.get("credential_source")

    def as_dict(self) -> dict[str, str]:
        return dict(self._properties)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self._name!r}, keys={sorted(self._properties)})"


class ProfileFile:
    """A parsed shared AWS file.

    Instances are built once from a path and are immutable afterwards. Use
    :py:class:`ConfigFile` or :py:class:`CredentialsFile`, which differ in how
    section names map to profile names.
    """

    _FILE_KIND: ClassVar[str] = "shared"

    def __init__(self, sections: Mapping[str, Mapping[str, str]], path: Path) -> None:
        self._sections = MappingProxyType(
            {name: MappingProxyType(dict(values)) for name, values in sections.items()}
        )
        self._path = path

    @classmethod
    def load(cls, path: str | PathLike[str]) -> Self:
        """Parse the file at ``path``.

        :param path: The location of the file.
        :raises ProfileParseError: If the file is absent, unreadable, or not valid
            INI.
        """
        path = Path(path)
        # default_section="" keeps "[DEFAULT]" an ordinary profile.
        parser = configparser.ConfigParser(
            interpolation=None, strict=False, default_section=""
        )
        try:
            with open(path, encoding="utf-8") as f:
                parser.read_file(f, source=str(path))
        except (OSError, UnicodeDecodeError, configparser.Error) as e:
            raise ProfileParseError(
                f"An error occurred parsing the {cls._FILE_KIND} file: {e}"
            ) from e

        logger.debug("Loaded %s file from %s.", cls._FILE_KIND, path)
        return cls(
            {section: dict(parser.items(section)) for section in parser.sections()},
            path,
        )

    @classmethod
    def load_if_exists(cls, path: str | PathLike[str]) -> Self | None:
        """Parse the file at ``path``, or return ``None`` if there is no such file.

        :raises ProfileParseError: If the file exists but can't be read or parsed.
        """
        if not Path(path).exists():
            logger.debug("No %s file found at %s.", cls._FILE_KIND, path)
            return None
        return cls.load(path)

    @property
    def path(self) -> Path:
        """The location the file was loaded from."""
        return self._path

    def _section_names(self, name: str) -> tuple[str, ...]:
        return (name,)

    def _profile_name(self, section: str) -> str:
        return section

    def profile(self, name: str) -> Profile | None:
        """Return the profile with the given name, or ``None`` if it isn't defined.

        :param name: The case-sensitive profile name.
        """
        for section in self._section_names(name):
            if (properties := self._sections.get(section)) is not None:
                return Profile(name, properties)
        return None

    def default_profile(self) -> Profile | None:
        """Return the ``default`` profile."""
        return self.profile(DEFAULT_PROFILE_NAME)

    def profile_names(self) -> list[str]:
        """The names of every profile defined in the file."""
        names: list[str] = []
        for section in self._sections:
            name = self._profile_name(section)
            if name not in names:
                names.append(name)
        return names


class ConfigFile(ProfileFile):
    """The shared config file, ``~/.aws/config`` by default.

    Named profiles may be written as ``[name]`` or ``[profile name]``. The bare
    form is checked first.
    """

    _FILE_KIND = "config"

    def _section_names(self, name: str) -> tuple[str, ...]:
        return (name, f"{_PROFILE_PREFIX}{name}")

    def _profile_name(self, section: str) -> str:
        return section.removeprefix(_PROFILE_PREFIX)

    @classmethod
    def load_default(cls, environ: Mapping[str, str] | None = None) -> Self:
        """Parse the config file at ``AWS_CONFIG_FILE`` or the default location."""
        return cls.load(config_file_path(environ))


class CredentialsFile(ProfileFile):
    """The shared credentials file, ``~/.aws/credentials`` by default.

    Profiles are always written as ``[name]``; the ``profile`` prefix is never
    recognized here.
    """

    _FILE_KIND = "credentials"

    @classmethod
    def load_default(cls, environ: Mapping[str, str] | None = None) -> Self:
        """Parse the credentials file at ``AWS_SHARED_CREDENTIALS_FILE`` or the
        default location."""
        return cls.load(credentials_file_path(environ))
