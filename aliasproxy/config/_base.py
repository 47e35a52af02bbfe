# Copyright 2024 The Matrix.org Foundation C.I.C.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import logging
from typing import Any, Dict, Iterable, List, Optional, Type

import yaml

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Represents a problem parsing the configuration

    Args:
        msg: A textual description of the error.
        path: Where appropriate, an indication of where in the configuration
           the problem lies.
    """

    # Process exit status used when this error aborts startup
    exit_code = 3

    def __init__(self, msg: str, path: Optional[Iterable[str]] = None):
        super().__init__(msg)
        self.msg = msg
        self.path = list(path) if path is not None else None

    def __str__(self) -> str:
        if self.path:
            return "%s: %s" % (".".join(self.path), self.msg)
        return self.msg


class ConfigReadError(ConfigError):
    """The configuration file could not be read."""

    exit_code = 2


class RuleConfigError(ConfigError):
    """A signing key or alias pattern is invalid."""

    exit_code = 4


class HomeserverUrlError(ConfigError):
    """The homeserver URL is unusable."""

    exit_code = 5


class Config:
    """
    A configuration section, read from a dict by ``read_config``.

    Attributes:
        section: The section title of this config object, such as
            "server" or "keys".
    """

    section: str

    def __init__(self, root_config: Optional["RootConfig"] = None):
        self.root = root_config

    def read_config(self, config: Dict[str, Any], **kwargs: Any) -> None:
        raise NotImplementedError()

    def generate_config_section(self, **kwargs: Any) -> str:
        """Returns the commented YAML for this section of a new config file."""
        return ""


def read_config_file(config_path: str) -> Dict[str, Any]:
    """Reads and parses a YAML configuration file.

    Raises:
        ConfigReadError: if the file cannot be read
        ConfigError: if the file is not a YAML mapping
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise ConfigReadError("Failed to read %s: %s" % (config_path, e))

    try:
        config = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError("Failed to parse %s: %s" % (config_path, e))

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigError("Config file %s must be a mapping" % (config_path,))
    return config


class RootConfig:
    """
    Holder of an application's configuration.

    Each entry of ``config_classes`` is instantiated and made available as an
    attribute named after its ``section``.
    """

    config_classes: List[Type[Config]] = []

    def __init__(self) -> None:
        for config_class in self.config_classes:
            setattr(self, config_class.section, config_class(self))

    def parse_config_dict(self, config_dict: Dict[str, Any]) -> None:
        for config_class in self.config_classes:
            getattr(self, config_class.section).read_config(config_dict)

    @classmethod
    def load_config(cls, config_path: str) -> "RootConfig":
        obj = cls()
        obj.parse_config_dict(read_config_file(config_path))
        return obj

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "RootConfig":
        obj = cls()
        obj.parse_config_dict(config_dict)
        return obj
