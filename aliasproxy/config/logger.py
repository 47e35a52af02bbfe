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
import logging.config
import sys
from typing import Any, Dict, Optional

import yaml
from twisted.logger import STDLibLogObserver, globalLogBeginner

from aliasproxy.config._base import Config, ConfigError

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(lineno)d - %(levelname)s - %(message)s"

DEFAULT_CONFIG = """\
# Log level for the default stderr logger.
log_level: INFO

# Path to a YAML logging.config.dictConfig document. Overrides log_level.
#log_config: /etc/aliasproxy/log.yaml
"""


class LoggingConfig(Config):
    section = "logging"

    def read_config(self, config: Dict[str, Any], **kwargs: Any) -> None:
        self.log_level = str(config.get("log_level") or "INFO").upper()
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ConfigError("Unknown log level %r" % (self.log_level,), ("log_level",))
        self.log_config: Optional[str] = config.get("log_config") or None

    def generate_config_section(self, **kwargs: Any) -> str:
        return DEFAULT_CONFIG


def _load_log_config(log_config_path: str) -> Dict[str, Any]:
    try:
        with open(log_config_path, "r", encoding="utf-8") as f:
            log_config = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError("Failed to load log config %s: %s" % (log_config_path, e))
    if not isinstance(log_config, dict):
        raise ConfigError("Log config %s must be a mapping" % (log_config_path,))
    return log_config


def setup_logging(config: LoggingConfig) -> None:
    """Sets up stdlib logging and routes Twisted's log events into it."""
    if config.log_config:
        logging.config.dictConfig(_load_log_config(config.log_config))
    else:
        logging.basicConfig(
            level=config.log_level, format=DEFAULT_LOG_FORMAT, stream=sys.stderr
        )

    globalLogBeginner.beginLoggingTo(
        [STDLibLogObserver()], redirectStandardIO=False
    )
