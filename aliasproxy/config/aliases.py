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
import re
from typing import Any, Dict, List, Pattern, Tuple

import attr

from aliasproxy.config._base import Config, ConfigError, RuleConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = """\
# Exact alias rewrites, checked first.
aliases:
  "#foo:old.example": "#foo:new.example"

# Regular expression rewrites, checked in order. The first pattern that
# matches anywhere in the alias wins. Use $1 or ${name} for groups.
patterns:
  "^#(.*):old\\\\.example$": "#$1:new.example"
"""


@attr.s(slots=True, frozen=True, auto_attribs=True)
class AliasRule:
    """A compiled alias rewrite rule."""

    pattern: Pattern[str]
    replacement: str


def _iter_raw_patterns(raw: Any) -> List[Tuple[Any, Any]]:
    if raw is None:
        return []
    if isinstance(raw, dict):
        # YAML mappings keep their declaration order
        return list(raw.items())
    if isinstance(raw, list):
        pairs = []
        for index, item in enumerate(raw):
            if not isinstance(item, dict) or "pattern" not in item:
                raise ConfigError(
                    "Each pattern must have 'pattern' and 'replacement' keys",
                    ("patterns", str(index)),
                )
            pairs.append((item["pattern"], item.get("replacement", "")))
        return pairs
    raise ConfigError("patterns must be a mapping or a list", ("patterns",))


def compile_alias_rules(raw: Any) -> List[AliasRule]:
    rules = []
    for match, replacement in _iter_raw_patterns(raw):
        if not isinstance(match, str) or not isinstance(replacement, str):
            raise RuleConfigError(
                "Pattern and replacement must be strings: %r" % (match,),
                ("patterns",),
            )
        try:
            compiled = re.compile(match)
        except re.error as e:
            raise RuleConfigError(
                "Failed to compile pattern '%s': %s" % (match, e), ("patterns",)
            )
        rules.append(AliasRule(pattern=compiled, replacement=replacement))
    return rules


class AliasConfig(Config):
    section = "aliases"

    def read_config(self, config: Dict[str, Any], **kwargs: Any) -> None:
        aliases = config.get("aliases") or {}
        if not isinstance(aliases, dict):
            raise ConfigError("aliases must be a mapping", ("aliases",))
        for alias, target in aliases.items():
            if not isinstance(alias, str) or not isinstance(target, str):
                raise ConfigError(
                    "Alias targets must be strings: %r" % (alias,), ("aliases",)
                )
        self.aliases: Dict[str, str] = dict(aliases)

        self.patterns = compile_alias_rules(config.get("patterns"))

    def generate_config_section(self, **kwargs: Any) -> str:
        return DEFAULT_CONFIG
