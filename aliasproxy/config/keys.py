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
from typing import Any, Dict, Optional

import attr
from signedjson.key import (
    decode_signing_key_base64,
    encode_verify_key_base64,
    generate_signing_key,
)
from signedjson.types import SigningKey
from unpaddedbase64 import encode_base64

from aliasproxy.config._base import Config, ConfigError, RuleConfigError

logger = logging.getLogger(__name__)

# Identity used for any domain without its own entry
DEFAULT_IDENTITY = "default"

# Shipped in the example config, never accepted as a real key
EXAMPLE_SIGNING_KEY = "ed25519 0 AAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAA"

# Unpadded standard base64, the only accepted seed encoding
_SEED_PATTERN = re.compile(r"[A-Za-z0-9+/]*")

DEFAULT_CONFIG = """\
# Server keys to publish on /_matrix/key/v2. Generate a key with
# `aliasproxy genkey`. The "default" entry is used for any other domain.
server_keys:
  default:
    #server_name: example.com
    signing_key: %s
""" % (
    EXAMPLE_SIGNING_KEY,
)


@attr.s(slots=True, frozen=True, auto_attribs=True)
class ServerIdentity:
    """A signing identity for one domain, or for the default fallback."""

    domain: str
    server_name: Optional[str]
    key_id: str
    signing_key: SigningKey
    verify_key_base64: str


def parse_signing_key(domain: str, raw: Any) -> SigningKey:
    """Decodes a ``"ed25519 <version> <base64 seed>"`` signing key.

    Raises:
        RuleConfigError: if the key is malformed.
    """
    path = ("server_keys", domain, "signing_key")
    if not isinstance(raw, str):
        raise RuleConfigError("Invalid signing key for %s" % (domain,), path)

    parts = raw.split(" ")
    if len(parts) != 3 or parts[0] != "ed25519":
        raise RuleConfigError("Invalid signing key for %s" % (domain,), path)

    algorithm, version, seed = parts
    if not _SEED_PATTERN.fullmatch(seed):
        raise RuleConfigError(
            "Invalid signing key for %s: seed is not unpadded base64" % (domain,), path
        )

    try:
        return decode_signing_key_base64(algorithm, version, seed)
    except ValueError as e:
        raise RuleConfigError("Invalid signing key for %s: %s" % (domain, e), path)


def generate_signing_key_line() -> str:
    """Creates a new signing key in the format expected by ``server_keys``.

    The key version is derived from the first bytes of the public key.
    """
    signing_key = generate_signing_key("0")
    version = encode_base64(signing_key.verify_key.encode()[:4], urlsafe=True)
    seed = encode_base64(signing_key.encode())
    return "ed25519 %s %s" % (version, seed)


class KeyConfig(Config):
    section = "keys"

    def read_config(self, config: Dict[str, Any], **kwargs: Any) -> None:
        server_keys = config.get("server_keys") or {}
        if not isinstance(server_keys, dict):
            raise ConfigError("server_keys must be a mapping", ("server_keys",))

        self.server_keys: Dict[str, ServerIdentity] = {}
        for domain, entry in server_keys.items():
            if not isinstance(entry, dict):
                raise ConfigError(
                    "Server key entries must be mappings", ("server_keys", str(domain))
                )

            signing_key_str = entry.get("signing_key")
            if signing_key_str == EXAMPLE_SIGNING_KEY:
                logger.warning("Ignoring example server key for %s", domain)
                continue

            signing_key = parse_signing_key(domain, signing_key_str)

            server_name = entry.get("server_name") or None
            if server_name is None and domain != DEFAULT_IDENTITY:
                server_name = domain

            self.server_keys[domain] = ServerIdentity(
                domain=domain,
                server_name=server_name,
                key_id="%s:%s" % (signing_key.alg, signing_key.version),
                signing_key=signing_key,
                verify_key_base64=encode_verify_key_base64(signing_key.verify_key),
            )

    def generate_config_section(self, **kwargs: Any) -> str:
        return DEFAULT_CONFIG
