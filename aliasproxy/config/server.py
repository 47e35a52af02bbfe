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
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlsplit

import attr

from aliasproxy.config._base import Config, ConfigError, HomeserverUrlError

logger = logging.getLogger(__name__)

DEFAULT_LISTEN = "0.0.0.0:8080"
DEFAULT_UPSTREAM_TIMEOUT = 30.0

DEFAULT_CONFIG = """\
# The homeserver that owns the room directory. Credentials in the URL are
# sent as HTTP basic auth.
homeserver_url: https://matrix.example.com

# Address to listen on, as host:port.
listen: 0.0.0.0:8080

# Value returned from /.well-known/matrix/server, if any.
#server_well_known: proxy.example.com:443

# How long, in seconds, to cache resolved aliases.
cache_ttl: 1800

# Deadline for requests to the homeserver, in seconds. 0 disables it.
upstream_timeout: 30
"""


@attr.s(slots=True, frozen=True, auto_attribs=True)
class HomeserverLocation:
    """Where and how to reach the homeserver's client API."""

    scheme: str
    netloc: str
    username: Optional[str] = None
    password: Optional[str] = None

    @property
    def base_url(self) -> str:
        return "%s://%s" % (self.scheme, self.netloc)


def parse_homeserver_url(url: Any) -> HomeserverLocation:
    """Splits the configured homeserver URL into its usable parts.

    Only the scheme, host, port and userinfo are kept; any path is ignored.

    Raises:
        HomeserverUrlError: if the URL is not an http(s) URL with a host.
    """
    if not isinstance(url, str) or not url:
        raise HomeserverUrlError("homeserver_url must be set", ("homeserver_url",))

    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError as e:
        raise HomeserverUrlError(
            "Failed to parse homeserver URL: %s" % (e,), ("homeserver_url",)
        )

    if parts.scheme not in ("http", "https") or not parts.hostname:
        raise HomeserverUrlError(
            "Failed to parse homeserver URL: %r is not an http(s) URL" % (url,),
            ("homeserver_url",),
        )

    host = parts.hostname
    if ":" in host:
        host = "[%s]" % (host,)
    netloc = host if port is None else "%s:%d" % (host, port)
    return HomeserverLocation(
        scheme=parts.scheme,
        netloc=netloc,
        username=parts.username,
        password=parts.password,
    )


def parse_listen_address(listen: Any) -> Tuple[str, int]:
    """Parses a ``host:port`` listen address. An empty host means all interfaces."""
    if not isinstance(listen, str) or ":" not in listen:
        raise ConfigError("listen must be of the form host:port", ("listen",))

    host, _, port_str = listen.rpartition(":")
    host = host.strip("[]") or "0.0.0.0"
    try:
        port = int(port_str)
    except ValueError:
        raise ConfigError("Invalid port in listen address %r" % (listen,), ("listen",))
    if not 0 <= port <= 65535:
        raise ConfigError("Invalid port in listen address %r" % (listen,), ("listen",))
    return host, port


class ServerConfig(Config):
    """Configuration for the listener and the upstream homeserver."""

    section = "server"

    def read_config(self, config: Dict[str, Any], **kwargs: Any) -> None:
        self.homeserver_url = config.get("homeserver_url")
        self.homeserver = parse_homeserver_url(self.homeserver_url)

        self.listen = config.get("listen") or DEFAULT_LISTEN
        self.bind_host, self.bind_port = parse_listen_address(self.listen)

        self.server_well_known: Optional[str] = config.get("server_well_known") or None

        cache_ttl = config.get("cache_ttl", 0)
        if cache_ttl is None:
            cache_ttl = 0
        if isinstance(cache_ttl, bool) or not isinstance(cache_ttl, (int, float)):
            raise ConfigError("cache_ttl must be a number of seconds", ("cache_ttl",))
        if cache_ttl < 0:
            raise ConfigError("cache_ttl must be non-negative", ("cache_ttl",))
        self.cache_ttl = cache_ttl

        timeout = config.get("upstream_timeout", DEFAULT_UPSTREAM_TIMEOUT)
        if timeout is not None and (
            isinstance(timeout, bool) or not isinstance(timeout, (int, float))
        ):
            raise ConfigError(
                "upstream_timeout must be a number of seconds", ("upstream_timeout",)
            )
        if timeout is not None and timeout < 0:
            raise ConfigError(
                "upstream_timeout must be non-negative", ("upstream_timeout",)
            )
        # None means no deadline
        self.upstream_timeout: Optional[float] = timeout or None

    def generate_config_section(self, **kwargs: Any) -> str:
        return DEFAULT_CONFIG
