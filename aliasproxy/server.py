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

# This file provides some classes for setting up (partially-populated)
# proxy servers; either as a full server or as a test fixture.

import functools
import logging
from typing import Any, Callable, TypeVar, cast

from twisted.internet.interfaces import IReactorCore
from twisted.web.resource import Resource

from aliasproxy.config import ProxyConfig
from aliasproxy.handlers.directory import AliasMapper, DirectoryHandler
from aliasproxy.handlers.keys import KeySigner
from aliasproxy.http.client import DirectoryClient
from aliasproxy.rest import ProxyRestResource
from aliasproxy.util import Clock
from aliasproxy.util.caches import ResolutionCache

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Callable[..., Any])


def cache_in_self(builder: T) -> T:
    """Wraps a function called e.g. `get_foo`, checking if `self.foo` exists and
    returning if so. If not, calls the given function and sets `self.foo` to it.
    """
    if not builder.__name__.startswith("get_"):
        raise Exception(
            "@cache_in_self can only be used on functions starting with `get_`"
        )

    depname = builder.__name__[len("get_") :]

    @functools.wraps(builder)
    def _get(self: "ProxyServer") -> Any:
        try:
            return getattr(self, depname)
        except AttributeError:
            pass

        dep = builder(self)
        setattr(self, depname, dep)
        return dep

    return cast(T, _get)


class ProxyServer:
    """A basic proxy server object.

    Components are built lazily on first use and then shared.

    Args:
        config: the loaded configuration, treated as read-only.
        reactor: the Twisted reactor to run on.
    """

    def __init__(self, config: ProxyConfig, reactor: IReactorCore):
        self.config = config
        self._reactor = reactor

    def get_reactor(self) -> IReactorCore:
        return self._reactor

    @cache_in_self
    def get_clock(self) -> Clock:
        return Clock(self._reactor)

    @cache_in_self
    def get_alias_mapper(self) -> AliasMapper:
        return AliasMapper(self.config.aliases.aliases, self.config.aliases.patterns)

    @cache_in_self
    def get_resolution_cache(self) -> ResolutionCache:
        return ResolutionCache(self.get_clock(), self.config.server.cache_ttl)

    @cache_in_self
    def get_directory_client(self) -> DirectoryClient:
        return DirectoryClient(self)

    @cache_in_self
    def get_directory_handler(self) -> DirectoryHandler:
        return DirectoryHandler(self)

    @cache_in_self
    def get_key_signer(self) -> KeySigner:
        return KeySigner(self)

    @cache_in_self
    def get_resource(self) -> Resource:
        return ProxyRestResource(self)
