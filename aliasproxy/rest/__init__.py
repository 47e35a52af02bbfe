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
from typing import TYPE_CHECKING

from aliasproxy.http.server import JsonResource
from aliasproxy.rest import federation, key, well_known

if TYPE_CHECKING:
    from aliasproxy.server import ProxyServer

logger = logging.getLogger(__name__)


class ProxyRestResource(JsonResource):
    """A resource for every endpoint the proxy serves."""

    def __init__(self, hs: "ProxyServer"):
        super().__init__()
        self.register_servlets(self, hs)

    @staticmethod
    def register_servlets(resource: JsonResource, hs: "ProxyServer") -> None:
        federation.DirectoryQueryServlet(hs).register(resource)
        federation.FederationVersionServlet().register(resource)

        if hs.config.server.server_well_known:
            well_known.ServerWellKnownServlet(hs).register(resource)

        if hs.get_key_signer().has_identities():
            key.LocalKey(hs).register(resource)
            key.RemoteKey(hs).register(resource)
        else:
            logger.info("No server keys configured, not serving /_matrix/key/v2")
