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
from http import HTTPStatus
from typing import TYPE_CHECKING, Tuple

from twisted.web.server import Request

from aliasproxy.api.urls import WELL_KNOWN_PREFIX
from aliasproxy.http.server import path_pattern
from aliasproxy.http.servlet import RestServlet
from aliasproxy.types import JsonDict

if TYPE_CHECKING:
    from aliasproxy.server import ProxyServer

logger = logging.getLogger(__name__)


class ServerWellKnownServlet(RestServlet):
    """Delegates federation traffic for the proxied domains."""

    PATTERNS = [path_pattern(WELL_KNOWN_PREFIX + "/server")]

    def __init__(self, hs: "ProxyServer"):
        super().__init__()
        self._server_well_known = hs.config.server.server_well_known

    async def on_GET(self, request: Request) -> Tuple[int, JsonDict]:
        return HTTPStatus.OK, {"m.server": self._server_well_known}
