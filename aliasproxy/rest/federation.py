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

"""联邦查询相关的REST API端点"""

import logging
from http import HTTPStatus
from typing import TYPE_CHECKING, Tuple

from twisted.web.server import Request

from aliasproxy import __version__
from aliasproxy.api.urls import FEDERATION_V1_PREFIX
from aliasproxy.http.server import path_pattern
from aliasproxy.http.servlet import RestServlet, parse_string
from aliasproxy.types import JsonDict

if TYPE_CHECKING:
    from aliasproxy.server import ProxyServer

logger = logging.getLogger(__name__)


class DirectoryQueryServlet(RestServlet):
    """处理联邦房间别名查询"""

    PATTERNS = [path_pattern(FEDERATION_V1_PREFIX + "/query/directory")]

    def __init__(self, hs: "ProxyServer"):
        super().__init__()
        self.directory_handler = hs.get_directory_handler()

    async def on_GET(self, request: Request) -> Tuple[int, JsonDict]:
        """查询别名

        查询参数:
        - room_alias: 要解析的房间别名
        """
        room_alias = parse_string(request, "room_alias", default="")
        result = await self.directory_handler.on_directory_query(room_alias)
        return HTTPStatus.OK, result


class FederationVersionServlet(RestServlet):
    PATTERNS = [path_pattern(FEDERATION_V1_PREFIX + "/version")]

    async def on_GET(self, request: Request) -> Tuple[int, JsonDict]:
        return HTTPStatus.OK, {
            "server": {"name": "aliasproxy", "version": __version__}
        }
