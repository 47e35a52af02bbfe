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

"""服务器密钥相关的REST API端点"""

import logging
from http import HTTPStatus
from typing import TYPE_CHECKING, Tuple

from twisted.web.server import Request

from aliasproxy.api.errors import NotFoundError
from aliasproxy.api.urls import SERVER_KEY_PREFIX
from aliasproxy.http.server import UNRECOGNIZED_REQUEST_MESSAGE, path_pattern
from aliasproxy.http.servlet import RestServlet
from aliasproxy.types import JsonDict

if TYPE_CHECKING:
    from aliasproxy.server import ProxyServer

logger = logging.getLogger(__name__)

NO_KEYS_MESSAGE = "No server keys found"


class LocalKey(RestServlet):
    """返回请求 Host 对应域名的服务器密钥

    GET /_matrix/key/v2/server
    """

    PATTERNS = [path_pattern(SERVER_KEY_PREFIX + "/server")]

    def __init__(self, hs: "ProxyServer"):
        super().__init__()
        self.key_signer = hs.get_key_signer()

    async def on_GET(self, request: Request) -> Tuple[int, JsonDict]:
        # getRequestHostname 不包含端口
        domain = request.getRequestHostname().decode("ascii", errors="replace")
        response = self.key_signer.server_key_for(domain)
        if response is None:
            raise NotFoundError(NO_KEYS_MESSAGE)
        return HTTPStatus.OK, response


class RemoteKey(RestServlet):
    """返回指定服务器名的服务器密钥

    GET /_matrix/key/v2/query/<server_name>
    """

    PATTERNS = [path_pattern(SERVER_KEY_PREFIX + "/query/(?P<server_name>[^/]*)")]

    def __init__(self, hs: "ProxyServer"):
        super().__init__()
        self.key_signer = hs.get_key_signer()

    async def on_GET(self, request: Request, server_name: str) -> Tuple[int, JsonDict]:
        # 路径参数已解码，%2F 也不允许
        if "/" in server_name:
            raise NotFoundError(UNRECOGNIZED_REQUEST_MESSAGE)

        response = self.key_signer.server_key_for(server_name)
        if response is None:
            raise NotFoundError(NO_KEYS_MESSAGE)
        return HTTPStatus.OK, response
