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

import base64
import json
import logging
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple
from urllib.parse import quote, unquote

from twisted.internet import defer
from twisted.web.client import Agent, readBody
from twisted.web.http_headers import Headers
from twisted.web.iweb import IAgent

from aliasproxy import __version__
from aliasproxy.api.urls import DIRECTORY_ROOM_PATH
from aliasproxy.types import RoomDirectoryResult

if TYPE_CHECKING:
    from aliasproxy.server import ProxyServer

logger = logging.getLogger(__name__)

USER_AGENT = "aliasproxy/%s" % (__version__,)

# Characters left unescaped in a single path segment
_PATH_SEGMENT_SAFE = "$&+:=@"


def directory_path(room_alias: str) -> str:
    """Returns the room directory path for a room alias, percent-encoded."""
    return DIRECTORY_ROOM_PATH + quote(room_alias, safe=_PATH_SEGMENT_SAFE)


def parse_directory_response(body: bytes) -> RoomDirectoryResult:
    """Decodes a room directory response body.

    Raises:
        ValueError: if the body is not a JSON object with a room ID and a list
            of server names.
    """
    content = json.loads(body.decode("utf-8"))
    if not isinstance(content, dict):
        raise ValueError("response is not a JSON object")

    room_id = content.get("room_id")
    if not isinstance(room_id, str) or not room_id:
        raise ValueError("response has no room_id")

    servers = content.get("servers")
    if servers is None:
        servers = []
    if not isinstance(servers, list) or not all(isinstance(s, str) for s in servers):
        raise ValueError("servers is not a list of strings")

    return RoomDirectoryResult(room_id=room_id, servers=servers, exists=True)


class DirectoryClient:
    """Looks up room aliases in the homeserver's room directory.

    Every outcome other than a 200 response with a valid body is logged and
    returned as a failed attempt, so callers never see an exception.

    Args:
        hs: the proxy server, for the reactor and configuration.
        agent: the HTTP agent to send requests with. Defaults to a new
            ``twisted.web.client.Agent``.
    """

    def __init__(self, hs: "ProxyServer", agent: Optional[IAgent] = None):
        self.reactor = hs.get_reactor()
        server_config = hs.config.server
        self._homeserver = server_config.homeserver
        self._timeout = server_config.upstream_timeout
        self.agent = agent if agent is not None else Agent(self.reactor)

        self._headers: Dict[bytes, List[bytes]] = {
            b"User-Agent": [USER_AGENT.encode("ascii")],
            b"Accept": [b"application/json"],
        }
        if self._homeserver.username is not None:
            credentials = "%s:%s" % (
                unquote(self._homeserver.username),
                unquote(self._homeserver.password or ""),
            )
            self._headers[b"Authorization"] = [
                b"Basic " + base64.b64encode(credentials.encode("utf-8"))
            ]

    def directory_uri(self, room_alias: str) -> bytes:
        return (self._homeserver.base_url + directory_path(room_alias)).encode("ascii")

    async def _fetch(self, uri: bytes) -> Tuple[int, bytes, bytes]:
        response = await self.agent.request(b"GET", uri, Headers(self._headers))
        body = await readBody(response)
        return response.code, response.phrase, body

    async def get_room_alias(self, room_alias: str) -> RoomDirectoryResult:
        """Resolves a room alias against the homeserver.

        Args:
            room_alias: the alias to look up.

        Returns:
            The result, with ``exists=False`` if the attempt failed.
        """
        d = defer.ensureDeferred(self._fetch(self.directory_uri(room_alias)))
        if self._timeout:
            d.addTimeout(self._timeout, self.reactor)

        try:
            code, phrase, body = await d
        except Exception as e:
            logger.warning("Failed to resolve %s: %r", room_alias, e)
            return RoomDirectoryResult.failed()

        if code != 200:
            logger.warning(
                "Resolving %s responded with HTTP %d %s",
                room_alias,
                code,
                phrase.decode("ascii", errors="replace"),
            )
            return RoomDirectoryResult.failed()

        try:
            result = parse_directory_response(body)
        except ValueError as e:
            logger.warning("Failed to parse response when resolving %s: %s", room_alias, e)
            return RoomDirectoryResult.failed()

        logger.info(
            "Successfully resolved %s -> %s with %d servers",
            room_alias,
            result.room_id,
            len(result.servers),
        )
        return result
