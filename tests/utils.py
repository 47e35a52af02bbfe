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

import json
from typing import Any, Dict, List, Optional

from twisted.internet import defer, task
from twisted.python.failure import Failure
from twisted.web.client import ResponseDone

from aliasproxy.config import ProxyConfig
from aliasproxy.server import ProxyServer
from aliasproxy.types import RoomDirectoryResult


def default_config(**overrides: Any) -> Dict[str, Any]:
    config: Dict[str, Any] = {
        "homeserver_url": "https://hs.example",
        "listen": "127.0.0.1:8080",
        "cache_ttl": 60,
        "upstream_timeout": 5,
        "aliases": {},
        "patterns": {},
    }
    config.update(overrides)
    return config


def make_config(**overrides: Any) -> ProxyConfig:
    return ProxyConfig.from_dict(default_config(**overrides))


def setup_test_proxy(
    config: Optional[ProxyConfig] = None,
    reactor: Optional[task.Clock] = None,
    directory_client: Any = None,
) -> ProxyServer:
    """Builds a ProxyServer on a fake clock, optionally with a fake upstream client."""
    hs = ProxyServer(config or make_config(), reactor or task.Clock())
    if directory_client is not None:
        hs.directory_client = directory_client
    return hs


class FakeDirectoryClient:
    """Stands in for the upstream homeserver; results are set per alias."""

    def __init__(self) -> None:
        self.results: Dict[str, RoomDirectoryResult] = {}
        self.calls: List[str] = []

    def set_room(self, alias: str, room_id: str, servers: List[str]) -> None:
        self.results[alias] = RoomDirectoryResult(room_id=room_id, servers=servers, exists=True)

    def set_failing(self, alias: str) -> None:
        self.results[alias] = RoomDirectoryResult.failed()

    async def get_room_alias(self, room_alias: str) -> RoomDirectoryResult:
        self.calls.append(room_alias)
        return self.results.get(room_alias, RoomDirectoryResult.failed())


class FakeResponse:
    """An IResponse that delivers its whole body at once."""

    def __init__(self, code: int, body: Any, phrase: bytes = b"OK"):
        if not isinstance(body, bytes):
            body = json.dumps(body).encode("utf-8")
        self.code = code
        self.phrase = phrase
        self.length = len(body)
        self._body = body

    def deliverBody(self, protocol: Any) -> None:
        protocol.dataReceived(self._body)
        protocol.connectionLost(Failure(ResponseDone()))


class FakeAgent:
    """Records requests; answers with a response, an error or never."""

    def __init__(self, response: Optional[FakeResponse] = None, error: Optional[Exception] = None):
        self.response = response
        self.error = error
        self.requests: List[Any] = []

    def request(self, method: bytes, uri: bytes, headers: Any = None, bodyProducer: Any = None) -> defer.Deferred:
        self.requests.append((method, uri, headers))
        if self.error is not None:
            return defer.fail(self.error)
        if self.response is None:
            return defer.Deferred()
        return defer.succeed(self.response)


class FakeRequest:
    """Just enough of twisted.web.server.Request for JsonResource."""

    def __init__(
        self,
        method: bytes,
        path: bytes,
        args: Optional[Dict[bytes, List[bytes]]] = None,
        host: bytes = b"example.org",
    ):
        self.method = method
        self.path = path
        self.args = args or {}
        self.finished = False
        self.code = 200
        self.headers: Dict[bytes, bytes] = {}
        self.written: List[bytes] = []
        self._host = host

    def getRequestHostname(self) -> bytes:
        return self._host

    def setResponseCode(self, code: int) -> None:
        self.code = code

    def setHeader(self, name: bytes, value: bytes) -> None:
        self.headers[name] = value

    def write(self, data: bytes) -> None:
        self.written.append(data)

    def finish(self) -> None:
        self.finished = True

    def json_body(self) -> Any:
        return json.loads(b"".join(self.written).decode("utf-8"))
