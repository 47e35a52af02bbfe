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
import logging
import re
import urllib.parse
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Pattern, Tuple

import attr

from twisted.internet import defer
from twisted.web.resource import Resource
from twisted.web.server import NOT_DONE_YET, Request

from aliasproxy.api.errors import NotFoundError, ProxyError
from aliasproxy.types import JsonDict

logger = logging.getLogger(__name__)

UNRECOGNIZED_REQUEST_MESSAGE = (
    "This is an alias proxy instance that doesn't handle anything other than "
    "federation alias queries"
)

ServletCallback = Callable[..., Awaitable[Tuple[int, JsonDict]]]


@attr.s(slots=True, frozen=True, auto_attribs=True)
class _PathEntry:
    pattern: Pattern[str]
    callback: ServletCallback
    servlet_classname: str


def respond_with_json(request: Request, code: int, json_object: Any) -> None:
    """Sends a JSON response and finishes the request.

    Args:
        request: The HTTP request to respond to.
        code: The HTTP status code.
        json_object: The JSON object to send.
    """
    if request.finished or getattr(request, "_disconnected", False):
        logger.warning("Not sending response to request %r, already disconnected.", request)
        return

    body = json.dumps(json_object, ensure_ascii=False).encode("utf-8")
    request.setResponseCode(code)
    request.setHeader(b"Content-Type", b"application/json")
    request.setHeader(b"Content-Length", b"%d" % (len(body),))
    request.write(body)
    request.finish()


class JsonResource(Resource):
    """This resource will asynchronously run a callback registered for the
    request's method and path, and write its JSON result to the client.

    Callbacks are registered with ``register_paths``. Any error, including
    unexpected exceptions and unknown routes, is answered with a 404
    ``M_NOT_FOUND`` JSON body.
    """

    isLeaf = True

    def __init__(self) -> None:
        super().__init__()
        self._routes: Dict[bytes, List[_PathEntry]] = {}

    def register_paths(
        self,
        method: str,
        path_patterns: Iterable[Pattern[str]],
        callback: ServletCallback,
        servlet_classname: str,
    ) -> None:
        method_bytes = method.encode("utf-8")
        for path_pattern in path_patterns:
            logger.debug("Registering for %s %s", method, path_pattern.pattern)
            self._routes.setdefault(method_bytes, []).append(
                _PathEntry(path_pattern, callback, servlet_classname)
            )

    def render(self, request: Request) -> int:
        defer.ensureDeferred(self._async_render_wrapper(request))
        return NOT_DONE_YET

    def _get_handler_for_request(
        self, request: Request
    ) -> Tuple[ServletCallback, str, Dict[str, str]]:
        request_path = request.path.decode("ascii")
        for entry in self._routes.get(request.method, []):
            m = entry.pattern.match(request_path)
            if m:
                kwargs = {
                    name: urllib.parse.unquote(value)
                    for name, value in m.groupdict().items()
                }
                return entry.callback, entry.servlet_classname, kwargs

        raise NotFoundError(UNRECOGNIZED_REQUEST_MESSAGE)

    async def _async_render_wrapper(self, request: Request) -> None:
        servlet_classname = "unrecognised"
        try:
            callback, servlet_classname, kwargs = self._get_handler_for_request(request)
            code, response = await callback(request, **kwargs)
        except ProxyError as e:
            logger.info("%s %s: %s", request.method.decode("ascii"), request.path, e)
            code, response = e.code, e.error_dict()
        except Exception:
            logger.exception("Failed to handle request %r via %s", request, servlet_classname)
            error = NotFoundError()
            code, response = error.code, error.error_dict()

        respond_with_json(request, code, response)


def path_pattern(path: str) -> Pattern[str]:
    """Compiles a servlet path into a pattern matching the whole request path."""
    return re.compile("^" + path + "$")
