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

"""This module contains base REST classes for constructing REST servlets."""

import logging
from typing import TYPE_CHECKING, Iterable, Optional, Pattern

from twisted.web.server import Request

if TYPE_CHECKING:
    from aliasproxy.http.server import JsonResource

logger = logging.getLogger(__name__)


def parse_string(
    request: Request,
    name: str,
    default: Optional[str] = None,
) -> Optional[str]:
    """Parse a string parameter from the request query string.

    Args:
        request: the twisted HTTP request.
        name: the name of the query parameter.
        default: value to use if the parameter is absent.

    Returns:
        The first value of the parameter, utf-8 decoded, or ``default``.
    """
    args = request.args or {}
    values = args.get(name.encode("ascii"))
    if not values:
        return default
    return values[0].decode("utf-8", errors="replace")


class RestServlet:
    """A Synapse-style REST Servlet.

    Subclasses set ``PATTERNS`` to a list of compiled path patterns and define
    ``on_GET`` (or ``on_<METHOD>``) coroutines returning ``(code, json)``.
    """

    PATTERNS: Iterable[Pattern[str]] = ()

    def register(self, http_server: "JsonResource") -> None:
        """Register this servlet with the given HTTP server."""
        for method in ("GET", "PUT", "POST", "DELETE"):
            if hasattr(self, "on_%s" % (method,)):
                method_handler = getattr(self, "on_%s" % (method,))
                http_server.register_paths(
                    method, self.PATTERNS, method_handler, self.__class__.__name__
                )
