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

"""Contains exceptions and error codes."""

import logging
from enum import Enum
from http import HTTPStatus
from typing import Any, Dict

logger = logging.getLogger(__name__)


class Codes(str, Enum):
    """Matrix error codes returned by the proxy."""

    NOT_FOUND = "M_NOT_FOUND"
    UNKNOWN = "M_UNKNOWN"


class ProxyError(Exception):
    """A base exception used to signal an error response to the requesting server.

    Args:
        code: The HTTP status code to send back.
        msg: The human readable error message.
        errcode: The Matrix error code, e.g. 'M_NOT_FOUND'.
    """

    def __init__(self, code: int, msg: str, errcode: str = Codes.UNKNOWN):
        super().__init__("%d: %s" % (code, msg))
        self.code = int(code)
        self.msg = msg
        self.errcode = errcode

    def error_dict(self) -> Dict[str, Any]:
        return {"errcode": self.errcode, "error": self.msg}


class NotFoundError(ProxyError):
    """An error indicating we can't find the thing you asked for"""

    def __init__(self, msg: str = "Not found", errcode: str = Codes.NOT_FOUND):
        super().__init__(HTTPStatus.NOT_FOUND, msg, errcode=errcode)
