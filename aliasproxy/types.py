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

from typing import Any, Dict, List

import attr

# JSON object as it is sent or received on the wire
JsonDict = Dict[str, Any]


@attr.s(slots=True, frozen=True, auto_attribs=True)
class RoomDirectoryResult:
    """The outcome of resolving a room alias against the homeserver.

    A failed attempt is represented with ``exists=False`` and empty
    ``room_id``/``servers``.
    """

    room_id: str = ""
    servers: List[str] = attr.Factory(list)
    exists: bool = False

    @classmethod
    def failed(cls) -> "RoomDirectoryResult":
        return cls()

    def to_json(self) -> JsonDict:
        return {"room_id": self.room_id, "servers": list(self.servers)}
