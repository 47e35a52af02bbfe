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

"""Contains the URL paths served by the proxy."""

FEDERATION_PREFIX = "/_matrix/federation"
FEDERATION_V1_PREFIX = FEDERATION_PREFIX + "/v1"
SERVER_KEY_PREFIX = "/_matrix/key/v2"
CLIENT_V3_PREFIX = "/_matrix/client/v3"
WELL_KNOWN_PREFIX = "/.well-known/matrix"

# Room directory endpoint on the homeserver, the room alias is appended
DIRECTORY_ROOM_PATH = CLIENT_V3_PREFIX + "/directory/room/"
