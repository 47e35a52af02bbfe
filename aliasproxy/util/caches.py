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
import threading
from typing import Dict, List, Optional

import attr

from aliasproxy.types import RoomDirectoryResult
from aliasproxy.util import Clock

logger = logging.getLogger(__name__)


@attr.s(slots=True, frozen=True, auto_attribs=True)
class CacheEntry:
    target_alias: str
    room_id: str
    servers: List[str]
    fetched_at: float
    exists: bool

    def to_result(self) -> RoomDirectoryResult:
        return RoomDirectoryResult(
            room_id=self.room_id, servers=list(self.servers), exists=self.exists
        )


class ResolutionCache:
    """Holds the last known resolution of each target alias.

    Both positive and negative results are kept for ``ttl`` seconds. Entries are
    replaced wholesale on refresh and never evicted otherwise.

    The lock only covers the synchronous read-check-write sections, so a slow
    upstream lookup for one alias never blocks the others.

    Args:
        clock: source of the current time.
        ttl: how long, in seconds, an entry counts as fresh.
    """

    def __init__(self, clock: Clock, ttl: float):
        self._clock = clock
        self._ttl = ttl
        self._lock = threading.Lock()
        self._entries: Dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def get(self, key: str) -> Optional[CacheEntry]:
        """Returns the entry for ``key`` regardless of its age."""
        with self._lock:
            return self._entries.get(key)

    def get_fresh(self, key: str) -> Optional[CacheEntry]:
        """Returns the entry for ``key`` if it is still within its TTL."""
        now = self._clock.time()
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry.fetched_at + self._ttl > now:
                return entry
            return None

    def store(self, key: str, result: RoomDirectoryResult) -> CacheEntry:
        """Records the outcome of a resolution attempt.

        A failed attempt never replaces a positive entry: the previous entry is
        returned untouched, including its ``fetched_at``, so that the next
        access tries the homeserver again.

        Returns:
            The entry that should be served for this attempt.
        """
        now = self._clock.time()
        with self._lock:
            previous = self._entries.get(key)
            if previous is not None and previous.exists and not result.exists:
                logger.warning(
                    "Using expired cached result for %s as new resolving failed", key
                )
                return previous

            entry = CacheEntry(
                target_alias=key,
                room_id=result.room_id,
                servers=list(result.servers),
                fetched_at=now,
                exists=result.exists,
            )
            self._entries[key] = entry
            return entry
