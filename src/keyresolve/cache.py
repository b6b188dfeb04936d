#!/usr/bin/env python3
# Copyright 2023 Cisco Systems, Inc. and its affiliates
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
#
# SPDX-License-Identifier: Apache-2.0
"""In-process resolution cache"""

import time
from collections import OrderedDict
from typing import Callable, List, Optional, Tuple

__all__ = ["KeyCache"]


class KeyCache():
    """Maps a username to its last resolution result. Entries older than ttl
    seconds are dropped on read, and once more than max_size entries are held
    the least recently used ones are evicted. A ttl or max_size of 0 disables
    that bound."""

    def __init__(self, ttl: float = 0, max_size: int = 0,
                 clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self.max_size = max_size
        self.clock = clock
        self.items: "OrderedDict[str, Tuple[List[str], float]]" = OrderedDict()

    def __len__(self) -> int:
        return len(self.items)

    def get(self, username: str) -> Optional[List[str]]:
        """Returns a copy of the cached keys, or None on a miss."""

        item = self.items.get(username)
        if item is None:
            return None

        keys, timestamp = item
        if self.ttl and self.clock() - timestamp >= self.ttl:
            del self.items[username]
            return None

        self.items.move_to_end(username)
        return list(keys)

    def set(self, username: str, keys: List[str]) -> None:
        """Store a copy of keys for username."""

        self.items[username] = (list(keys), self.clock())
        self.items.move_to_end(username)

        if self.max_size:
            while len(self.items) > self.max_size:
                self.items.popitem(last=False)

    def clear(self) -> None:
        """Drop every entry."""
        self.items.clear()
