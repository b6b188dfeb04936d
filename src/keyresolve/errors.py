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
"""Exceptions raised by Keyresolve"""

__all__ = ["KeyResolveError", "ConfigError", "UnknownUserError",
           "NoKeysFoundError", "KeyLookupError", "RemoteError", "NotFoundError"]


class KeyResolveError(Exception):
    """Base class for all Keyresolve errors."""


class ConfigError(KeyResolveError):
    """The configuration file is missing, unreadable or malformed."""


class UnknownUserError(KeyResolveError):
    """The username has no entry in the mapping table."""

    def __init__(self, username: str):
        super().__init__(f"no mapping found for user: {username}")
        self.username = username


class NoKeysFoundError(KeyResolveError):
    """None of the sources configured for the username produced a key."""

    def __init__(self, username: str):
        super().__init__(f"no keys found for user: {username}")
        self.username = username


class KeyLookupError(KeyResolveError):
    """A single provider failed to fetch keys. The resolver logs these and
    moves on to the next source."""


class RemoteError(KeyLookupError):
    """A hosting platform answered with a non-200 status."""

    def __init__(self, source: str, status: int):
        super().__init__(f"{source} returned status: {status}")
        self.source = source
        self.status = status


class NotFoundError(KeyLookupError):
    """No directory entry matched the handle."""

    def __init__(self, handle: str):
        super().__init__(f"user not found: {handle}")
        self.handle = handle
