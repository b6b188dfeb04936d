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
"""KeyManager class for Keyresolve"""

import logging
from typing import Dict, List, Optional

from .cache import KeyCache
from .config import load_config
from .errors import UnknownUserError, NoKeysFoundError, KeyLookupError
from .providers import KeyProvider, StaticProvider, LDAPProvider, github_provider, gitlab_provider
from .types import StrPath, Config

__all__ = ["KeyManager", "SOURCES"]

# Resolution order: source name, label used in log messages, and the
# annotation written before that source's keys
SOURCES = (
    ("static", "static", "# static: {username}"),
    ("github", "GitHub", "# github: {username} ({handle})"),
    ("gitlab", "GitLab", "# gitlab: {username} ({handle})"),
    ("ldap", "LDAP", "# ldap: {username}"),
)


class KeyManager():
    """Resolves a local username to the keys published for it by each source
    in its mapping."""

    def __init__(self, config: Config, providers: Optional[Dict[str, KeyProvider]] = None):

        self.mappings = config["mappings"]

        if providers is None:
            providers = {
                "static": StaticProvider(self.mappings),
                # The hosting platforms have public defaults, so these are
                # always available
                "github": github_provider(config["github"]),
                "gitlab": gitlab_provider(config["gitlab"]),
            }
            if config["ldap"]["url"]:
                providers["ldap"] = LDAPProvider(config["ldap"])

        self.providers = providers

        self.cache: Optional[KeyCache] = None
        if config["cache"]["enabled"]:
            self.cache = KeyCache(ttl=config["cache"]["ttl"], max_size=config["cache"]["max_size"])

    @classmethod
    def from_file(cls, path: StrPath) -> "KeyManager":
        """Load the configuration file at path and build a KeyManager from it."""
        return cls(load_config(path))

    def get_keys(self, username: str) -> List[str]:
        """Returns annotation and key lines for every source that produced
        keys for username. Raises UnknownUserError if username has no
        mapping, and NoKeysFoundError if no source produced anything."""

        mapping = self.mappings.get(username)
        if mapping is None:
            raise UnknownUserError(username)

        if self.cache is not None:
            cached = self.cache.get(username)
            if cached is not None:
                logging.debug("Cache hit for %s", username)
                return cached

        all_keys: List[str] = []

        for source, label, annotation in SOURCES:

            # Static keys are looked up by the local username itself
            if source == "static":
                handle = username if mapping.get("static_keys") else ""
            else:
                handle = mapping.get(source, "")

            if not handle:
                continue

            provider = self.providers.get(source)
            if provider is None:
                logging.debug("No %s provider configured, skipping it for %s", label, username)
                continue

            try:
                keys = provider.get_keys(handle)
            except KeyLookupError as err:
                logging.warning("Error fetching %s keys for %s: %s", label, username, err)
                continue

            if not keys:
                logging.info("No %s keys found for %s (%s)", label, username, handle)
                continue

            all_keys.append(annotation.format(username=username, handle=handle))
            all_keys.extend(keys)

        if not all_keys:
            raise NoKeysFoundError(username)

        if self.cache is not None:
            self.cache.set(username, all_keys)

        return all_keys
