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
"""Key providers. Each one turns an identity handle into a list of public
key lines for a single source."""

import logging
import urllib.parse
from typing import Dict, List, Optional, Protocol

import ldap3
import requests
from ldap3.core.exceptions import LDAPException
from ldap3.utils.conv import escape_filter_chars

from .errors import KeyLookupError, RemoteError, NotFoundError
from .types import HostingConfig, LDAPConfig, UserMapping

__all__ = ["KeyProvider", "StaticProvider", "HostingPlatformProvider",
           "LDAPProvider", "github_provider", "gitlab_provider"]

HTTP_TIMEOUT = 10
LDAP_TIMEOUT = 10

GITHUB_URL = "https://github.com/"
GITLAB_URL = "https://gitlab.com/"


class KeyProvider(Protocol):
    """Anything that can fetch the keys published for a handle. Raises
    KeyLookupError on failure."""

    def get_keys(self, handle: str) -> List[str]:
        """Returns the key lines published for handle."""


class StaticProvider():
    """Serves the static_keys configured in the mapping table."""

    def __init__(self, mappings: Dict[str, UserMapping]):
        self.mappings = mappings

    def get_keys(self, handle: str) -> List[str]:
        """Returns the configured keys for the username, in configured order."""
        return list(self.mappings.get(handle, {}).get("static_keys", []))


class HostingPlatformProvider():
    """Fetches the plain-text <handle>.keys listing a source-hosting platform
    publishes for each of its users."""

    def __init__(self, name: str, base_url: str, token: str = "",
                 token_header: str = "Authorization", token_prefix: str = "",
                 session: Optional[requests.Session] = None):

        self.name = name

        # The handle is appended directly, so this must end with a slash
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"

        self.session = session if session is not None else requests.Session()
        if token:
            self.session.headers.update({token_header: token_prefix + token})

    def key_url(self, handle: str) -> str:
        """Returns the public keys URL for handle."""
        return f"{self.base_url}{urllib.parse.quote(handle, safe='')}.keys"

    def get_keys(self, handle: str) -> List[str]:
        """Fetch and split the key listing for handle."""

        url = self.key_url(handle)
        logging.debug("Fetching %s keys from %s", self.name, url)

        try:
            response = self.session.get(url, timeout=HTTP_TIMEOUT)
        except requests.exceptions.RequestException as err:
            raise KeyLookupError(f"{self.name} request failed: {err}") from err

        if response.status_code != 200:
            raise RemoteError(self.name, response.status_code)

        # Blank lines are not keys
        return [line.strip() for line in response.text.strip().splitlines() if line.strip()]


def github_provider(config: HostingConfig, session: Optional[requests.Session] = None) -> HostingPlatformProvider:
    """Provider for github.com, or a GitHub Enterprise instance if a URL is
    configured."""
    return HostingPlatformProvider("GitHub", config["url"] or GITHUB_URL, config["token"],
                                   token_header="Authorization", token_prefix="token ",
                                   session=session)

def gitlab_provider(config: HostingConfig, session: Optional[requests.Session] = None) -> HostingPlatformProvider:
    """Provider for gitlab.com, or a self-managed GitLab if a URL is
    configured."""
    return HostingPlatformProvider("GitLab", config["url"] or GITLAB_URL, config["token"],
                                   token_header="PRIVATE-TOKEN", session=session)


class LDAPProvider():
    """Reads public keys from an attribute of a directory entry matching
    uid=<handle>."""

    def __init__(self, config: LDAPConfig):
        self.config = config

    def connect(self) -> ldap3.Connection:
        """Returns an unbound connection to the configured directory."""
        server = ldap3.Server(self.config["url"], connect_timeout=LDAP_TIMEOUT, get_info=ldap3.NONE)
        return ldap3.Connection(server,
                                user=self.config["bind_dn"] or None,
                                password=self.config["bind_password"] or None,
                                receive_timeout=LDAP_TIMEOUT,
                                read_only=True)

    def get_keys(self, handle: str) -> List[str]:
        """Search the directory for handle and return all values of the key
        attribute on the first matching entry."""

        attribute = self.config["key_attribute"]
        search_filter = f"(uid={escape_filter_chars(handle)})"

        conn = None
        try:
            # A malformed URL is rejected by ldap3.Server itself
            conn = self.connect()
            if not conn.bind():
                raise KeyLookupError(f"LDAP bind failed: {conn.result.get('description')}")

            conn.search(self.config["base_dn"], search_filter,
                        search_scope=ldap3.SUBTREE, attributes=[attribute])

            entries = [e for e in conn.response or [] if e.get("type") == "searchResEntry"]
            if not entries:
                # noSuchObject and friends come back as a result code rather than an exception
                if conn.result and conn.result.get("result", 0) != 0:
                    raise KeyLookupError(f"LDAP search failed: {conn.result.get('description')}")
                raise NotFoundError(handle)

            values = entries[0].get("raw_attributes", {}).get(attribute, [])
            return [v.decode("utf-8") if isinstance(v, bytes) else str(v) for v in values]

        except (LDAPException, UnicodeDecodeError) as err:
            raise KeyLookupError(f"LDAP lookup failed: {err}") from err

        finally:
            if conn is not None:
                try:
                    conn.unbind()
                except LDAPException as err:
                    logging.debug("Error closing LDAP connection: %s", err)
