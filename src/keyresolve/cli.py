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
"""Resolves the authorized SSH public keys for a user"""

import argparse
import logging
import os
import sys
from keyresolve.errors import KeyResolveError
from keyresolve.keymanager import KeyManager


def main():
    """Print the keys resolved for a username, one per line."""

    parser = argparse.ArgumentParser(description="""Resolves a local username
    to the SSH public keys published for it by the static, GitHub, GitLab and
    LDAP sources in its mapping, and prints them one per line. Suitable for use
    as an sshd AuthorizedKeysCommand.""")

    parser.add_argument(metavar="config_path", dest="config_path", action="store",
                        help="""Path to the JSON configuration file holding
                        the user mappings and source settings.""")

    parser.add_argument(metavar="username", dest="username", action="store",
                        help="""Local username to resolve keys for.""")

    args = parser.parse_args()

    # sshd captures stderr, so stay quiet unless asked
    level = getattr(logging, os.environ.get("KEYRESOLVE_LOG_LEVEL", "").upper(), None)
    if not isinstance(level, int):
        level = logging.WARNING

    logging.basicConfig(level=level,
                        stream=sys.stderr,
                        format="%(asctime)s - %(levelname)s  - %(message)s")

    try:
        km = KeyManager.from_file(args.config_path)
    except KeyResolveError as err:
        logging.error("Error initializing key manager: %s", err)
        sys.exit(1)

    try:
        keys = km.get_keys(args.username)
    except KeyResolveError as err:
        logging.error("Error getting keys: %s", err)
        sys.exit(1)

    for key in keys:
        print(key)

if __name__ == "__main__":
    main()
