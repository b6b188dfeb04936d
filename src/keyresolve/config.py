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
"""Loads and validates the JSON configuration file"""

import json
import logging
from typing import Any, Dict, List

from .errors import ConfigError
from .types import StrPath, Config, UserMapping, CacheConfig, HostingConfig, LDAPConfig

__all__ = ["load_config", "parse_config"]

DEFAULT_KEY_ATTRIBUTE = "sshPublicKey"


def load_config(path: StrPath) -> Config:
    """Read the configuration file at path. Raises ConfigError if the file
    can't be read or doesn't describe a valid configuration."""

    try:
        with open(path, "r", encoding="utf-8") as inf:
            data = json.load(inf)
    except FileNotFoundError as err:
        raise ConfigError(f"config file not found: {path}") from err
    except OSError as err:
        raise ConfigError(f"unable to read config file {path}: {err}") from err
    except (json.JSONDecodeError, UnicodeDecodeError) as err:
        raise ConfigError(f"malformed config file {path}: {err}") from err

    config = parse_config(data)
    logging.debug("Loaded %d user mappings from %s", len(config["mappings"]), path)
    return config

def parse_config(data: Any) -> Config:
    """Validate a decoded configuration document and fill in defaults for
    absent sections. Unknown keys are ignored."""

    if not isinstance(data, dict):
        raise ConfigError("config must be a JSON object")

    raw_mappings = _section(data, "mappings")
    mappings: Dict[str, UserMapping] = {}
    for username, raw_mapping in raw_mappings.items():
        mappings[username] = _parse_mapping(username, raw_mapping)

    return {
        "mappings": mappings,
        "cache": _parse_cache(_section(data, "cache")),
        "github": _parse_hosting("github", _section(data, "github")),
        "gitlab": _parse_hosting("gitlab", _section(data, "gitlab")),
        "ldap": _parse_ldap(_section(data, "ldap")),
    }

def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    """Returns the named object from data, or an empty dict if absent."""

    section = data.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigError(f"'{name}' must be a JSON object")
    return section

def _string(section: Dict[str, Any], key: str, where: str) -> str:
    value = section.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ConfigError(f"'{where}.{key}' must be a string")
    return value

def _parse_mapping(username: str, raw_mapping: Any) -> UserMapping:
    where = f"mappings.{username}"
    if not isinstance(raw_mapping, dict):
        raise ConfigError(f"'{where}' must be a JSON object")

    mapping: UserMapping = {}
    for field in ("github", "gitlab", "ldap"):
        handle = _string(raw_mapping, field, where)
        if handle:
            mapping[field] = handle

    static_keys = raw_mapping.get("static_keys")
    if static_keys is not None:
        if not isinstance(static_keys, list) or not all(isinstance(k, str) for k in static_keys):
            raise ConfigError(f"'{where}.static_keys' must be a list of strings")
        keys: List[str] = list(static_keys)
        if keys:
            mapping["static_keys"] = keys

    return mapping

def _parse_cache(section: Dict[str, Any]) -> CacheConfig:
    enabled = section.get("enabled", False)
    ttl = section.get("ttl", 0)
    max_size = section.get("max_size", 0)

    if not isinstance(enabled, bool):
        raise ConfigError("'cache.enabled' must be a boolean")

    # bool is a subclass of int, so reject it explicitly
    if isinstance(ttl, bool) or not isinstance(ttl, (int, float)) or ttl < 0:
        raise ConfigError("'cache.ttl' must be a non-negative number of seconds")
    if isinstance(max_size, bool) or not isinstance(max_size, int) or max_size < 0:
        raise ConfigError("'cache.max_size' must be a non-negative integer")

    return {"enabled": enabled, "ttl": float(ttl), "max_size": max_size}

def _parse_hosting(name: str, section: Dict[str, Any]) -> HostingConfig:
    return {"url": _string(section, "url", name), "token": _string(section, "token", name)}

def _parse_ldap(section: Dict[str, Any]) -> LDAPConfig:
    return {
        "url": _string(section, "url", "ldap"),
        "bind_dn": _string(section, "bind_dn", "ldap"),
        "bind_password": _string(section, "bind_password", "ldap"),
        "base_dn": _string(section, "base_dn", "ldap"),
        "key_attribute": _string(section, "key_attribute", "ldap") or DEFAULT_KEY_ATTRIBUTE,
    }
