"""Types for Keyresolve"""

import os
from typing import Union, List, Dict, TypedDict

StrPath = Union[str, os.PathLike[str]]

class UserMapping(TypedDict, total=False):
    """Mapping entry linking a local username to per-source handles"""
    github: str
    gitlab: str
    ldap: str
    static_keys: List[str]

class CacheConfig(TypedDict):
    """In-process resolution cache settings. ttl is in seconds."""
    enabled: bool
    ttl: float
    max_size: int

class HostingConfig(TypedDict):
    """Source-hosting platform settings"""
    url: str
    token: str

class LDAPConfig(TypedDict):
    """Directory service settings"""
    url: str
    bind_dn: str
    bind_password: str
    base_dn: str
    key_attribute: str

class Config(TypedDict):
    """Fully loaded configuration with defaults filled in"""
    mappings: Dict[str, UserMapping]
    cache: CacheConfig
    github: HostingConfig
    gitlab: HostingConfig
    ldap: LDAPConfig
