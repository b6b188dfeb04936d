"""
Resolves a local username to the SSH public keys published for it by one or more identity sources (static keys, GitHub, GitLab and LDAP).
"""
from .keymanager import KeyManager
from .config import load_config

__all__ = ["KeyManager", "load_config"]
