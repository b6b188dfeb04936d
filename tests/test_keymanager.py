#!/usr/bin/env python3
"""KeyManager tests"""

import pytest
from keyresolve.config import parse_config
from keyresolve.errors import UnknownUserError, NoKeysFoundError, RemoteError, NotFoundError, KeyLookupError
from keyresolve.keymanager import KeyManager
from keyresolve.providers import StaticProvider, HostingPlatformProvider, LDAPProvider


class FakeProvider():
    """Returns canned keys, or raises the given exception."""

    def __init__(self, keys=None, error=None):
        self.keys = keys or []
        self.error = error
        self.calls = []

    def get_keys(self, handle):
        """Records handle and returns or raises the canned answer."""
        self.calls.append(handle)
        if self.error is not None:
            raise self.error
        return list(self.keys)


def make_manager(mappings, cache=None, **providers):
    """KeyManager over mappings with the given providers injected."""
    config = parse_config({"mappings": mappings, "cache": cache or {}})
    all_providers = {"static": StaticProvider(config["mappings"])}
    all_providers.update(providers)
    return KeyManager(config, providers=all_providers)

def test_unknown_user():
    """A username with no mapping is an error, never an empty result."""
    km = make_manager({"alice": {"static_keys": ["k1"]}})

    with pytest.raises(UnknownUserError):
        km.get_keys("bob")

def test_empty_mapping():
    """A mapping with no handles and no static keys yields no keys."""
    github = FakeProvider(["k3"])
    km = make_manager({"alice": {}}, github=github)

    with pytest.raises(NoKeysFoundError):
        km.get_keys("alice")
    assert not github.calls

def test_static_then_github_order():
    """Static keys come first, each section led by its annotation line."""
    km = make_manager({"alice": {"static_keys": ["k1", "k2"], "github": "alice"}},
                      github=FakeProvider(["k3"]))

    assert km.get_keys("alice") == ["# static: alice", "k1", "k2", "# github: alice (alice)", "k3"]

def test_all_sources_order():
    """Sources are always consulted static, GitHub, GitLab, LDAP."""
    km = make_manager({"alice": {"ldap": "asmith", "gitlab": "alice-gl", "github": "alice-gh",
                                 "static_keys": ["k1"]}},
                      github=FakeProvider(["k2"]),
                      gitlab=FakeProvider(["k3", "k4"]),
                      ldap=FakeProvider(["k5"]))

    assert km.get_keys("alice") == ["# static: alice", "k1",
                                    "# github: alice (alice-gh)", "k2",
                                    "# gitlab: alice (alice-gl)", "k3", "k4",
                                    "# ldap: alice", "k5"]

def test_handles_passed_to_providers():
    """Each provider is asked for the handle from the mapping, not the local username."""
    github, gitlab, ldap = FakeProvider(["k1"]), FakeProvider(["k2"]), FakeProvider(["k3"])
    km = make_manager({"alice": {"github": "gh", "gitlab": "gl", "ldap": "uid"}},
                      github=github, gitlab=gitlab, ldap=ldap)
    km.get_keys("alice")

    assert (github.calls, gitlab.calls, ldap.calls) == (["gh"], ["gl"], ["uid"])

def test_failed_source_is_skipped(caplog):
    """A failing source contributes nothing and doesn't abort the resolution."""
    km = make_manager({"alice": {"github": "alice", "ldap": "alice"}},
                      github=FakeProvider(error=RemoteError("GitHub", 404)),
                      ldap=FakeProvider(["k1"]))

    assert km.get_keys("alice") == ["# ldap: alice", "k1"]
    assert "Error fetching GitHub keys for alice" in caplog.text

def test_all_sources_fail():
    """If every configured source fails the resolution fails."""
    km = make_manager({"alice": {"github": "alice", "gitlab": "alice", "ldap": "alice"}},
                      github=FakeProvider(error=RemoteError("GitHub", 500)),
                      gitlab=FakeProvider(error=KeyLookupError("timed out")),
                      ldap=FakeProvider(error=NotFoundError("alice")))

    with pytest.raises(NoKeysFoundError):
        km.get_keys("alice")

def test_source_with_no_keys_is_skipped():
    """A source that succeeds with nothing doesn't get an annotation line."""
    km = make_manager({"alice": {"github": "alice", "gitlab": "alice"}},
                      github=FakeProvider([]), gitlab=FakeProvider(["k1"]))

    assert km.get_keys("alice") == ["# gitlab: alice (alice)", "k1"]

def test_unconfigured_ldap_is_skipped():
    """An ldap handle is ignored when no directory is configured."""
    km = make_manager({"alice": {"ldap": "alice", "static_keys": ["k1"]}})

    assert km.get_keys("alice") == ["# static: alice", "k1"]

def test_unexpected_errors_propagate():
    """Only lookup errors are absorbed."""
    km = make_manager({"alice": {"github": "alice"}}, github=FakeProvider(error=ValueError("bug")))

    with pytest.raises(ValueError):
        km.get_keys("alice")

def test_idempotent():
    """Resolving twice gives the same result."""
    km = make_manager({"alice": {"static_keys": ["k1"], "gitlab": "alice"}},
                      gitlab=FakeProvider(["k2"]))

    assert km.get_keys("alice") == km.get_keys("alice")

def test_cache_read_through():
    """With the cache enabled a second resolution doesn't hit the providers."""
    github = FakeProvider(["k1"])
    km = make_manager({"alice": {"github": "alice"}}, cache={"enabled": True, "ttl": 60},
                      github=github)

    first = km.get_keys("alice")
    first.append("mutated")
    assert km.get_keys("alice") == ["# github: alice (alice)", "k1"]
    assert github.calls == ["alice"]

def test_failures_not_cached():
    """A failed resolution is retried on the next call."""
    github = FakeProvider(error=RemoteError("GitHub", 503))
    km = make_manager({"alice": {"github": "alice"}}, cache={"enabled": True}, github=github)

    for _ in range(2):
        with pytest.raises(NoKeysFoundError):
            km.get_keys("alice")
    assert github.calls == ["alice", "alice"]

def test_default_providers():
    """Hosting platform providers are always built, LDAP only with a URL."""
    km = KeyManager(parse_config({"mappings": {}}))
    assert isinstance(km.providers["github"], HostingPlatformProvider)
    assert isinstance(km.providers["gitlab"], HostingPlatformProvider)
    assert "ldap" not in km.providers
    assert km.cache is None

    km = KeyManager(parse_config({"mappings": {}, "ldap": {"url": "ldap://ldap.example.com"},
                                  "cache": {"enabled": True, "ttl": 30, "max_size": 10}}))
    assert isinstance(km.providers["ldap"], LDAPProvider)
    assert km.cache is not None and km.cache.max_size == 10

def test_malformed_ldap_url_is_isolated(caplog):
    """A directory URL ldap3 rejects only costs the LDAP keys."""
    config = parse_config({"mappings": {"alice": {"static_keys": ["k1"], "ldap": "alice"}},
                           "ldap": {"url": "ldap://ldap.example.com:notaport"}})

    assert KeyManager(config).get_keys("alice") == ["# static: alice", "k1"]
    assert "Error fetching LDAP keys for alice" in caplog.text
