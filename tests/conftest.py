"""Test fixtures."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from ldapauth.config import Config
from ldapauth.factory import Factory
from ldapauth.storage.ldap import DirectoryConnector

from .support.config import configure
from .support.constants import (
    ADMINS_DN,
    ALICE_DN,
    ALICE_PASSWORD,
    BASE_DN,
    BOB_DN,
    BOB_PASSWORD,
    CAROL_DN,
    CAROL_PASSWORD,
    OPERATORS_DN,
    SERVICE_DN,
    SERVICE_PASSWORD,
    STAFF_DN,
    TRICKY_DN,
    TRICKY_LOGIN,
)
from .support.ldap import MockLDAP, patch_ldap


@pytest.fixture(autouse=True)
def environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear environment variables that override the test configuration."""
    for variable in (
        "LDAPAUTH_CONFIG_PATH",
        "LDAPAUTH_ENABLED",
        "LDAPAUTH_LDAP_PASSWORD",
        "LDAPAUTH_LOG_LEVEL",
        "LDAPAUTH_LOG_PROFILE",
    ):
        monkeypatch.delenv(variable, raising=False)


@pytest.fixture
def config() -> Config:
    """Return the default test configuration."""
    return configure("ldap")


@pytest.fixture
def mock_ldap() -> Iterator[MockLDAP]:
    """Mock the LDAP server and populate it with test users and groups."""
    for mock_ldap in patch_ldap(SERVICE_DN, SERVICE_PASSWORD):
        mock_ldap.add_entry(
            BASE_DN, {"objectClass": ["top", "domain"], "dc": ["example"]}
        )
        mock_ldap.add_entry(
            SERVICE_DN, {"objectClass": ["top", "applicationProcess"]}
        )
        mock_ldap.add_user(
            ALICE_DN,
            "alice",
            password=ALICE_PASSWORD,
            cn=["alice"],
            displayName=["Alice Example"],
            mail=["alice@example.com"],
            memberOf=[ADMINS_DN],
        )
        mock_ldap.add_user(BOB_DN, "bob", password=BOB_PASSWORD, cn=["bob"])
        mock_ldap.add_user(
            CAROL_DN,
            "carol",
            password=CAROL_PASSWORD,
            cn=["carol"],
            displayName=["Carol Example"],
            mail=["carol@example.com", "carol@example.org"],
            memberOf=[
                STAFF_DN,
                "cn=unmapped,dc=example,dc=com",
                OPERATORS_DN,
                ADMINS_DN,
            ],
        )
        mock_ldap.add_user(
            TRICKY_DN, TRICKY_LOGIN, password="tricky", cn=["tricky"]
        )
        mock_ldap.add_group(ADMINS_DN, [ALICE_DN, CAROL_DN])
        mock_ldap.add_group(STAFF_DN, [CAROL_DN])
        mock_ldap.add_group(OPERATORS_DN, [CAROL_DN])
        yield mock_ldap


@pytest.fixture
def factory(config: Config, mock_ldap: MockLDAP) -> Iterator[Factory]:
    """Return a component factory using the mock LDAP server."""
    with Factory(config) as factory:
        yield factory


@pytest.fixture
def connector(factory: Factory) -> DirectoryConnector:
    """Return an LDAP connector using the mock LDAP server."""
    connector = factory.create_connector()
    assert connector
    return connector
