"""Tests for the command-line interface."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from ldapauth.cli import main

from .support.config import config_path
from .support.constants import ALICE_DN, ALICE_PASSWORD, STAFF_DN
from .support.ldap import MockLDAP


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep log messages out of the command output."""
    monkeypatch.setenv("LDAPAUTH_LOG_LEVEL", "ERROR")


def test_help() -> None:
    runner = CliRunner()

    result = runner.invoke(main, ["-h"], catch_exceptions=False)
    assert result.exit_code == 0
    assert "Commands:" in result.output

    result = runner.invoke(main, ["help"], catch_exceptions=False)
    assert result.exit_code == 0
    assert "Commands:" in result.output

    result = runner.invoke(main, ["help", "lookup"], catch_exceptions=False)
    assert result.exit_code == 0
    assert "Commands:" not in result.output
    assert "LOGIN" in result.output

    result = runner.invoke(main, ["help", "unknown-command"])
    assert result.exit_code != 0
    assert "Unknown help topic unknown-command" in result.output


def test_check_config() -> None:
    runner = CliRunner()

    path = str(config_path("ldap"))
    result = runner.invoke(
        main, ["check-config", "--config-path", path], catch_exceptions=False
    )
    assert result.exit_code == 0
    assert result.output == (
        "LDAP authentication enabled using ldaps://ldap.example.com:636\n"
        "4 groups mapped to roles\n"
    )

    result = runner.invoke(
        main,
        ["check-config"],
        env={"LDAPAUTH_CONFIG_PATH": str(config_path("disabled"))},
        catch_exceptions=False,
    )
    assert result.exit_code == 0
    assert result.output == (
        "LDAP authentication disabled\n1 groups mapped to roles\n"
    )

    path = str(config_path("bad-version"))
    result = runner.invoke(main, ["check-config", "--config-path", path])
    assert result.exit_code != 0


def test_lookup(mock_ldap: MockLDAP) -> None:
    runner = CliRunner()
    path = str(config_path("ldap"))

    result = runner.invoke(
        main,
        ["lookup", "alice", "--config-path", path],
        catch_exceptions=False,
    )
    assert result.exit_code == 0
    assert json.loads(result.output) == {
        "id": "alice",
        "name": "Alice Example",
        "email": "alice@example.com",
        "dn": ALICE_DN,
        "roles": ["admin"],
    }

    result = runner.invoke(
        main,
        ["lookup", "nonexistent", "--config-path", path],
        catch_exceptions=False,
    )
    assert result.exit_code == 1
    assert "User nonexistent not found" in result.output


def test_lookup_error(mock_ldap: MockLDAP) -> None:
    runner = CliRunner()
    mock_ldap.unreachable = True

    path = str(config_path("ldap"))
    result = runner.invoke(
        main,
        ["lookup", "alice", "--config-path", path],
        catch_exceptions=False,
    )
    assert result.exit_code == 1
    assert "Error:" in result.output


def test_verify(mock_ldap: MockLDAP) -> None:
    runner = CliRunner()
    path = str(config_path("ldap"))

    result = runner.invoke(
        main,
        ["verify", "carol", "--config-path", path],
        input="carol-password\n",
        catch_exceptions=False,
    )
    assert result.exit_code == 0
    assert "Authentication succeeded for carol (roles: staff, admin)" in (
        result.output
    )
    assert "carol-password" not in result.output

    result = runner.invoke(
        main,
        ["verify", "alice", "--password", "wrong", "--config-path", path],
        catch_exceptions=False,
    )
    assert result.exit_code == 1
    assert "Authentication failed" in result.output

    args = ["verify", "alice", "--group", STAFF_DN, "--config-path", path]
    result = runner.invoke(
        main, args, input=f"{ALICE_PASSWORD}\n", catch_exceptions=False
    )
    assert result.exit_code == 1
    assert "Authentication failed" in result.output


def test_verify_disabled(mock_ldap: MockLDAP) -> None:
    runner = CliRunner()

    path = str(config_path("disabled"))
    result = runner.invoke(
        main,
        [
            "verify",
            "alice",
            "--password",
            ALICE_PASSWORD,
            "--config-path",
            path,
        ],
        catch_exceptions=False,
    )
    assert result.exit_code == 1
    assert "not enabled" in result.output
    assert mock_ldap.connections == []
