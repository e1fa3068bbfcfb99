"""Exceptions for ldapauth."""

from __future__ import annotations

from safir.slack.blockkit import SlackException

__all__ = [
    "AuthenticationFailedError",
    "BindError",
    "DirectoryConnectionError",
    "DirectoryError",
    "NotConfiguredError",
    "SearchError",
]


class DirectoryError(SlackException):
    """Base exception for failures talking to the LDAP server.

    Parameters
    ----------
    message
        Human-readable error message.
    user
        User for which the operation was being performed, if any.
    code
        Result code reported by the LDAP server or client library, if known.
    """

    def __init__(
        self, message: str, user: str | None = None, *, code: int | None = None
    ) -> None:
        if code is not None:
            message = f"{message} (code {code})"
        super().__init__(message, user)
        self.code = code


class DirectoryConnectionError(DirectoryError):
    """Unable to establish or keep a connection to the LDAP server."""


class BindError(DirectoryError):
    """The LDAP server rejected the service account credentials.

    This is a configuration problem and should never be shown to end users.
    """


class SearchError(DirectoryError):
    """An LDAP search failed or returned an invalid entry."""


class NotConfiguredError(Exception):
    """LDAP authentication is disabled or not configured."""


class AuthenticationFailedError(Exception):
    """Authentication of an end user failed.

    This is deliberately raised with the same message for unknown users,
    wrong passwords, and missing group membership so that the caller cannot
    tell them apart.
    """

    def __init__(self) -> None:
        super().__init__("Authentication failed")
