"""Data models for LDAP."""

from __future__ import annotations

from dataclasses import dataclass, field

__all__ = ["DirectoryEntry"]


@dataclass
class DirectoryEntry:
    """A user entry found in LDAP.

    This holds only the attributes ldapauth understands. Everything else the
    LDAP server returns is dropped when the entry is parsed.
    """

    dn: str
    """Distinguished name of the entry."""

    identifier: str
    """Canonical identifier of the user."""

    name: str | None = None
    """Display name."""

    email: str | None = None
    """Preferred email address."""

    groups: list[str] = field(default_factory=list)
    """Raw group memberships from ``memberOf``, in directory order."""

    primary_group_id: int | None = None
    """Primary group token (``primaryGroupID``) if the server provides one."""
