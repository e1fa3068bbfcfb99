"""Enums used in ldapauth models."""

from __future__ import annotations

from enum import Enum

__all__ = ["GroupMatch"]


class GroupMatch(Enum):
    """How a group entry is compared with a required group."""

    exact = "exact"
    """Compare DNs, or the leading RDN value if given a bare group name."""

    substring = "substring"
    """Accept any group whose DN contains the required group as a substring.

    This is looser than it looks (``cn=admin`` matches ``cn=admins,...``) and
    exists only for compatibility with older deployments.
    """
