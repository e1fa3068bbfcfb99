"""Mapping of LDAP group memberships to application roles."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

__all__ = ["RoleResolver", "resolve_roles"]


def resolve_roles(
    groups: Iterable[str], mapping: Mapping[str, str]
) -> list[str]:
    """Determine the roles granted by a list of group memberships.

    Groups are compared with the keys of the mapping as exact strings. Groups
    that are not in the mapping grant nothing.

    Parameters
    ----------
    groups
        Group memberships of the user, usually the DNs from ``memberOf``.
    mapping
        Mapping of groups to the role each grants.

    Returns
    -------
    list of str
        Roles granted by those groups. Each role appears once, in the order
        of the first group that grants it.
    """
    roles: list[str] = []
    for group in groups:
        role = mapping.get(group)
        if role is not None and role not in roles:
            roles.append(role)
    return roles


class RoleResolver:
    """Resolve roles using a fixed group to role mapping.

    Parameters
    ----------
    mapping
        Mapping of groups to the role each grants. A copy is taken, so later
        changes to the caller's mapping have no effect.
    """

    def __init__(self, mapping: Mapping[str, str]) -> None:
        self._mapping = dict(mapping)

    @property
    def known_roles(self) -> frozenset[str]:
        """All roles that some group can grant."""
        return frozenset(self._mapping.values())

    def resolve(self, groups: Iterable[str]) -> list[str]:
        """Determine the roles granted by a list of group memberships.

        Parameters
        ----------
        groups
            Group memberships of the user.

        Returns
        -------
        list of str
            Deduplicated roles, in the order of the first granting group.
        """
        return resolve_roles(groups, self._mapping)
