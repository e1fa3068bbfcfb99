"""Base class for identity providers."""

from __future__ import annotations

from abc import ABCMeta, abstractmethod

from ..models.principal import Principal

__all__ = ["IdentityProvider"]


class IdentityProvider(metaclass=ABCMeta):
    """Abstract base class for identity providers.

    This is the interface the surrounding application adapts to its own user
    and session model. It is intentionally limited to looking up a user and
    checking a password.
    """

    @abstractmethod
    def find_by_login(self, login: str) -> Principal | None:
        """Look up a user by what they type when logging in.

        Parameters
        ----------
        login
            Login identifier of the user.

        Returns
        -------
        Principal or None
            The user, including their roles, or `None` if the user does not
            exist.
        """

    @abstractmethod
    def verify_credentials(
        self, dn: str, password: str, required_group: str | None = None
    ) -> bool:
        """Check a password for a user found by `find_by_login`.

        Parameters
        ----------
        dn
            DN of the user, from `Principal.dn`.
        password
            Password to check.
        required_group
            If given, the user must also be a member of this group.

        Returns
        -------
        bool
            Whether the credentials are valid.
        """
