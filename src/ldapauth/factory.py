"""Create ldapauth components."""

from __future__ import annotations

from types import TracebackType
from typing import Self

import structlog
from structlog.stdlib import BoundLogger

from .config import Config
from .providers.ldap import LDAPIdentityProvider
from .services.roles import RoleResolver
from .storage.ldap import DirectoryConnector

__all__ = ["Factory"]


class Factory:
    """Build ldapauth components.

    The factory owns the LDAP connector, so every provider it creates shares
    the same connection. Call `close` (or use the factory as a context
    manager) to close that connection.

    Parameters
    ----------
    config
        ldapauth configuration.
    logger
        Logger to use for all created components. If not given, the
        ``ldapauth`` logger is used.
    """

    def __init__(
        self, config: Config, logger: BoundLogger | None = None
    ) -> None:
        self._config = config
        self._logger = logger or structlog.get_logger("ldapauth")
        self._connector: DirectoryConnector | None = None

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Close the LDAP connection if one was opened."""
        if self._connector:
            self._connector.close()

    def create_connector(self) -> DirectoryConnector | None:
        """Return the LDAP connector.

        Returns
        -------
        DirectoryConnector or None
            The shared connector, or `None` if LDAP authentication is
            disabled.
        """
        if not self._config.enabled or not self._config.ldap:
            return None
        if not self._connector:
            self._connector = DirectoryConnector(
                self._config.ldap, self._logger
            )
        return self._connector

    def create_role_resolver(self) -> RoleResolver:
        """Create a resolver using the configured role mapping."""
        return RoleResolver(self._config.role_mapping)

    def create_identity_provider(self) -> LDAPIdentityProvider:
        """Create the identity provider.

        Returns
        -------
        LDAPIdentityProvider
            Provider that looks up and authenticates users in LDAP.
        """
        return LDAPIdentityProvider(
            config=self._config,
            connector=self.create_connector(),
            resolver=self.create_role_resolver(),
            logger=self._logger,
        )
