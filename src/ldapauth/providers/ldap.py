"""LDAP identity provider."""

from __future__ import annotations

from structlog.stdlib import BoundLogger

from ..config import Config
from ..exceptions import AuthenticationFailedError, NotConfiguredError
from ..models.principal import Principal
from ..services.roles import RoleResolver
from ..storage.ldap import DirectoryConnector
from .base import IdentityProvider

__all__ = ["LDAPIdentityProvider"]


class LDAPIdentityProvider(IdentityProvider):
    """Look up and authenticate users in LDAP.

    Parameters
    ----------
    config
        ldapauth configuration.
    connector
        Connection to the LDAP server, or `None` if LDAP is not configured.
    resolver
        Resolver for the roles granted by group memberships.
    logger
        Logger to use.
    """

    def __init__(
        self,
        *,
        config: Config,
        connector: DirectoryConnector | None,
        resolver: RoleResolver,
        logger: BoundLogger,
    ) -> None:
        self._config = config
        self._connector = connector
        self._resolver = resolver
        self._logger = logger

    def authenticate(
        self, login: str, password: str, required_group: str | None = None
    ) -> Principal:
        """Look up a user and check their password.

        Parameters
        ----------
        login
            Login identifier of the user.
        password
            Password to check.
        required_group
            If given, the user must also be a member of this group.

        Returns
        -------
        Principal
            The authenticated user.

        Raises
        ------
        AuthenticationFailedError
            Raised if the user does not exist, the password is wrong, or the
            user is not in the required group.
        NotConfiguredError
            Raised if LDAP authentication is disabled.
        """
        if not self._connector:
            raise NotConfiguredError("LDAP authentication is not enabled")
        principal = self.find_by_login(login)
        if not principal:
            self._logger.info("Authentication failed", user=login)
            raise AuthenticationFailedError
        if not self.verify_credentials(principal.dn, password, required_group):
            self._logger.info("Authentication failed", user=login)
            raise AuthenticationFailedError
        self._logger.info(
            "Authenticated user", user=login, roles=list(principal.roles)
        )
        return principal

    def find_by_login(self, login: str) -> Principal | None:
        if not self._connector:
            self._logger.debug("LDAP disabled, not looking up user")
            return None
        entry = self._connector.find_by_login(login)
        if not entry:
            return None

        groups = list(entry.groups)
        ldap_config = self._config.ldap
        if ldap_config and ldap_config.resolve_primary_group:
            if entry.primary_group_id is not None:
                token = entry.primary_group_id
                group = self._connector.get_primary_group(token)
                if group and group not in groups:
                    groups.append(group)

        return Principal(
            id=entry.identifier,
            name=entry.name or entry.identifier,
            email=entry.email,
            dn=entry.dn,
            roles=tuple(self._resolver.resolve(groups)),
        )

    def verify_credentials(
        self, dn: str, password: str, required_group: str | None = None
    ) -> bool:
        if not self._connector:
            self._logger.debug("LDAP disabled, rejecting credentials")
            return False
        return self._connector.verify_credentials(dn, password, required_group)
