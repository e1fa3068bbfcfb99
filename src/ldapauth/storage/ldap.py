"""LDAP storage layer for ldapauth."""

from __future__ import annotations

import threading
from types import TracebackType
from typing import Self

import bonsai
from bonsai import LDAPClient, LDAPConnection, LDAPDN, LDAPEntry
from bonsai.utils import escape_filter_exp
from structlog.stdlib import BoundLogger

from ..config import LDAPConfig
from ..constants import PRIMARY_GROUP_FILTER, SEARCH_ATTRS
from ..exceptions import BindError, DirectoryConnectionError, SearchError
from ..models.enums import GroupMatch
from ..models.ldap import DirectoryEntry

__all__ = ["DirectoryConnector"]


def _attributes(entry: LDAPEntry) -> dict[str, list[str]]:
    """Convert an LDAP entry to a dictionary with lowercase keys.

    LDAP attribute names are case-insensitive, and servers do not always
    return them with the capitalization that was requested.
    """
    attributes = {}
    for key, values in entry.items():
        if key.lower() == "dn":
            continue
        attributes[key.lower()] = [
            v.decode() if isinstance(v, bytes) else str(v) for v in values
        ]
    return attributes


class DirectoryConnector:
    """Connection to an LDAP server used for authentication.

    The connector owns a single LDAP connection, opened on first use and
    bound as the service account (or anonymously if no service account is
    configured). All operations on the connection, including the temporary
    binds used to check user passwords, are serialized by a lock, so one
    connector may be shared between threads.

    Parameters
    ----------
    config
        Configuration for the LDAP server.
    logger
        Logger for debug messages and errors.
    """

    def __init__(self, config: LDAPConfig, logger: BoundLogger) -> None:
        self._config = config
        self._logger = logger.bind(ldap_url=config.url)
        self._lock = threading.RLock()
        self._conn: LDAPConnection | None = None
        self._bound_dn: str | None = None

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def bound_dn(self) -> str | None:
        """DN the open connection is bound as.

        `None` if there is no open connection or if it is bound anonymously.
        """
        with self._lock:
            return self._bound_dn if self._conn is not None else None

    @property
    def connection(self) -> LDAPConnection:
        """The LDAP connection, opened if necessary."""
        return self.connect()

    def close(self) -> None:
        """Close the LDAP connection, if open.

        The connector may still be used afterwards. The next operation will
        open a new connection.
        """
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._logger.debug("Closed LDAP connection")
            self._conn = None
            self._bound_dn = None

    def connect(self) -> LDAPConnection:
        """Open the LDAP connection and bind as the service account.

        Does nothing if a connection is already open.

        Returns
        -------
        bonsai.LDAPConnection
            The open connection.

        Raises
        ------
        BindError
            Raised if the LDAP server rejected the service account.
        DirectoryConnectionError
            Raised if the LDAP server could not be reached.
        """
        with self._lock:
            if self._conn is not None and not self._conn.closed:
                return self._conn
            user = self._config.user_dn
            password = None
            if self._config.password:
                password = self._config.password.get_secret_value()
            try:
                self._conn = self._open(user, password)
            except (bonsai.ConnectionError, bonsai.TimeoutError) as e:
                msg = "Unable to connect to LDAP"
                self._logger.exception(msg, error=str(e))
                raise DirectoryConnectionError(msg, code=e.code) from e
            except bonsai.LDAPError as e:
                msg = "Unable to bind LDAP service account"
                self._logger.exception(msg, error=str(e), user_dn=user)
                raise BindError(msg, user, code=e.code) from e
            self._bound_dn = user
            self._logger.debug("Connected to LDAP", user_dn=user)
            return self._conn

    def find_by_login(self, login: str) -> DirectoryEntry | None:
        """Find the entry of a user by the login attribute.

        Parameters
        ----------
        login
            What the user typed as their login. Filter metacharacters are
            escaped, so this only ever matches literally.

        Returns
        -------
        DirectoryEntry or None
            The user's entry, or `None` if there is no such user.

        Raises
        ------
        BindError
            Raised if the LDAP server rejected the service account.
        DirectoryConnectionError
            Raised if the LDAP server could not be reached.
        SearchError
            Raised if the search failed or the entry was invalid.
        """
        object_class = self._config.object_class
        login_attr = self._config.login_attr
        value = escape_filter_exp(login)
        search = f"(&(objectClass={object_class})({login_attr}={value}))"
        logger = self._logger.bind(ldap_search=search, user=login)
        results = self._query(
            self._config.base_dn, search, self._search_attrs(), login
        )
        dns = [str(r.dn) for r in results]
        logger.debug("LDAP entries for user", ldap_results=dns)
        if not results:
            return None
        if len(results) > 1:
            logger.warning("Multiple LDAP entries for user, using first")
        return self._parse_entry(results[0], login)

    def get_primary_group(self, token: int) -> str | None:
        """Find the group corresponding to a primary group token.

        Parameters
        ----------
        token
            The ``primaryGroupID`` of a user.

        Returns
        -------
        str or None
            DN of the group whose ``primaryGroupToken`` matches, or `None` if
            there is no such group.

        Raises
        ------
        SearchError
            Raised if the search failed.
        """
        attrs = ["distinguishedName", "primaryGroupToken"]
        results = self._query(
            self._config.base_dn, PRIMARY_GROUP_FILTER, attrs, str(token)
        )
        for result in results:
            attributes = _attributes(result)
            tokens = attributes.get("primarygrouptoken")
            if not tokens or tokens[0] != str(token):
                continue
            names = attributes.get("distinguishedname")
            return names[0] if names else str(result.dn)
        self._logger.debug("No group for primary group token", token=token)
        return None

    def is_member(self, dn: str, group: str) -> bool:
        """Check whether a user is a member of a group.

        Parameters
        ----------
        dn
            DN of the user.
        group
            The group, either as a DN or as the value of the leading RDN of
            the group (such as ``admins`` for ``cn=admins,dc=example,dc=com``).
            How it is compared depends on the ``group_match`` setting.

        Returns
        -------
        bool
            Whether the user is a member.

        Raises
        ------
        SearchError
            Raised if the search failed.
        """
        group_class = self._config.group_object_class
        member_attr = self._config.group_member_attr
        member = escape_filter_exp(dn)
        search = f"(&(objectClass={group_class})({member_attr}={member}))"
        results = self._query(self._config.base_dn, search, ["cn"], dn)
        for result in results:
            if self._group_matches(result.dn, group):
                return True
        return False

    def verify_credentials(
        self, dn: str, password: str, required_group: str | None = None
    ) -> bool:
        """Check a user's password, and optionally their group membership.

        The password is checked by binding as the user on a fresh connection.
        The service account connection is closed first and reopened afterwards,
        while holding the connector lock, so there is never more than one
        connection and no other caller ever sees the user's identity.

        Parameters
        ----------
        dn
            DN of the user.
        password
            Password to check.
        required_group
            If given, the user must also be a member of this group. See
            `is_member` for the accepted forms.

        Returns
        -------
        bool
            `True` if the password is correct and the user is in the required
            group, `False` otherwise. No distinction is made between an
            unknown DN and a wrong password.

        Raises
        ------
        BindError
            Raised if the service account could not be bound again.
        DirectoryConnectionError
            Raised if the LDAP server could not be reached.
        SearchError
            Raised if the group membership search failed.
        """
        logger = self._logger.bind(user=dn)

        # An empty password would be a successful unauthenticated bind.
        if not dn or not password:
            logger.warning("Rejecting empty credentials")
            return False

        with self._lock:
            self.close()
            try:
                verified = self._bind_as_user(dn, password)
            finally:
                self.connect()
            if not verified:
                return False
            if required_group and not self.is_member(dn, required_group):
                msg = "User not in required group"
                logger.warning(msg, group=required_group)
                return False

        logger.debug("Verified user credentials")
        return True

    def _bind_as_user(self, dn: str, password: str) -> bool:
        """Bind as a user on a throwaway connection."""
        logger = self._logger.bind(user=dn)
        try:
            conn = self._open(dn, password)
        except (bonsai.ConnectionError, bonsai.TimeoutError) as e:
            msg = "Unable to connect to LDAP"
            logger.exception(msg, error=str(e))
            raise DirectoryConnectionError(msg, dn, code=e.code) from e
        except bonsai.LDAPError as e:
            logger.warning("LDAP bind as user failed", error=str(e))
            return False
        conn.close()
        return True

    def _group_matches(self, group_dn: LDAPDN, group: str) -> bool:
        if self._config.group_match == GroupMatch.substring:
            return group in str(group_dn)
        try:
            wanted = LDAPDN(group)
        except bonsai.InvalidDN:
            # Bare group name, which must match the leading RDN value.
            if not group_dn.rdns:
                return False
            wanted_name = group.lower()
            return any(v.lower() == wanted_name for _, v in group_dn.rdns[0])
        return group_dn == wanted

    def _open(self, user: str | None, password: str | None) -> LDAPConnection:
        client = LDAPClient(self._config.url)
        if user:
            client.set_credentials("SIMPLE", user=user, password=password)
        client.set_server_chase_referrals(self._config.follow_referrals)
        if self._config.ca_cert_file:
            client.set_ca_cert(str(self._config.ca_cert_file))
        timeout = self._config.connect_timeout.total_seconds()
        return client.connect(timeout=timeout)

    def _parse_entry(self, entry: LDAPEntry, login: str) -> DirectoryEntry:
        logger = self._logger.bind(ldap_dn=str(entry.dn), user=login)
        attributes = _attributes(entry)

        def first(attr: str) -> str | None:
            values = attributes.get(attr.lower())
            return values[0] if values else None

        identifier = first(self._config.identifier_attr)
        if not identifier:
            identifier = first(self._config.login_attr)
        if not identifier:
            msg = "LDAP user entry has no identifier"
            logger.error(msg, identifier_attr=self._config.identifier_attr)
            raise SearchError(msg, login)

        primary_group_id = None
        if primary := first("primaryGroupID"):
            try:
                primary_group_id = int(primary)
            except ValueError as e:
                msg = "LDAP user entry invalid"
                logger.exception(msg, error=str(e))
                raise SearchError(msg, login) from e

        return DirectoryEntry(
            dn=str(entry.dn),
            identifier=identifier,
            name=first("displayName") or first("name") or identifier,
            email=first("mail"),
            groups=attributes.get("memberof", []),
            primary_group_id=primary_group_id,
        )

    def _query(
        self,
        base: str,
        filter_exp: str,
        attrlist: list[str],
        username: str,
    ) -> list[LDAPEntry]:
        """Perform an LDAP subtree search as the service account.

        Parameters
        ----------
        base
            Base DN of the search.
        filter_exp
            Search filter.
        attrlist
            List of attributes to retrieve.
        username
            User for which the query is being performed, for error reporting.

        Returns
        -------
        list of bonsai.LDAPEntry
            Matching entries.

        Raises
        ------
        BindError
            Raised if the LDAP server rejected the service account.
        DirectoryConnectionError
            Raised if the LDAP server could not be reached.
        SearchError
            Raised if the search failed.

        Notes
        -----
        A connection may have been silently dropped by the server or a
        firewall since it was last used. If the search fails with a
        connection error or timeout, the connection is reopened and the
        search is tried once more.
        """
        logger = self._logger.bind(
            ldap_attrs=attrlist,
            ldap_base=base,
            ldap_search=filter_exp,
            user=username,
        )
        timeout = self._config.timeout.total_seconds()

        with self._lock:
            try:
                for _ in range(2):
                    conn = self.connect()
                    try:
                        logger.debug("Querying LDAP")
                        return conn.search(
                            base=base,
                            scope=bonsai.LDAPSearchScope.SUBTREE,
                            filter_exp=filter_exp,
                            attrlist=attrlist,
                            timeout=timeout,
                        )
                    except (bonsai.ConnectionError, bonsai.TimeoutError):
                        logger.debug("Reopening LDAP connection after timeout")
                        self.close()
            except bonsai.LDAPError as e:
                logger.exception("Cannot query LDAP", error=str(e))
                raise SearchError(
                    "Error querying LDAP", username, code=e.code
                ) from e

        # Failed due to timeout or closed connection twice.
        msg = f"LDAP query failed twice (timeout {timeout}s)"
        logger.error("Cannot query LDAP", error=msg)
        raise SearchError(msg, username)

    def _search_attrs(self) -> list[str]:
        attrs = list(SEARCH_ATTRS)
        for attr in (self._config.login_attr, self._config.identifier_attr):
            if attr.lower() not in (a.lower() for a in attrs):
                attrs.append(attr)
        return attrs
