"""Constants for ldapauth."""

from datetime import timedelta

__all__ = [
    "CONFIG_PATH",
    "DEFAULT_CONNECT_TIMEOUT",
    "DEFAULT_GROUP_MEMBER_ATTR",
    "DEFAULT_GROUP_OBJECT_CLASS",
    "DEFAULT_IDENTIFIER_ATTR",
    "DEFAULT_LDAP_VERSION",
    "DEFAULT_LOGIN_ATTR",
    "DEFAULT_OBJECT_CLASS",
    "DEFAULT_PORT",
    "DEFAULT_PROTOCOL",
    "DEFAULT_TIMEOUT",
    "PRIMARY_GROUP_FILTER",
    "SEARCH_ATTRS",
]

CONFIG_PATH = "/etc/ldapauth/ldapauth.yaml"
"""Default configuration path."""

DEFAULT_PROTOCOL = "ldaps://"
"""Protocol used to reach the LDAP server if none is configured."""

DEFAULT_PORT = 636
"""Port of the LDAP server if none is configured."""

DEFAULT_LDAP_VERSION = 3
"""LDAP protocol version.

This is also the only version supported, since bonsai only speaks LDAPv3.
"""

DEFAULT_CONNECT_TIMEOUT = timedelta(seconds=10)
"""Timeout for establishing the network connection to the LDAP server."""

DEFAULT_TIMEOUT = timedelta(seconds=10)
"""Timeout for a single LDAP operation."""

DEFAULT_OBJECT_CLASS = "person"
"""Object class of user entries."""

DEFAULT_LOGIN_ATTR = "uid"
"""Attribute of user entries holding the login identifier."""

DEFAULT_IDENTIFIER_ATTR = "cn"
"""Attribute of user entries holding the canonical user identifier."""

DEFAULT_GROUP_OBJECT_CLASS = "groupOfUniqueNames"
"""Object class of group entries used for membership checks."""

DEFAULT_GROUP_MEMBER_ATTR = "uniqueMember"
"""Attribute of group entries holding the DNs of members."""

SEARCH_ATTRS = [
    "cn",
    "name",
    "displayName",
    "mail",
    "memberOf",
    "primaryGroupID",
]
"""Attributes retrieved when looking up a user.

The configured login and identifier attributes are added to this list if
they are not already present.
"""

PRIMARY_GROUP_FILTER = "(objectCategory=group)"
"""Search filter for groups when resolving a primary group token.

Active Directory computes ``primaryGroupToken`` on the fly, so it cannot be
used in a search filter and every group has to be checked.
"""
