"""Constants used in test fixtures and setup."""

__all__ = [
    "ADMINS_DN",
    "ALICE_DN",
    "ALICE_PASSWORD",
    "BASE_DN",
    "BOB_DN",
    "BOB_PASSWORD",
    "CAROL_DN",
    "CAROL_PASSWORD",
    "OPERATORS_DN",
    "SERVICE_DN",
    "SERVICE_PASSWORD",
    "STAFF_DN",
    "TRICKY_DN",
    "TRICKY_LOGIN",
]

BASE_DN = "dc=example,dc=com"
"""Base DN of the test directory, matching the test configuration."""

SERVICE_DN = "cn=search,dc=example,dc=com"
"""DN of the service account in the test configuration."""

SERVICE_PASSWORD = "search-password"
"""Password of the service account in the test configuration."""

ADMINS_DN = "cn=admins,dc=example,dc=com"
"""Group mapped to the ``admin`` role."""

OPERATORS_DN = "cn=operators,dc=example,dc=com"
"""Second group mapped to the ``admin`` role."""

STAFF_DN = "cn=staff,dc=example,dc=com"
"""Group mapped to the ``staff`` role."""

ALICE_DN = "uid=alice,dc=example,dc=com"
"""User in the admins group."""

ALICE_PASSWORD = "alice-password"

BOB_DN = "uid=bob,dc=example,dc=com"
"""User in no groups, with no display name or email."""

BOB_PASSWORD = "bob-password"

CAROL_DN = "uid=carol,ou=people,dc=example,dc=com"
"""User in several groups, some granting the same role."""

CAROL_PASSWORD = "carol-password"

TRICKY_DN = "cn=tricky,dc=example,dc=com"
"""User whose login contains search filter metacharacters."""

TRICKY_LOGIN = "a)(uid=*"
"""Login of the tricky user."""
