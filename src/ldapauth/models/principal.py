"""Models for authenticated users."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

__all__ = ["Principal"]


class Principal(BaseModel):
    """A user resolved from LDAP, as seen by the application."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(
        ...,
        title="Identifier",
        description="Canonical identifier of the user",
        examples=["alice"],
        min_length=1,
    )

    name: str = Field(
        ...,
        title="Display name",
        examples=["Alice Example"],
    )

    email: str | None = Field(
        None,
        title="Email address",
        examples=["alice@example.com"],
    )

    dn: str = Field(
        ...,
        title="Distinguished name",
        description="DN of the user's entry, used to verify passwords",
        examples=["uid=alice,dc=example,dc=com"],
    )

    roles: tuple[str, ...] = Field(
        (),
        title="Roles",
        description=(
            "Application roles granted by the user's group memberships, in"
            " the order the groups were listed by the LDAP server"
        ),
        examples=[("admin",)],
    )

    def has_role(self, role: str) -> bool:
        """Whether the user has been granted the given role."""
        return role in self.roles
