"""Configuration for ldapauth.

ldapauth is configured by a YAML file, normally loaded once at startup with
`Config.from_file`. Secrets and a few operational settings may instead be
injected via environment variables, which take precedence over the file.
Only the settings with explicit ``validation_alias`` settings support
configuration via environment variable.

The configuration is validated when it is loaded and is not re-checked
afterwards, so the models should be treated as read-only.
"""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path
from typing import Any, Literal, Self, override

import yaml
from pydantic import (
    AliasChoices,
    Field,
    SecretStr,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)
from safir.logging import LogLevel, Profile, configure_logging
from safir.pydantic import HumanTimedelta

from .constants import (
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_GROUP_MEMBER_ATTR,
    DEFAULT_GROUP_OBJECT_CLASS,
    DEFAULT_IDENTIFIER_ATTR,
    DEFAULT_LDAP_VERSION,
    DEFAULT_LOGIN_ATTR,
    DEFAULT_OBJECT_CLASS,
    DEFAULT_PORT,
    DEFAULT_PROTOCOL,
    DEFAULT_TIMEOUT,
)
from .models.enums import GroupMatch

__all__ = [
    "CamelCaseSettings",
    "Config",
    "EnvFirstSettings",
    "LDAPConfig",
]


class CamelCaseSettings(BaseSettings):
    """Base class for Pydantic settings supporting camel-case.

    This base class also forbids all extra attributes. It should be used as
    the base class (possibly indirectly) for all ldapauth configuration
    models that support environment variable overrides.
    """

    model_config = SettingsConfigDict(
        alias_generator=to_camel, extra="forbid", populate_by_name=True
    )


class EnvFirstSettings(CamelCaseSettings):
    """Base class for Pydantic settings with environment overrides.

    Classes that inherit from this base class will prioritize environment
    variables over arguments to the class constructor.
    """

    @override
    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Override the sources of settings.

        Deactivate :file:`.env` and secret file support. Allow environment
        variables to override init parameters, since init parameters come
        from the YAML configuration file and secrets are expected to come
        from the environment.
        """
        return (env_settings, init_settings)


class LDAPConfig(EnvFirstSettings):
    """Configuration for the LDAP server and how to search it."""

    protocol: Literal["ldap://", "ldaps://"] = Field(
        DEFAULT_PROTOCOL,
        title="Protocol",
        description=(
            "Scheme used to reach the LDAP server. Use ``ldaps://`` unless"
            " the server is only reachable over a trusted network."
        ),
    )

    host: str = Field(
        ...,
        title="LDAP server hostname",
        min_length=1,
    )

    port: int = Field(
        DEFAULT_PORT,
        title="LDAP server port",
        ge=1,
        le=65535,
    )

    version: int = Field(
        DEFAULT_LDAP_VERSION,
        title="LDAP protocol version",
        description="Only version 3 of the LDAP protocol is supported",
    )

    follow_referrals: bool = Field(
        False,
        title="Follow referrals",
        description=(
            "Whether the client library should chase referrals returned by"
            " the LDAP server. This should normally stay disabled, since"
            " Active Directory returns referrals that often cannot be"
            " resolved from outside the domain."
        ),
    )

    connect_timeout: HumanTimedelta = Field(
        DEFAULT_CONNECT_TIMEOUT,
        title="Connection timeout",
        description="How long to wait for the LDAP server to accept a bind",
    )

    timeout: HumanTimedelta = Field(
        DEFAULT_TIMEOUT,
        title="Operation timeout",
        description="How long to wait for the result of an LDAP search",
    )

    base_dn: str = Field(
        ...,
        title="Base DN",
        description="Base DN for user and group searches",
        examples=["dc=example,dc=com"],
    )

    object_class: str = Field(
        DEFAULT_OBJECT_CLASS,
        title="User object class",
        description="Object class of the entries that represent users",
    )

    login_attr: str = Field(
        DEFAULT_LOGIN_ATTR,
        title="Login attribute",
        description=(
            "Attribute of user entries holding the identifier users type when"
            " logging in. The default is ``uid``; Active Directory"
            " installations usually want ``sAMAccountName``."
        ),
    )

    identifier_attr: str = Field(
        DEFAULT_IDENTIFIER_ATTR,
        title="Identifier attribute",
        description=(
            "Attribute of user entries holding the canonical identifier of"
            " the user. If an entry lacks this attribute, the value of the"
            " login attribute is used instead."
        ),
    )

    user_dn: str | None = Field(
        None,
        title="Service account DN",
        description=(
            "DN of the service account used for searches. If not set,"
            " ldapauth will do an anonymous bind."
        ),
    )

    password: SecretStr | None = Field(
        None,
        title="Service account password",
        description="Password of the service account. Only used with userDn.",
        validation_alias=AliasChoices("LDAPAUTH_LDAP_PASSWORD", "password"),
    )

    group_object_class: str = Field(
        DEFAULT_GROUP_OBJECT_CLASS,
        title="Group object class",
        description="Object class of groups checked for required membership",
    )

    group_member_attr: str = Field(
        DEFAULT_GROUP_MEMBER_ATTR,
        title="Group member attribute",
        description="Attribute of group entries listing the DNs of members",
    )

    group_match: GroupMatch = Field(
        GroupMatch.exact,
        title="Group matching policy",
        description=(
            "How to decide whether a group found for the user is the required"
            " group. ``exact`` compares DNs, or the leading RDN value if the"
            " required group is a bare name. ``substring`` accepts any group"
            " whose DN contains the required group and is only provided for"
            " compatibility."
        ),
    )

    resolve_primary_group: bool = Field(
        False,
        title="Resolve primary group",
        description=(
            "If set, look up the group matching the user's primaryGroupID and"
            " include it in role resolution. Active Directory does not list"
            " the primary group in memberOf. This costs a search of every"
            " group on each lookup."
        ),
    )

    ca_cert_file: Path | None = Field(
        None,
        title="CA certificate file",
        description="CA certificates used to verify the LDAP server",
    )

    @field_validator("version")
    @classmethod
    def _validate_version(cls, v: int) -> int:
        if v != 3:
            raise ValueError("only LDAP protocol version 3 is supported")
        return v

    @field_validator("connect_timeout", "timeout")
    @classmethod
    def _validate_timeout(cls, v: timedelta) -> timedelta:
        if v <= timedelta(seconds=0):
            raise ValueError("must be positive")
        return v

    @model_validator(mode="after")
    def _validate_password(self) -> Self:
        """Ensure a password is provided if the service DN is set."""
        if self.user_dn and not self.password:
            raise ValueError("password required if userDn is set")
        return self

    @property
    def url(self) -> str:
        """URL of the LDAP server, in the form the client library wants."""
        return f"{self.protocol}{self.host}:{self.port}"


class Config(EnvFirstSettings):
    """Configuration for ldapauth."""

    enabled: bool = Field(
        True,
        title="Whether LDAP authentication is enabled",
        description=(
            "If false, lookups find no users and every authentication attempt"
            " fails without contacting the LDAP server"
        ),
        validation_alias=AliasChoices("LDAPAUTH_ENABLED", "enabled"),
    )

    log_level: LogLevel = Field(
        LogLevel.INFO,
        title="Log level",
        validation_alias=AliasChoices("LDAPAUTH_LOG_LEVEL", "logLevel"),
    )

    log_profile: Profile = Field(
        Profile.production,
        title="Logging profile",
        description="``production`` logs JSON, ``development`` logs text",
        validation_alias=AliasChoices("LDAPAUTH_LOG_PROFILE", "logProfile"),
    )

    ldap: LDAPConfig | None = Field(
        None,
        title="LDAP configuration",
    )

    role_mapping: dict[str, str] = Field(
        {},
        title="Group to role mapping",
        description=(
            "Mapping of LDAP groups, as they appear in memberOf, to the"
            " application role that membership grants. Several groups may"
            " grant the same role."
        ),
    )

    @field_validator("role_mapping")
    @classmethod
    def _validate_role_mapping(cls, v: dict[str, str]) -> dict[str, str]:
        for group, role in v.items():
            if not group:
                raise ValueError("empty group in roleMapping")
            if not role:
                raise ValueError(f"empty role for group {group}")
        return v

    @model_validator(mode="before")
    @classmethod
    def _validate_optional(cls, data: Any) -> Any:
        """Remove the LDAP configuration if it is not configured.

        Deployment templates always include the ``ldap`` section. If its host
        is empty, treat the section as absent.
        """
        if not isinstance(data, dict):
            return data
        ldap = data.get("ldap")
        if isinstance(ldap, dict) and not ldap.get("host"):
            del data["ldap"]
        return data

    @model_validator(mode="after")
    def _validate_enabled(self) -> Self:
        """Ensure LDAP is configured if authentication is enabled."""
        if self.enabled and not self.ldap:
            raise ValueError("ldap must be configured if enabled is true")
        return self

    @classmethod
    def from_file(cls, path: Path) -> Self:
        """Construct a Config object from a configuration file.

        Parameters
        ----------
        path
            Path to the configuration file in YAML.

        Returns
        -------
        Config
            The corresponding `Config` object.
        """
        with path.open("r") as f:
            return cls.model_validate(yaml.safe_load(f))

    def configure_logging(self) -> None:
        """Configure logging based on the ldapauth configuration."""
        configure_logging(
            name="ldapauth", profile=self.log_profile, log_level=self.log_level
        )
