"""Administrative command-line interface."""

from __future__ import annotations

from pathlib import Path

import click
from safir.click import display_help

from .config import Config
from .constants import CONFIG_PATH
from .exceptions import (
    AuthenticationFailedError,
    DirectoryError,
    NotConfiguredError,
)
from .factory import Factory

__all__ = [
    "check_config",
    "help",
    "lookup",
    "main",
    "verify",
]

_config_path_option = click.option(
    "--config-path",
    envvar="LDAPAUTH_CONFIG_PATH",
    type=click.Path(path_type=Path),
    default=CONFIG_PATH,
    help="Application configuration file.",
)


def _load_config(config_path: Path) -> Config:
    config = Config.from_file(config_path)
    config.configure_logging()
    return config


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="ldapauth", message="%(version)s")
def main() -> None:
    """Administrative command-line interface for ldapauth."""


@main.command()
@click.argument("topic", default=None, required=False, nargs=1)
@click.pass_context
def help(ctx: click.Context, topic: str | None) -> None:
    """Show help for any command."""
    display_help(main, ctx, topic)


@main.command("check-config")
@_config_path_option
def check_config(*, config_path: Path) -> None:
    """Validate the configuration file."""
    config = Config.from_file(config_path)
    if config.enabled and config.ldap:
        click.echo(f"LDAP authentication enabled using {config.ldap.url}")
    else:
        click.echo("LDAP authentication disabled")
    click.echo(f"{len(config.role_mapping)} groups mapped to roles")


@main.command()
@click.argument("login")
@_config_path_option
def lookup(*, login: str, config_path: Path) -> None:
    """Look up a user and show the roles they would receive."""
    config = _load_config(config_path)
    with Factory(config) as factory:
        provider = factory.create_identity_provider()
        try:
            principal = provider.find_by_login(login)
        except DirectoryError as e:
            raise click.ClickException(str(e)) from e
    if not principal:
        raise click.ClickException(f"User {login} not found")
    click.echo(principal.model_dump_json(indent=2))


@main.command()
@click.argument("login")
@click.option(
    "--group", default=None, help="Group the user must be a member of."
)
@click.option(
    "--password", prompt=True, hide_input=True, help="Password to check."
)
@_config_path_option
def verify(
    *, login: str, group: str | None, password: str, config_path: Path
) -> None:
    """Check a user's password against LDAP."""
    config = _load_config(config_path)
    with Factory(config) as factory:
        provider = factory.create_identity_provider()
        try:
            principal = provider.authenticate(login, password, group)
        except (
            AuthenticationFailedError,
            DirectoryError,
            NotConfiguredError,
        ) as e:
            raise click.ClickException(str(e)) from e
    roles = ", ".join(principal.roles) or "none"
    click.echo(f"Authentication succeeded for {principal.id} (roles: {roles})")
