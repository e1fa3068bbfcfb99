"""Build test configuration for ldapauth."""

from __future__ import annotations

from pathlib import Path

from ldapauth.config import Config

__all__ = [
    "config_path",
    "configure",
]


def config_path(filename: str) -> Path:
    """Return the path to a test configuration file.

    Parameters
    ----------
    filename
        The base name of a test configuration file.

    Returns
    -------
    Path
        The path to that file.
    """
    return (
        Path(__file__).parent.parent / "data" / "config" / (filename + ".yaml")
    )


def configure(filename: str) -> Config:
    """Load a test configuration.

    Parameters
    ----------
    filename
        Configuration file to use, without the ``.yaml`` extension.

    Returns
    -------
    Config
        The new configuration.
    """
    return Config.from_file(config_path(filename))
