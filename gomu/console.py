from __future__ import annotations

from dataclasses import dataclass

import click

from .options import LogLevel

ERROR_PREFIX = "Error: "


@dataclass(frozen=True)
class Console:
    """User-facing output, separate from logging."""

    log_level: LogLevel = LogLevel.NORMAL

    @property
    def name_only(self) -> bool:
        return self.log_level is LogLevel.NAMEONLY

    def status(self, message: str = "") -> None:
        """Print a status line; suppressed in name-only mode."""
        if not self.name_only:
            click.echo(message)

    def name(self, name: str) -> None:
        """Print a bare module or file name."""
        click.echo(name)

    def usage(self, text: str) -> None:
        click.echo(text)

    def error(self, message: str) -> None:
        click.echo(f"{ERROR_PREFIX}{message}", err=True)
