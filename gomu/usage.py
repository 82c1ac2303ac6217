"""Usage text for gomu and its actions."""

from __future__ import annotations

from typing import Optional

import click

from .registry import REGISTRY, ActionInfo, Flag, Registry

PROG_NAME = "gomu"
USAGE_ARGS = "<optional flags> action args <optional flags>"


def _flag_row(flag: Flag) -> tuple[str, str]:
    spelling = ", ".join(flag.identifiers)
    if flag.kind.takes_value:
        spelling = f"{spelling} <value>"
    return spelling, flag.help


def _write_flags(formatter: click.HelpFormatter, registry: Registry) -> None:
    with formatter.section("Flags"):
        formatter.write_dl([_flag_row(flag) for flag in registry.flags])


def format_usage(registry: Registry = REGISTRY, width: Optional[int] = None) -> str:
    """Render usage for the whole tool."""
    formatter = click.HelpFormatter(width=width)
    formatter.write_usage(PROG_NAME, USAGE_ARGS)
    if registry.description:
        formatter.write_paragraph()
        with formatter.indentation():
            formatter.write_text(registry.description)

    with formatter.section("Actions"):
        formatter.write_dl(
            [(info.action.value, info.description) for info in registry.actions]
        )
    _write_flags(formatter, registry)
    return formatter.getvalue()


def format_action_help(
    info: ActionInfo,
    registry: Registry = REGISTRY,
    width: Optional[int] = None,
) -> str:
    """Render usage for a single action."""
    formatter = click.HelpFormatter(width=width)
    args = info.usage or f"<optional flags> {info.action.value} args <optional flags>"
    formatter.write_usage(PROG_NAME, args)
    formatter.write_paragraph()
    with formatter.indentation():
        formatter.write_text(info.description)
    _write_flags(formatter, registry)
    return formatter.getvalue()
