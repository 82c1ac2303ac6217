"""
Command-line parsing for gomu.

Flags are global and may appear anywhere: before the action, between
positional arguments, or at the end.  A value-taking flag consumes the next
bare token.  The action is the first bare token that is not a flag value;
a trailing bare token is taken as the action if nothing else claimed it.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Sequence
from typing import Optional

from .exceptions import ParseError
from .options import Options, OptionsBuilder
from .registry import REGISTRY, Flag, FlagKind, Registry

logger = logging.getLogger(__name__)

ACTION_PARSE_ERROR = "unable to parse action"


class ParserState(enum.Enum):
    """What the parser is willing to accept next."""

    EXPECTING_FLAG_OR_ACTION = enum.auto()
    EXPECTING_FLAG_VALUE = enum.auto()


def is_flag(token: str) -> bool:
    """Does ``token`` look like a flag identifier?"""
    return len(token) > 1 and token.startswith("-")


class ArgumentParser:
    """
    Two-state parser for the gomu command line.

    Parameters
    ----------
    registry : Registry
        Actions and flags to parse against.
    """

    registry: Registry
    state: ParserState
    current_flag: Optional[Flag]
    builder: OptionsBuilder

    def __init__(self, registry: Registry = REGISTRY) -> None:
        self.registry = registry
        self.reset()

    def reset(self) -> None:
        self.state = ParserState.EXPECTING_FLAG_OR_ACTION
        self.current_flag = None
        self.builder = OptionsBuilder()

    def parse(self, args: Sequence[str]) -> Options:
        """
        Parse ``args`` (excluding the program name) into options.

        Raises
        ------
        ParseError
            On a value-taking flag followed by another flag or by nothing,
            or when no action was given.
        """
        self.reset()
        last_index = len(args) - 1
        for index, token in enumerate(args):
            if is_flag(token):
                self._handle_flag(token)
                continue

            if (
                index == last_index
                and self.state is ParserState.EXPECTING_FLAG_OR_ACTION
                and self.builder.action is None
            ):
                logger.debug("Final argument %r is the action", token)
                self.builder.action = token
                break

            self._handle_value(token)

        if self.state is ParserState.EXPECTING_FLAG_VALUE:
            flag_name = self.current_flag.name if self.current_flag is not None else None
            raise ParseError(ACTION_PARSE_ERROR, token=flag_name)

        return self.builder.build()

    def _handle_flag(self, token: str) -> None:
        if self.state is ParserState.EXPECTING_FLAG_VALUE:
            raise ParseError(ACTION_PARSE_ERROR, token=token)

        flag = self.registry.find_flag(token)
        if flag is None:
            logger.debug("Ignoring unrecognized flag %r", token)
            self.current_flag = None
        elif flag.kind is FlagKind.BOOL:
            self.builder.apply_flag(flag)
            self.current_flag = None
        else:
            self.current_flag = flag
            self.state = ParserState.EXPECTING_FLAG_VALUE

    def _handle_value(self, token: str) -> None:
        self.state = ParserState.EXPECTING_FLAG_OR_ACTION
        flag = self.current_flag
        if flag is not None:
            self.builder.apply_value(flag, token)
            if flag.kind is not FlagKind.STRINGS:
                self.current_flag = None
        elif self.builder.action is None:
            self.builder.action = token
        else:
            self.builder.arguments.append(token)


def parse_args(args: Sequence[str], registry: Registry = REGISTRY) -> Options:
    """Parse ``args`` (excluding the program name) into :class:`Options`."""
    return ArgumentParser(registry).parse(args)
