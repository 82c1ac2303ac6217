from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import apischema

from .exceptions import ParseError
from .registry import Flag, FlagKind

logger = logging.getLogger(__name__)

DEFAULT_TARGET_DIRECTORIES = (".",)


class LogLevel(enum.Enum):
    """Output verbosity."""

    DEBUG = "DEBUG"
    NORMAL = "NORMAL"
    WARNING = "WARNING"
    ERROR = "ERROR"
    #: Print bare module names only.
    NAMEONLY = "NAMEONLY"

    @classmethod
    def from_name(cls, name: str) -> LogLevel:
        key = name.strip().upper()
        if key == "INFO":
            return cls.NORMAL
        try:
            return cls[key]
        except KeyError:
            raise ParseError(f"unsupported log level: {name}", token=name) from None

    @property
    def logging_level(self) -> int:
        """The standard library logging level for this verbosity."""
        return {
            LogLevel.DEBUG: logging.DEBUG,
            LogLevel.NORMAL: logging.INFO,
            LogLevel.WARNING: logging.WARNING,
            LogLevel.ERROR: logging.ERROR,
            LogLevel.NAMEONLY: logging.ERROR,
        }[self]


@dataclass(frozen=True)
class Options:
    """Resolved gomu configuration for a single invocation."""

    #: Lower-cased action name.  Not necessarily a supported action.
    action: str
    #: Positional arguments: names of the dependencies to act on.
    filter_dependencies: tuple[str, ...] = ()
    #: Directories to search for modules.
    target_directories: tuple[str, ...] = DEFAULT_TARGET_DIRECTORIES
    branch: Optional[str] = None
    commit_message: Optional[str] = None
    commit: bool = False
    pull_request: bool = False
    tag: bool = False
    log_level: LogLevel = LogLevel.NORMAL

    @property
    def name_only(self) -> bool:
        return self.log_level is LogLevel.NAMEONLY

    def to_dict(self) -> dict[str, Any]:
        return apischema.serialize(Options, self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


@dataclass
class OptionsBuilder:
    """
    Draft options, filled in flag by flag while parsing.

    Precedence between flags is applied as values are assigned: once
    name-only output is requested, later (and earlier) log level flags no
    longer have any effect.
    """

    action: Optional[str] = None
    arguments: list[str] = field(default_factory=list)
    target_directories: list[str] = field(default_factory=list)
    branch: Optional[str] = None
    commit_message: Optional[str] = None
    commit: bool = False
    pull_request: bool = False
    tag: bool = False
    name_only: bool = False
    log_level: LogLevel = LogLevel.NORMAL

    def set_log_level(self, value: str) -> None:
        if self.name_only:
            logger.debug("Ignoring log level %r in name-only mode", value)
            return
        self.log_level = LogLevel.from_name(value)

    def set_name_only(self) -> None:
        self.name_only = True
        self.log_level = LogLevel.NAMEONLY

    def apply_flag(self, flag: Flag) -> None:
        """Apply a boolean flag."""
        if flag.kind is not FlagKind.BOOL:
            raise ValueError(f"{flag.name} requires a value")

        if flag.name == "-name-only":
            self.set_name_only()
        elif flag.name == "-commit":
            self.commit = True
        elif flag.name == "-pull-request":
            self.pull_request = True
        elif flag.name == "-tag":
            self.tag = True
        else:
            logger.debug("Boolean flag %s has no effect on options", flag.name)

    def apply_value(self, flag: Flag, value: str) -> None:
        """Apply ``value`` to a value-taking flag."""
        if flag.name == "-include":
            self.target_directories.append(value)
        elif flag.name == "-branch":
            self.branch = value
        elif flag.name == "-message":
            self.commit_message = value
        elif flag.name == "-log":
            self.set_log_level(value)
        else:
            logger.debug("Flag %s has no effect on options (value %r)", flag.name, value)

    def build(self) -> Options:
        """
        Resolve the draft into the final options.

        Raises
        ------
        ParseError
            If no action was given.
        """
        if not self.action:
            raise ParseError("unable to parse action")

        return Options(
            action=self.action.lower(),
            filter_dependencies=tuple(self.arguments),
            target_directories=tuple(
                self.target_directories or DEFAULT_TARGET_DIRECTORIES
            ),
            branch=self.branch,
            commit_message=self.commit_message,
            commit=self.commit,
            pull_request=self.pull_request,
            tag=self.tag,
            log_level=self.log_level,
        )
