from __future__ import annotations

import pathlib
from typing import Optional


class GomuError(Exception):
    """Base class for gomu errors."""

    ...


class RegistryError(GomuError):
    """Action or flag registered more than once."""

    ...


class ParseError(GomuError):
    """The command line could not be parsed."""

    token: Optional[str]

    def __init__(self, msg: str, token: Optional[str] = None) -> None:
        super().__init__(msg)
        self.token = token


class UnsupportedActionError(GomuError):
    """The requested action is not one gomu knows how to run."""

    action: str

    def __init__(self, action: str) -> None:
        super().__init__(f"unsupported action: {action}")
        self.action = action


class ConfigurationError(GomuError):
    """Settings file could not be loaded."""

    ...


class ProgramExecutionError(GomuError):
    """Program execution was unsuccessful."""

    exit_code: int
    output: str

    def __init__(self, msg: str, exit_code: int, output: str = "") -> None:
        super().__init__(msg)
        self.exit_code = exit_code
        self.output = output


class ProgramMissingError(GomuError):
    """Required program is missing."""

    ...


class ModuleLoadError(GomuError):
    """A go.mod file could not be read."""

    path: pathlib.Path

    def __init__(self, msg: str, path: pathlib.Path) -> None:
        super().__init__(msg)
        self.path = path
