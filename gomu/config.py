from __future__ import annotations

import json
import logging
import os
import pathlib
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

import apischema
import yaml

from .console import Console
from .exceptions import ConfigurationError
from .options import LogLevel
from .registry import REGISTRY, Registry

if TYPE_CHECKING:
    try:
        from typing import Self
    except ImportError:
        from typing_extensions import Self


AUTO_ENVVAR_PREFIX = "GOMU"
CONFIG_ENVVAR = f"{AUTO_ENVVAR_PREFIX}_CONFIG"

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    """Tools and conventions used by the sync engine."""

    go: str = "go"
    git: str = "git"
    gh: str = "gh"
    remote: str = "origin"
    default_branch: str = "master"
    default_commit_message: str = "Update dependencies"

    @classmethod
    def from_filename(cls: type[Self], filename: pathlib.Path | str) -> Self:
        is_json = pathlib.Path(filename).suffix.lower() in {".json"}
        try:
            with open(filename, encoding="utf-8") as fp:
                contents = fp.read()
        except (OSError, UnicodeDecodeError) as ex:
            raise ConfigurationError(f"Unable to read settings file {filename}: {ex}") from ex

        try:
            if is_json:
                serialized = json.loads(contents)
            else:
                serialized = yaml.load(contents, Loader=yaml.SafeLoader)
        except (json.JSONDecodeError, yaml.YAMLError) as ex:
            raise ConfigurationError(f"Invalid settings file {filename}: {ex}") from ex

        try:
            return apischema.deserialize(cls, serialized or {})
        except apischema.ValidationError as ex:
            raise ConfigurationError(f"Invalid settings file {filename}: {ex}") from ex

    @classmethod
    def from_env(cls: type[Self]) -> Self:
        """
        Load settings from the file named by ``GOMU_CONFIG``.

        Returns
        -------
        Settings
            Default settings if the environment variable is unset.
        """
        filename = os.environ.get(CONFIG_ENVVAR, "")
        if not filename:
            return cls()
        path = pathlib.Path(filename).expanduser().resolve()
        logger.debug("Loading settings from %s", path)
        return cls.from_filename(path)


@dataclass(frozen=True)
class AppContext:
    """Process-wide state, built once after the command line is parsed."""

    version: str
    log_level: LogLevel = LogLevel.NORMAL
    settings: Settings = field(default_factory=Settings)
    registry: Registry = REGISTRY

    @property
    def console(self) -> Console:
        return Console(self.log_level)


def configure_logging(log_level: LogLevel) -> None:
    module_logger = logging.getLogger("gomu")
    module_logger.setLevel(log_level.logging_level)
    logging.basicConfig()


def get_version() -> str:
    from . import __version__
    return __version__


def build_context(
    log_level: LogLevel,
    settings: Optional[Settings] = None,
) -> AppContext:
    return AppContext(
        version=get_version(),
        log_level=log_level,
        settings=settings if settings is not None else Settings.from_env(),
    )
