"""Actions and global flags understood by the gomu command line."""

from __future__ import annotations

import enum
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Optional

from .exceptions import RegistryError

logger = logging.getLogger(__name__)


class Action(enum.Enum):
    """The closed set of gomu actions."""

    list = "list"
    pull = "pull"
    reset = "reset"
    replace_local = "replace-local"
    replace = "replace"
    sync = "sync"
    deploy = "deploy"
    help = "help"
    version = "version"

    @classmethod
    def from_name(cls, name: str) -> Optional[Action]:
        """Get the action for ``name``, or None if it is not an action."""
        try:
            return cls(name.strip().lower())
        except ValueError:
            return None

    @property
    def is_meta(self) -> bool:
        """Meta actions never reach the sync engine."""
        return self in (Action.help, Action.version)

    @property
    def clears_mod_cache(self) -> bool:
        return self in (Action.sync, Action.deploy)


#: Actions handed to the sync engine.
SUPPORTED_ACTIONS = tuple(action for action in Action if not action.is_meta)


class FlagKind(enum.Enum):
    """How many values a flag consumes."""

    BOOL = enum.auto()
    STRING = enum.auto()
    STRINGS = enum.auto()

    @property
    def takes_value(self) -> bool:
        return self is not FlagKind.BOOL


@dataclass(frozen=True)
class Flag:
    """A global flag and all of its spellings."""

    #: The canonical name, e.g. ``-branch``.
    name: str
    #: Every accepted spelling, including the canonical name.
    identifiers: tuple[str, ...]
    kind: FlagKind = FlagKind.STRING
    help: str = ""

    @property
    def aliases(self) -> tuple[str, ...]:
        return tuple(ident for ident in self.identifiers if ident != self.name)


@dataclass(frozen=True)
class ActionInfo:
    """Help text for a single action."""

    action: Action
    description: str
    usage: str = ""


class Registry:
    """
    Lookup tables for actions and flags.

    Identifiers are unique: registering a spelling that is already claimed
    by another flag raises :class:`RegistryError`.
    """

    description: str
    _actions: dict[Action, ActionInfo]
    _flags: dict[str, Flag]
    _identifiers: dict[str, Flag]

    def __init__(self, description: str = "") -> None:
        self.description = description
        self._actions = {}
        self._flags = {}
        self._identifiers = {}

    def add_action(
        self,
        action: Action,
        description: str,
        usage: str = "",
    ) -> ActionInfo:
        if action in self._actions:
            raise RegistryError(f"Action registered twice: {action.value}")
        info = ActionInfo(action=action, description=description, usage=usage)
        self._actions[action] = info
        return info

    def add_flag(self, flag: Flag) -> Flag:
        if flag.name not in flag.identifiers:
            raise RegistryError(
                f"Flag {flag.name} must list its own name as an identifier",
            )
        if flag.name in self._flags:
            raise RegistryError(f"Flag registered twice: {flag.name}")
        for ident in flag.identifiers:
            existing = self._identifiers.get(ident)
            if existing is not None:
                raise RegistryError(
                    f"Identifier {ident} of {flag.name} is already used by "
                    f"{existing.name}",
                )

        self._flags[flag.name] = flag
        for ident in flag.identifiers:
            self._identifiers[ident] = flag
        logger.debug("Registered flag %s (%s)", flag.name, ", ".join(flag.identifiers))
        return flag

    def find_flag(self, identifier: str) -> Optional[Flag]:
        return self._identifiers.get(identifier)

    def get_flag(self, name: str) -> Flag:
        return self._flags[name]

    def find_action(self, name: str) -> Optional[ActionInfo]:
        action = Action.from_name(name)
        if action is None:
            return None
        return self._actions.get(action)

    @property
    def actions(self) -> Iterator[ActionInfo]:
        yield from self._actions.values()

    @property
    def flags(self) -> Iterator[Flag]:
        yield from self._flags.values()


def build_registry() -> Registry:
    """Build the registry of every gomu action and flag."""
    registry = Registry(
        description=(
            "Aggregate libs to crawl the dependency chain.\n"
            "Will accept multiple arguments. Providing no arguments will act "
            "on every module in the selected directories (be careful!)"
        ),
    )

    registry.add_action(
        Action.help,
        "Prints available commands and flags.",
        usage="help <command> <flags>",
    )
    registry.add_action(Action.version, "Prints current version.")
    registry.add_action(Action.list, "Prints each module in the dependency chain.")
    registry.add_action(
        Action.pull,
        "Updates the branch of each module in the dependency chain. "
        "Providing a -branch will check out the given branch, creating it "
        "if none exists.",
    )
    registry.add_action(
        Action.replace_local,
        "Replaces each versioned module in the dependency chain with the "
        "currently checked out local copy.",
    )
    registry.add_action(Action.replace, "Alias of replace-local.")
    registry.add_action(
        Action.reset,
        "Reverts go.mod and go.sum back to the last committed version.",
        usage="reset mod-common parg",
    )
    registry.add_action(
        Action.sync,
        "Updates module files. Conditionally performs extra tasks "
        "depending on flags.",
        usage="<flags> sync mod-common parg simply <flags>",
    )
    registry.add_action(
        Action.deploy,
        "Syncs the dependency chain, then commits, tags and pushes each "
        "updated module.",
    )

    registry.add_flag(Flag(
        name="-include",
        identifiers=("-i", "-in", "-include"),
        kind=FlagKind.STRINGS,
        help="Aggregate modules in one or more directories. "
             "Usage: `gomu list -i hatchify -i vroomy`",
    ))
    registry.add_flag(Flag(
        name="-branch",
        identifiers=("-b", "-branch"),
        help="Check out or create the given branch, updating or creating a "
             "pull request depending on command and other flags. "
             "Usage: `gomu pull -b feature/Jira-Ticket`",
    ))
    registry.add_flag(Flag(
        name="-name-only",
        identifiers=("-name", "-name-only"),
        kind=FlagKind.BOOL,
        help="Reduce output to just the module names (ls-styled output for | "
             "chaining). Overrides -log. Usage: `gomu list -name`",
    ))
    registry.add_flag(Flag(
        name="-commit",
        identifiers=("-c", "-commit"),
        kind=FlagKind.BOOL,
        help="Commit local changes if present, including all files outside "
             "of module files. Usage: `gomu sync -c`",
    ))
    registry.add_flag(Flag(
        name="-pull-request",
        identifiers=("-pr", "-pull-request"),
        kind=FlagKind.BOOL,
        help="Create a pull request if possible. Fails if on the default "
             "branch or if there are no changes. Usage: `gomu sync -pr`",
    ))
    registry.add_flag(Flag(
        name="-message",
        identifiers=("-m", "-msg", "-message"),
        help="Set a custom commit message; applies to -c and -pr. "
             "Usage: `gomu sync -c -m \"Update all the things!\"`",
    ))
    registry.add_flag(Flag(
        name="-tag",
        identifiers=("-t", "-tag"),
        kind=FlagKind.BOOL,
        help="Increment the tag if there are new commits since the last tag. "
             "Requires a tag to be set previously. Usage: `gomu sync -t`",
    ))
    registry.add_flag(Flag(
        name="-log",
        identifiers=("-l", "-log"),
        help="Log level: debug, normal (or info), warning, error. "
             "Usage: `gomu sync -log debug`",
    ))
    return registry


REGISTRY = build_registry()
