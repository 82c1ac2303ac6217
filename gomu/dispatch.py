from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol

from .config import AppContext, Settings
from .console import Console
from .exceptions import UnsupportedActionError
from .options import Options
from .registry import SUPPORTED_ACTIONS, Action
from .usage import format_action_help, format_usage

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_FAILURE = 1


class Engine(Protocol):
    """What the dispatcher needs from a sync engine."""

    errors: list[str]

    def clean_mod_cache(self) -> None:
        ...

    def run(self) -> Engine:
        ...

    @property
    def stats(self) -> StatsFormatter:
        ...


class StatsFormatter(Protocol):
    def format(self, action: str, branch: Optional[str] = None) -> str:
        ...


EngineFactory = Callable[[Options, Settings, Console], Engine]


def default_engine_factory(options: Options, settings: Settings, console: Console) -> Engine:
    from .engine import SyncEngine
    return SyncEngine(options=options, settings=settings, console=console)


def show_version(options: Options, context: AppContext, engine_factory: EngineFactory) -> int:
    context.console.usage(context.version)
    return EXIT_SUCCESS


def show_help(options: Options, context: AppContext, engine_factory: EngineFactory) -> int:
    info = None
    if options.filter_dependencies:
        info = context.registry.find_action(options.filter_dependencies[0])

    if info is None:
        context.console.usage(format_usage(context.registry))
    else:
        context.console.usage(format_action_help(info, context.registry))
    return EXIT_SUCCESS


def run_engine(options: Options, context: AppContext, engine_factory: EngineFactory) -> int:
    console = context.console
    action = Action.from_name(options.action)
    if action is None:
        raise UnsupportedActionError(options.action)
    console.status(f"Options: {options.to_json()}")

    engine = engine_factory(options, context.settings, console)
    if action.clears_mod_cache:
        engine.clean_mod_cache()

    engine.run()

    summary = engine.stats.format(options.action, options.branch)
    if engine.errors:
        console.status(summary)
        console.error(f"Quitting with errors: {engine.errors}")
        return EXIT_FAILURE

    console.status("All clean!")
    console.status(summary)
    return EXIT_SUCCESS


Handler = Callable[[Options, AppContext, EngineFactory], int]

HANDLERS: dict[Action, Handler] = {
    Action.version: show_version,
    Action.help: show_help,
    **{action: run_engine for action in SUPPORTED_ACTIONS},
}


def get_handler(action_name: str) -> Handler:
    """
    Get the handler for ``action_name``.

    An empty or whitespace-only action is a request for help.

    Raises
    ------
    UnsupportedActionError
    """
    if not action_name.strip():
        return show_help
    action = Action.from_name(action_name)
    if action is None:
        raise UnsupportedActionError(action_name)
    return HANDLERS[action]


def dispatch(
    options: Options,
    context: AppContext,
    engine_factory: Optional[EngineFactory] = None,
) -> int:
    """
    Run the action selected by ``options``.

    Returns
    -------
    int
        The process exit code.
    """
    try:
        handler = get_handler(options.action)
    except UnsupportedActionError as ex:
        context.console.usage(format_usage(context.registry))
        context.console.error(str(ex))
        return EXIT_FAILURE

    logger.debug("Dispatching %r to %s", options.action, handler.__name__)
    return handler(options, context, engine_factory or default_engine_factory)
