"""
The default sync engine: walks the local dependency chain and runs git/go.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Callable, Optional

from . import git, gomod, util
from .config import Settings
from .console import Console
from .exceptions import GomuError
from .gomod import GoModule
from .options import Options
from .registry import Action

logger = logging.getLogger(__name__)


@dataclass
class Stats:
    """Counts of what the engine did."""

    modules: int = 0
    updated: int = 0
    committed: int = 0
    tagged: int = 0
    pull_requests: int = 0
    errors: int = 0

    def format(self, action: str, branch: Optional[str] = None) -> str:
        on_branch = f" on branch {branch}" if branch else ""
        lines = [f"Ran {action}{on_branch} for {self.modules} module(s)"]
        for label, count in (
            ("Updated", self.updated),
            ("Committed", self.committed),
            ("Tagged", self.tagged),
            ("Pull requests", self.pull_requests),
            ("Errors", self.errors),
        ):
            if count:
                lines.append(f"  {label}: {count}")
        return "\n".join(lines)


@dataclass
class SyncEngine:
    """
    Run an action over every module in the dependency chain.

    Errors from individual modules are collected in ``errors``; the run
    continues with the next module.
    """

    options: Options
    settings: Settings = field(default_factory=Settings)
    console: Console = field(default_factory=Console)
    stats: Stats = field(default_factory=Stats)
    errors: list[str] = field(default_factory=list)
    modules: list[GoModule] = field(default_factory=list)
    chain: list[GoModule] = field(default_factory=list)

    @property
    def action(self) -> Action:
        action = Action.from_name(self.options.action)
        if action is None or action.is_meta:
            raise ValueError(f"Not an engine action: {self.options.action}")
        return action

    def clean_mod_cache(self) -> None:
        """Remove cached module downloads so updated versions are fetched."""
        logger.info("Cleaning module cache")
        try:
            util.run_program(self.settings.go, "clean", "-modcache")
        except GomuError as ex:
            self._add_error(f"Unable to clean module cache: {ex}")

    def load(self) -> list[GoModule]:
        """Find modules; unreadable go.mod files are recorded as errors."""
        self.modules = gomod.find_modules(
            self.options.target_directories,
            on_error=lambda ex: self._add_error(str(ex)),
        )
        self.chain = gomod.get_dependency_chain(
            self.modules,
            self.options.filter_dependencies,
        )
        return self.chain

    def run(self) -> SyncEngine:
        handler = _HANDLERS[self.action]
        self.load()
        for module in self.chain:
            self.stats.modules += 1
            try:
                handler(self, module)
            except (GomuError, ValueError) as ex:
                self._add_error(f"{module.name}: {ex}")
                if getattr(ex, "output", ""):
                    logger.debug("%s output:\n%s", module.name, ex.output)
        return self

    def _add_error(self, message: str) -> None:
        logger.error(message)
        self.errors.append(message)
        self.stats.errors += 1

    def _list(self, module: GoModule) -> None:
        self.console.name(str(module.path) if self.console.name_only else module.name)

    def _checkout(self, module: GoModule) -> None:
        if self.options.branch:
            if git.checkout(module.path, self.options.branch, git=self.settings.git):
                self.console.status(f"{module.name}: created branch {self.options.branch}")

    def _pull(self, module: GoModule) -> None:
        self._checkout(module)
        git.pull(module.path, git=self.settings.git)
        self.stats.updated += 1
        self.console.status(f"{module.name}: pulled")

    def _reset(self, module: GoModule) -> None:
        files = [name for name in (gomod.GO_MOD, gomod.GO_SUM) if (module.path / name).exists()]
        git.reset_files(module.path, *files, git=self.settings.git)
        self.stats.updated += 1
        self.console.name(module.name)

    def _replace_local(self, module: GoModule) -> None:
        deps = gomod.get_local_requirements(module, self.chain)
        for dep in deps:
            relative = os.path.relpath(dep.path, module.path)
            util.run_program(
                self.settings.go, "mod", "edit",
                f"-replace={dep.module_path}={relative}",
                cwd=module.path,
            )
        if deps:
            self.stats.updated += 1
            self.console.name(module.name)

    def _sync(self, module: GoModule) -> None:
        deploy = self.action is Action.deploy
        self._checkout(module)
        for dep in gomod.get_local_requirements(module, self.chain):
            commit_hash = git.get_git_hash(dep.path, git=self.settings.git)
            util.run_program(
                self.settings.go, "get", f"{dep.module_path}@{commit_hash}",
                cwd=module.path,
                env={"GOFLAGS": "-mod=mod"},
            )
        util.run_program(self.settings.go, "mod", "tidy", cwd=module.path)

        if not git.has_changes(module.path, git=self.settings.git):
            logger.debug("%s is up to date", module.name)
        else:
            self.stats.updated += 1
            self.console.name(module.name)

        committed = False
        if self.options.commit or deploy:
            message = self.options.commit_message or self.settings.default_commit_message
            committed = git.commit_all(module.path, message, git=self.settings.git)
            if committed:
                self.stats.committed += 1

        if self.options.tag or deploy:
            new_tag = git.tag_if_changed(module.path, git=self.settings.git)
            if new_tag is not None:
                self.stats.tagged += 1
                self.console.status(f"{module.name}: tagged {new_tag}")

        if committed or deploy:
            branch = git.get_current_branch(module.path, git=self.settings.git)
            git.push(module.path, self.settings.remote, branch, git=self.settings.git)

        if self.options.pull_request:
            self._pull_request(module)

    def _pull_request(self, module: GoModule) -> None:
        branch = git.get_current_branch(module.path, git=self.settings.git)
        if branch == self.settings.default_branch:
            raise ValueError(f"Refusing to open a pull request from {branch}")
        message = self.options.commit_message or self.settings.default_commit_message
        util.run_program(
            self.settings.gh, "pr", "create",
            "--title", message,
            "--body", message,
            "--base", self.settings.default_branch,
            cwd=module.path,
        )
        self.stats.pull_requests += 1


_HANDLERS: dict[Action, Callable[[SyncEngine, GoModule], None]] = {
    Action.list: SyncEngine._list,
    Action.pull: SyncEngine._pull,
    Action.reset: SyncEngine._reset,
    Action.replace_local: SyncEngine._replace_local,
    Action.replace: SyncEngine._replace_local,
    Action.sync: SyncEngine._sync,
    Action.deploy: SyncEngine._sync,
}
