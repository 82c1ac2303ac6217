from __future__ import annotations

import logging
import pathlib
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Optional

from .exceptions import ModuleLoadError

if TYPE_CHECKING:
    try:
        from typing import Self
    except ImportError:
        from typing_extensions import Self


GO_MOD = "go.mod"
GO_SUM = "go.sum"

logger = logging.getLogger(__name__)

_module_re = re.compile(r"^module\s+(?P<path>\S+)")
_require_single_re = re.compile(r"^require\s+(?P<path>[^\s(]+)\s+(?P<version>\S+)")
_require_block_line_re = re.compile(r"^(?P<path>\S+)\s+(?P<version>\S+)")


@dataclass
class GoModule:
    """A Go module checked out locally."""

    #: The directory holding go.mod.
    path: pathlib.Path
    #: The module path from the ``module`` directive.
    module_path: str
    #: Required module path to version.
    requires: dict[str, str] = field(default_factory=dict)

    @property
    def name(self) -> str:
        """The directory name, e.g. ``mod-common``."""
        return self.path.name

    def matches(self, name: str) -> bool:
        """Does ``name`` refer to this module, by directory or module path?"""
        return name in (self.name, self.module_path) or self.module_path.endswith(f"/{name}")

    @classmethod
    def from_path(cls: type[Self], path: pathlib.Path) -> Self:
        """
        Load module information from a directory containing go.mod.

        Parameters
        ----------
        path : pathlib.Path
            The module directory.

        Returns
        -------
        GoModule

        Raises
        ------
        ModuleLoadError
            If go.mod cannot be read or is not valid UTF-8.
        """
        filename = path / GO_MOD
        try:
            with open(filename, encoding="utf-8") as fp:
                contents = fp.read()
        except (OSError, UnicodeDecodeError) as ex:
            raise ModuleLoadError(f"Unable to read {filename}: {ex}", path=path) from ex
        module_path, requires = parse_go_mod(contents, filename=filename)
        return cls(path=path, module_path=module_path, requires=requires)


def _strip_comment(line: str) -> str:
    return line.split("//", 1)[0].strip()


def parse_go_mod(
    contents: str,
    filename: Optional[pathlib.Path] = None,
) -> tuple[str, dict[str, str]]:
    """
    Get the module path and requirements from go.mod contents.

    Returns
    -------
    module_path : str
        Empty if there is no module directive.
    requires : dict[str, str]
        Required module path to version.
    """
    module_path = ""
    requires = {}
    in_require_block = False
    for line in contents.splitlines():
        line = _strip_comment(line)
        if not line:
            continue

        if in_require_block:
            if line == ")":
                in_require_block = False
                continue
            match = _require_block_line_re.match(line)
            if match is not None:
                requires[match["path"]] = match["version"]
            continue

        if line.startswith("require") and line.endswith("("):
            in_require_block = True
            continue

        match = _module_re.match(line)
        if match is not None:
            module_path = match["path"].strip('"')
            continue

        match = _require_single_re.match(line)
        if match is not None:
            requires[match["path"]] = match["version"]

    if not module_path:
        logger.warning("No module directive found in %s", filename or "go.mod contents")
    return module_path, requires


def find_modules(
    directories: Iterable[str | pathlib.Path],
    on_error: Optional[Callable[[ModuleLoadError], None]] = None,
) -> list[GoModule]:
    """
    Find Go modules in each directory and its immediate subdirectories.

    Parameters
    ----------
    directories : iterable of str or pathlib.Path
    on_error : callable, optional
        Called with the error for each go.mod that cannot be read; that
        module is skipped.  Without it, the error is raised.

    Returns
    -------
    list of GoModule
        Sorted by directory within each search directory; duplicates removed.
    """
    seen = set()
    modules = []
    for directory in directories:
        root = pathlib.Path(directory).expanduser().resolve()
        if not root.is_dir():
            logger.warning("Not a directory: %s", directory)
            continue

        candidates = [root, *sorted(child for child in root.iterdir() if child.is_dir())]
        for candidate in candidates:
            if candidate in seen or not (candidate / GO_MOD).is_file():
                continue
            seen.add(candidate)
            logger.debug("Found module in %s", candidate)
            try:
                modules.append(GoModule.from_path(candidate))
            except ModuleLoadError as ex:
                if on_error is None:
                    raise
                on_error(ex)
    return modules


def get_dependency_chain(
    modules: Sequence[GoModule],
    names: Sequence[str],
) -> list[GoModule]:
    """
    Get the named modules and every module depending on them.

    Parameters
    ----------
    modules : sequence of GoModule
        All known local modules.
    names : sequence of str
        Directory names or module paths; all modules if empty.

    Returns
    -------
    list of GoModule
        Ordered so that dependencies come before their dependents.
    """
    if not names:
        return get_update_order(modules)

    chain = [module for module in modules if any(module.matches(name) for name in names)]
    unmatched = [name for name in names if not any(mod.matches(name) for mod in chain)]
    if unmatched:
        logger.warning("No local module found for: %s", ", ".join(unmatched))

    chain_dirs = {module.path for module in chain}
    chain_paths = {module.module_path for module in chain if module.module_path}
    added = True
    while added:
        added = False
        for module in modules:
            if module.path in chain_dirs:
                continue
            if any(req in chain_paths for req in module.requires):
                chain.append(module)
                chain_dirs.add(module.path)
                if module.module_path:
                    chain_paths.add(module.module_path)
                added = True

    return get_update_order(chain)


def get_local_requirements(module: GoModule, modules: Sequence[GoModule]) -> list[GoModule]:
    """Get the modules in ``modules`` that ``module`` requires."""
    return [
        other for other in modules
        if other.module_path in module.requires and other is not module
    ]


def get_update_order(modules: Sequence[GoModule]) -> list[GoModule]:
    """
    Order modules so that each comes after the local modules it requires.

    Modules are keyed by directory, so two checkouts of the same module path
    are both kept; anything requiring that path comes after both of them.
    Cycles are reported and the remaining modules appended in name order.
    """
    # TODO: a topological sort would avoid the repeated scans here
    by_dir = {module.path: module for module in modules}
    providers: dict[str, list[pathlib.Path]] = {}
    for module in by_dir.values():
        if module.module_path:
            providers.setdefault(module.module_path, []).append(module.path)

    for module_path, dirs in providers.items():
        if len(dirs) > 1:
            logger.warning(
                "Module %s is checked out more than once: %s",
                module_path,
                ", ".join(str(path) for path in dirs),
            )

    local_requires = {
        module.path: {
            dep for req in module.requires for dep in providers.get(req, ())
            if dep != module.path
        }
        for module in by_dir.values()
    }

    def sort_key(path: pathlib.Path) -> tuple[str, str]:
        return (by_dir[path].name, str(path))

    order: list[GoModule] = []
    ordered: set[pathlib.Path] = set()
    remaining = set(by_dir)
    while remaining:
        last_remaining = set(remaining)
        for path in sorted(remaining, key=sort_key):
            if local_requires[path] <= ordered:
                order.append(by_dir[path])
                ordered.add(path)
                remaining.remove(path)

        if remaining == last_remaining:
            logger.warning(
                "Unable to determine update order; dependency cycle among: %s",
                ", ".join(sorted(by_dir[path].name for path in remaining)),
            )
            order.extend(by_dir[path] for path in sorted(remaining, key=sort_key))
            break

    logger.debug("Determined update order: %s", ", ".join(module.name for module in order))
    return order
