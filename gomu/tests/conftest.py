from __future__ import annotations

import pathlib
import textwrap

import pytest

from gomu.config import AppContext, Settings
from gomu.options import LogLevel

GO_MODULES = {
    "mod-common": ("github.com/hatchify/mod-common", {}),
    "parg": (
        "github.com/hatchify/parg",
        {"github.com/hatchify/mod-common": "v0.1.2"},
    ),
    "simply": (
        "github.com/hatchify/simply",
        {
            "github.com/hatchify/parg": "v0.0.9",
            "github.com/hatchify/mod-common": "v0.1.0",
        },
    ),
    "vroomy": ("github.com/vroomy/vroomy", {"github.com/pkg/errors": "v0.9.1"}),
}


def write_go_mod(path: pathlib.Path, module_path: str, requires: dict[str, str]) -> None:
    path.mkdir(parents=True, exist_ok=True)
    lines = [f"module {module_path}", "", "go 1.21", ""]
    if requires:
        lines.append("require (")
        lines.extend(f"\t{req} {version}" for req, version in requires.items())
        lines.append(")")
    (path / "go.mod").write_text("\n".join(lines) + "\n")


@pytest.fixture()
def go_workspace(tmp_path: pathlib.Path) -> pathlib.Path:
    """A directory of sibling Go modules; simply -> parg -> mod-common."""
    for name, (module_path, requires) in GO_MODULES.items():
        write_go_mod(tmp_path / name, module_path, requires)
    (tmp_path / "not-a-module").mkdir()
    (tmp_path / "README.md").write_text(textwrap.dedent(
        """\
        Not a module.
        """
    ))
    return tmp_path


@pytest.fixture()
def app_context() -> AppContext:
    return AppContext(version="v1.2.3", log_level=LogLevel.NORMAL, settings=Settings())
