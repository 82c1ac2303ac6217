from __future__ import annotations

import pathlib

import pytest

from gomu import engine as engine_mod
from gomu import git, util
from gomu.config import Settings
from gomu.console import Console
from gomu.engine import Stats, SyncEngine
from gomu.exceptions import ProgramExecutionError
from gomu.options import LogLevel, Options


class ProgramRecorder:
    """Stand-in for util.run_program that records commands."""

    def __init__(self, outputs: dict[tuple[str, ...], str] | None = None, fail_in: str = ""):
        self.commands: list[tuple[str, tuple[str, ...], str]] = []
        self.outputs = outputs or {}
        self.fail_in = fail_in

    def __call__(self, program: str, *args: str, cwd=None, env=None) -> str:
        cwd_name = pathlib.Path(cwd).name if cwd is not None else ""
        self.commands.append((program, args, cwd_name))
        if self.fail_in and cwd_name == self.fail_in:
            raise ProgramExecutionError(f"{program} failed", exit_code=1, output="oops")
        for prefix, output in self.outputs.items():
            if args[:len(prefix)] == prefix:
                return output
        return ""

    def for_module(self, name: str) -> list[tuple[str, ...]]:
        return [args for _, args, cwd in self.commands if cwd == name]


@pytest.fixture()
def programs(monkeypatch: pytest.MonkeyPatch) -> ProgramRecorder:
    recorder = ProgramRecorder()
    monkeypatch.setattr(util, "run_program", recorder)
    return recorder


def make_engine(workspace: pathlib.Path, action: str, *deps: str, **kwargs) -> SyncEngine:
    options = Options(
        action=action,
        filter_dependencies=deps,
        target_directories=(str(workspace),),
        **kwargs,
    )
    return SyncEngine(options=options, settings=Settings(), console=Console(options.log_level))


def test_stats_format():
    stats = Stats(modules=3, updated=2, tagged=1)
    assert stats.format("sync", "feature/X") == (
        "Ran sync on branch feature/X for 3 module(s)\n"
        "  Updated: 2\n"
        "  Tagged: 1"
    )
    assert Stats().format("list") == "Ran list for 0 module(s)"


def test_list(go_workspace: pathlib.Path, programs: ProgramRecorder, capsys):
    engine = make_engine(go_workspace, "list", "parg").run()
    assert engine.errors == []
    assert engine.stats.modules == 2
    assert capsys.readouterr().out.splitlines() == ["parg", "simply"]
    assert programs.commands == []


def test_list_name_only(go_workspace: pathlib.Path, programs: ProgramRecorder, capsys):
    make_engine(go_workspace, "list", "simply", log_level=LogLevel.NAMEONLY).run()
    assert capsys.readouterr().out.splitlines() == [str((go_workspace / "simply").resolve())]


def test_meta_action_rejected(go_workspace: pathlib.Path):
    with pytest.raises(ValueError):
        make_engine(go_workspace, "help").run()


def test_reset(go_workspace: pathlib.Path, programs: ProgramRecorder):
    (go_workspace / "parg" / "go.sum").write_text("")
    engine = make_engine(go_workspace, "reset", "parg").run()
    assert engine.errors == []
    assert programs.for_module("parg") == [("checkout", "--", "go.mod", "go.sum")]
    assert programs.for_module("simply") == [("checkout", "--", "go.mod")]
    assert engine.stats.updated == 2


def test_errors_are_collected(go_workspace: pathlib.Path, monkeypatch: pytest.MonkeyPatch):
    recorder = ProgramRecorder(fail_in="parg")
    monkeypatch.setattr(util, "run_program", recorder)
    engine = make_engine(go_workspace, "pull", "mod-common").run()
    assert engine.errors == ["parg: git failed"]
    assert engine.stats.modules == 3
    assert engine.stats.updated == 2
    assert engine.stats.errors == 1


def test_pull_with_branch(go_workspace: pathlib.Path, monkeypatch: pytest.MonkeyPatch):
    recorder = ProgramRecorder()
    monkeypatch.setattr(util, "run_program", recorder)
    monkeypatch.setattr(git, "branch_exists", lambda path, branch, git="git": path.name == "parg")
    engine = make_engine(go_workspace, "pull", "parg", branch="feature/X").run()
    assert engine.errors == []
    assert recorder.for_module("parg") == [("checkout", "feature/X"), ("pull",)]
    assert recorder.for_module("simply") == [("checkout", "-b", "feature/X"), ("pull",)]


def test_replace_local(go_workspace: pathlib.Path, programs: ProgramRecorder):
    engine = make_engine(go_workspace, "replace-local", "mod-common").run()
    assert engine.errors == []
    assert programs.for_module("mod-common") == []
    assert programs.for_module("parg") == [
        ("mod", "edit", "-replace=github.com/hatchify/mod-common=../mod-common"),
    ]
    assert sorted(programs.for_module("simply")) == [
        ("mod", "edit", "-replace=github.com/hatchify/mod-common=../mod-common"),
        ("mod", "edit", "-replace=github.com/hatchify/parg=../parg"),
    ]
    assert engine.stats.updated == 2


def test_sync_commit_and_tag(go_workspace: pathlib.Path, monkeypatch: pytest.MonkeyPatch):
    recorder = ProgramRecorder(
        outputs={
            ("log", "-n1"): "abc123",
            ("status", "--porcelain"): " M go.mod\n",
            ("describe", "--tags"): "v0.1.2\n",
            ("rev-list", "--count"): "2\n",
            ("rev-parse", "--abbrev-ref"): "feature/X\n",
        },
    )
    monkeypatch.setattr(util, "run_program", recorder)
    engine = make_engine(
        go_workspace, "sync", "parg",
        commit=True, tag=True, commit_message="Update parg",
    ).run()
    assert engine.errors == []

    simply = recorder.for_module("simply")
    assert ("get", "github.com/hatchify/parg@abc123") in simply
    assert ("mod", "tidy") in simply
    assert ("commit", "-m", "Update parg") in simply
    assert ("tag", "v0.1.3") in simply
    assert ("push", "--follow-tags", "--set-upstream", "origin", "feature/X") in simply
    assert engine.stats.committed == 2
    assert engine.stats.tagged == 2


def test_pull_request_refused_on_default_branch(
    go_workspace: pathlib.Path,
    monkeypatch: pytest.MonkeyPatch,
):
    recorder = ProgramRecorder(outputs={("rev-parse", "--abbrev-ref"): "master\n"})
    monkeypatch.setattr(util, "run_program", recorder)
    engine = make_engine(go_workspace, "sync", "simply", pull_request=True).run()
    assert engine.errors == ["simply: Refusing to open a pull request from master"]
    assert engine.stats.pull_requests == 0


def test_clean_mod_cache(go_workspace: pathlib.Path, programs: ProgramRecorder):
    engine = make_engine(go_workspace, "sync")
    engine.clean_mod_cache()
    assert programs.commands[0][:2] == ("go", ("clean", "-modcache"))


def test_clean_mod_cache_failure(go_workspace: pathlib.Path, monkeypatch: pytest.MonkeyPatch):
    def fail(*args, **kwargs):
        raise ProgramExecutionError("go failed", exit_code=2)

    monkeypatch.setattr(util, "run_program", fail)
    engine = make_engine(go_workspace, "deploy")
    engine.clean_mod_cache()
    assert engine.errors == ["Unable to clean module cache: go failed"]


def test_handlers_cover_supported_actions():
    from gomu.registry import SUPPORTED_ACTIONS
    assert set(engine_mod._HANDLERS) == set(SUPPORTED_ACTIONS)


def test_unreadable_go_mod_is_collected(go_workspace: pathlib.Path, programs: ProgramRecorder, capsys):
    broken = go_workspace / "broken"
    broken.mkdir()
    (broken / "go.mod").write_bytes(b"module x\n\xff\xfe\n")

    engine = make_engine(go_workspace, "list").run()
    assert len(engine.errors) == 1
    assert engine.errors[0].startswith(f"Unable to read {broken.resolve() / 'go.mod'}")
    assert engine.stats.errors == 1
    assert engine.stats.modules == 4
    assert capsys.readouterr().out.splitlines() == ["mod-common", "parg", "simply", "vroomy"]
