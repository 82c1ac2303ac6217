from __future__ import annotations

import logging
import os
import pathlib
import shlex
import shutil
import subprocess
import sys
from typing import Optional, TextIO, Union

import click

from .exceptions import ProgramExecutionError, ProgramMissingError

logger = logging.getLogger(__name__)


def find_program(name: str) -> str:
    """Get the location of the ``name`` executable."""
    path = shutil.which(name)
    if path is None:
        raise ProgramMissingError(f"{name} is not installed")
    return path


def run_program(
    program: str,
    *args: str,
    cwd: Optional[Union[pathlib.Path, str]] = None,
    env: Optional[dict[str, str]] = None,
) -> str:
    """
    Run ``program`` with ``args`` and return its output.

    Raises
    ------
    ProgramExecutionError
        If the program exits with a non-zero code.
    """
    cwd = cwd or pathlib.Path.cwd()
    command = [find_program(program), *args]
    shell_cmd = shlex.join([program, *args])
    logger.debug("Running '%s' in %s", shell_cmd, cwd)
    sys.stdout.flush()
    result = subprocess.run(  # noqa: S603
        command,
        cwd=str(cwd),
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        env={**os.environ, **env} if env else None,
        check=False,
    )
    if result.returncode != 0:
        logger.debug("Ran '%s' in %s unsuccessfully (code %d)", shell_cmd, cwd, result.returncode)
        raise ProgramExecutionError(
            f"'{shell_cmd}' in {cwd} exited with code {result.returncode}",
            exit_code=result.returncode,
            output=result.stdout,
        )
    logger.debug("Ran '%s' in %s; output=\n%s", shell_cmd, cwd, result.stdout)
    return result.stdout


def passthrough_stdin(stream: Optional[TextIO] = None) -> list[str]:
    """
    Echo newline-delimited paths piped in from another program.

    Reads until end of stream; blank lines are dropped.  Only call this when
    standard input is not a terminal, as it blocks until end of stream.

    Returns
    -------
    list of str
        The paths, in the order they were read.
    """
    stream = stream if stream is not None else sys.stdin
    paths = []
    try:
        for line in stream:
            text = line.strip()
            if text:
                paths.append(text)
    except OSError as ex:
        logger.debug("Stopped reading standard input: %s", ex)

    for path in paths:
        click.echo(path)
    return paths


def stdin_is_piped(stream: Optional[TextIO] = None) -> bool:
    stream = stream if stream is not None else sys.stdin
    try:
        return stream is not None and not stream.isatty()
    except (AttributeError, ValueError):
        return False
