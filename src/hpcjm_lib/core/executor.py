# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Execution of external commands.

Every scheduler call, version probe and native launch performed by hpcjm goes
through `run_command`, which enforces a deadline and distinguishes a command
that exited with an error from a command that exceeded its deadline.
"""

import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

from .config import CFG
from .error import JMExecutionError, JMTimeoutError
from .logger import get_logger

logger = get_logger(__name__)


@dataclass
class Command:
    """
    Description of an external command to execute.
    """

    # Path to the binary (or its name, resolved using PATH).
    bin_path: Path | str
    # Arguments passed to the binary.
    args: list[str] = field(default_factory=list)
    # Directory in which the command is executed.
    exec_dir: Path | None = None
    # Complete environment of the command. If None, the current environment is inherited.
    env: dict[str, str] | None = None
    # Deadline in seconds. If None, the configured default is used.
    timeout: float | None = None

    def toList(self) -> list[str]:
        """
        Return the command as a list of strings suitable for subprocess.
        """
        return [str(self.bin_path), *self.args]

    def __str__(self) -> str:
        return " ".join(self.toList())


@dataclass
class ExecResult:
    """
    Result of an executed command.
    """

    # Captured standard output.
    stdout: str = ""
    # Captured standard error output.
    stderr: str = ""
    # Exit code of the command.
    returncode: int = 0


def run_command(cmd: Command, check: bool = True) -> ExecResult:
    """
    Execute a command and capture its output.

    Args:
        cmd (Command): The command to execute.
        check (bool): Raise an error if the command returns a non-zero exit code.

    Returns:
        ExecResult: Captured stdout, stderr and the exit code.

    Raises:
        JMTimeoutError: If the command does not finish before its deadline.
        JMExecutionError: If the command cannot be started or, with `check`,
            if it exits with a non-zero exit code.
    """
    timeout = cmd.timeout if cmd.timeout is not None else CFG.timeouts.command
    logger.debug(f"Running command '{cmd}' (timeout: {timeout} s).")

    try:
        result = subprocess.run(
            cmd.toList(),
            cwd=cmd.exec_dir,
            env=cmd.env,
            text=True,
            check=False,
            capture_output=True,
            errors="replace",
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        raise JMTimeoutError(
            f"Command '{cmd}' timed out after {timeout} seconds.",
            stdout=_decode(e.stdout),
            stderr=_decode(e.stderr),
        ) from e
    except OSError as e:
        raise JMExecutionError(f"Could not execute command '{cmd}': {e}.") from e

    if check and result.returncode != 0:
        raise JMExecutionError(
            f"Command '{cmd}' failed with exit code {result.returncode}: {result.stderr.strip()}.",
            stdout=result.stdout,
            stderr=result.stderr,
            returncode=result.returncode,
        )

    return ExecResult(result.stdout, result.stderr, result.returncode)


def environment_with(overrides: dict[str, str]) -> dict[str, str]:
    """
    Return a copy of the current environment updated with the provided variables.
    """
    env = os.environ.copy()
    env.update(overrides)
    return env


def _decode(output: str | bytes | None) -> str:
    # TimeoutExpired may carry bytes even when text mode was requested
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode(errors="replace")
    return output
