"""Command execution and host probes used by capabilities and steps."""

from __future__ import annotations

import os
import shlex
import shutil
import subprocess
from typing import Optional

from bootstrap.logging_utils import get_logger, summarize_stderr
from bootstrap.types import Command, StrDict


class CommandError(RuntimeError):
    """A command exited with a non-zero status."""

    def __init__(self, cmd: Command, returncode: int, details: str = ""):
        self.cmd = cmd
        self.returncode = returncode
        self.details = details
        shown = cmd if isinstance(cmd, str) else shlex.join(cmd)
        if len(shown) > 80:
            shown = shown[:77] + "..."
        message = f"'{shown}' exited with code {returncode}"
        if details:
            message += f": {details}"
        super().__init__(message)


class EnvironmentMismatchError(RuntimeError):
    """The host cannot be provisioned at all; no step can be trusted."""


def run(
    cmd: Command,
    check: bool = True,
    capture_output: bool = True,
    input: Optional[str] = None,
    cwd: Optional[str] = None,
    env: Optional[StrDict] = None,
) -> subprocess.CompletedProcess[str]:
    """Run a command, raising CommandError on failure when ``check`` is set.

    Strings run through the shell, lists run directly.
    """
    shown = cmd if isinstance(cmd, str) else shlex.join(cmd)
    get_logger().debug(f"  Running: {shown[:80]}..." if len(shown) > 80 else f"  Running: {shown}")

    run_env = None
    if env:
        run_env = os.environ.copy()
        run_env.update(env)

    result = subprocess.run(
        cmd,
        shell=isinstance(cmd, str),
        capture_output=capture_output,
        text=True,
        input=input,
        cwd=cwd,
        env=run_env,
    )
    if check and result.returncode != 0:
        details = summarize_stderr(result) if capture_output else ""
        raise CommandError(cmd, result.returncode, details)
    return result


def is_root() -> bool:
    return os.geteuid() == 0


def sudo_prefix() -> list[str]:
    """Prefix for commands that need root when the caller is not root."""
    return [] if is_root() else ["sudo"]


def detect_os(os_release: str = "/etc/os-release") -> str:
    """Return the distribution id, raising EnvironmentMismatchError if unsupported."""
    try:
        with open(os_release) as f:
            content = f.read()
    except FileNotFoundError:
        raise EnvironmentMismatchError(f"Cannot detect OS - {os_release} not found")

    values: dict[str, str] = {}
    for line in content.splitlines():
        if "=" in line:
            key, _, value = line.partition("=")
            values[key.strip()] = value.strip().strip('"')

    family = {values.get("ID", "")} | set(values.get("ID_LIKE", "").split())
    if not family & {"debian", "ubuntu"}:
        raise EnvironmentMismatchError(
            f"Unsupported OS: {values.get('ID', 'unknown')} (only Debian and Ubuntu are supported)"
        )
    return values.get("ID", "debian")


def command_exists(command: str, extra_paths: Optional[list[str]] = None) -> bool:
    search = os.environ.get("PATH", "")
    if extra_paths:
        search = os.pathsep.join(list(extra_paths) + [search])
    return shutil.which(command, path=search) is not None
