"""Everything a step may touch, bundled so steps take a single argument."""

from __future__ import annotations

import os
from dataclasses import dataclass
from logging import Logger
from typing import Any, Optional

from bootstrap.capabilities import (
    AptPackageManager,
    LocalFileStore,
    MiseVersionManager,
    SystemdServiceManager,
    ToolProbe,
    UfwFirewall,
    UnixAccountManager,
)
from bootstrap.config import BootstrapConfig
from bootstrap.logging_utils import get_logger
from bootstrap.profile import ShellProfile


@dataclass
class SetupContext:
    config: BootstrapConfig
    packages: Any
    services: Any
    files: Any
    accounts: Any
    firewall: Any
    versions: Any
    tools: Any
    profile: Any
    home: str
    logger: Logger

    def user_home(self) -> str:
        """Home directory of the unprivileged target account."""
        return self.accounts.home_dir(self.config.username)

    def user_authorized_keys(self) -> str:
        return os.path.join(self.user_home(), ".ssh", "authorized_keys")

    def own_authorized_keys(self) -> str:
        return os.path.join(self.home, ".ssh", "authorized_keys")

    def expand(self, path: str) -> str:
        """Expand ``~`` against the invoking user's home."""
        if path == "~":
            return self.home
        if path.startswith("~/"):
            return os.path.join(self.home, path[2:])
        return path


def create_context(config: BootstrapConfig, home: Optional[str] = None, logger: Optional[Logger] = None) -> SetupContext:
    """Build a context wired to the real host."""
    home = home or os.path.expanduser("~")
    files = LocalFileStore()
    return SetupContext(
        config=config,
        packages=AptPackageManager(),
        services=SystemdServiceManager(),
        files=files,
        accounts=UnixAccountManager(),
        firewall=UfwFirewall(),
        versions=MiseVersionManager(home),
        tools=ToolProbe([os.path.join(home, ".local", "bin")]),
        profile=ShellProfile(os.path.join(home, ".bashrc"), files),
        home=home,
        logger=logger or get_logger(),
    )
