"""Narrow host capabilities that setup steps are written against.

Steps never shell out on their own for package, service, file, account or
runtime-version state; they go through one of these classes so tests can
substitute fakes with the same methods.
"""

from __future__ import annotations

import grp
import os
import pwd
import shutil
import tempfile
import time
from typing import Optional

from bootstrap.system_utils import run, command_exists, is_root, sudo_prefix


# Touched only after update and upgrade both succeeded. apt's own
# update-success-stamp also moves on a bare `apt update`, so it is not used.
APT_UPGRADE_STAMP = "/var/lib/apt/periodic/server-bootstrap-upgrade-stamp"


class AptPackageManager:
    """Package installation through apt-get/dpkg."""

    def __init__(self, sudo: Optional[list[str]] = None):
        self.sudo = sudo_prefix() if sudo is None else sudo

    def _apt(self, *args: str) -> list[str]:
        return self.sudo + ["env", "DEBIAN_FRONTEND=noninteractive", "apt-get", *args]

    def is_available(self) -> bool:
        return command_exists("apt-get") and command_exists("dpkg-query")

    def is_installed(self, package: str) -> bool:
        result = run(["dpkg-query", "-W", "-f=${Status}", package], check=False)
        return result.returncode == 0 and "install ok installed" in result.stdout

    def all_installed(self, packages: list[str]) -> bool:
        return all(self.is_installed(p) for p in packages)

    def ensure_installed(self, packages: list[str]) -> list[str]:
        """Install whichever of ``packages`` are missing and return them."""
        missing = [p for p in packages if not self.is_installed(p)]
        if missing:
            run(self._apt("install", "-y", "-qq", *missing))
        return missing

    def update(self) -> None:
        run(self._apt("update", "-qq"))

    def upgrade(self) -> None:
        run(self._apt("upgrade", "-y", "-qq"))

    def mark_upgraded(self) -> None:
        run(self.sudo + ["mkdir", "-p", os.path.dirname(APT_UPGRADE_STAMP)])
        run(self.sudo + ["touch", APT_UPGRADE_STAMP])

    def upgraded_within(self, max_age_hours: int, now: Optional[float] = None) -> bool:
        """True if a full update and upgrade finished within ``max_age_hours``."""
        now = time.time() if now is None else now
        try:
            return now - os.path.getmtime(APT_UPGRADE_STAMP) < max_age_hours * 3600
        except OSError:
            return False


class SystemdServiceManager:
    """Service control through systemctl."""

    def __init__(self, sudo: Optional[list[str]] = None):
        self.sudo = sudo_prefix() if sudo is None else sudo

    def is_active(self, service: str) -> bool:
        return run(["systemctl", "is-active", "--quiet", service], check=False).returncode == 0

    def enable(self, service: str) -> None:
        run(self.sudo + ["systemctl", "enable", service])

    def start(self, service: str) -> None:
        run(self.sudo + ["systemctl", "start", service])

    def reload(self, service: str) -> None:
        run(self.sudo + ["systemctl", "reload", service])


class LocalFileStore:
    """File presence and content on the local host.

    Writes are atomic: content goes to a temporary file which then replaces
    the target, so an interrupted write never leaves a partial file behind.
    Privileged writes by a non-root caller go through ``sudo install``.
    """

    def __init__(self, sudo: Optional[list[str]] = None):
        self.sudo = sudo_prefix() if sudo is None else sudo

    def exists(self, path: str) -> bool:
        return os.path.exists(path)

    def is_dir(self, path: str) -> bool:
        return os.path.isdir(path)

    def read(self, path: str, privileged: bool = False) -> Optional[str]:
        """Return the file content, or None if it is missing or unreadable.

        With ``privileged`` a non-root caller falls back to ``sudo cat`` for
        root-only files such as sudoers drop-ins.
        """
        try:
            with open(path, "r") as f:
                return f.read()
        except (FileNotFoundError, IsADirectoryError):
            return None
        except PermissionError:
            if not (privileged and self.sudo and not is_root()):
                return None
        result = run(self.sudo + ["cat", path], check=False)
        return result.stdout if result.returncode == 0 else None

    def matches(self, path: str, content: str, privileged: bool = False) -> bool:
        return self.read(path, privileged=privileged) == content

    def has_entries(self, path: str) -> bool:
        """True if the file has at least one non-blank, non-comment line."""
        content = self.read(path)
        if not content:
            return False
        return any(line.strip() and not line.lstrip().startswith("#") for line in content.splitlines())

    def write(
        self,
        path: str,
        content: str,
        mode: int = 0o644,
        owner: Optional[str] = None,
        privileged: bool = False,
    ) -> None:
        if privileged and self.sudo and not is_root():
            self._sudo_install(path, content, mode, owner)
            return

        directory = os.path.dirname(path) or "."
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".tmp-")
        try:
            with os.fdopen(fd, "w") as f:
                f.write(content)
            os.chmod(tmp_path, mode)
            if owner:
                shutil.chown(tmp_path, user=owner, group=owner)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def _sudo_install(self, path: str, content: str, mode: int, owner: Optional[str]) -> None:
        fd, tmp_path = tempfile.mkstemp(prefix="server-bootstrap-")
        try:
            with os.fdopen(fd, "w") as f:
                f.write(content)
            cmd = self.sudo + ["install", "-D", "-m", format(mode, "o")]
            if owner:
                cmd += ["-o", owner, "-g", owner]
            run(cmd + [tmp_path, path])
        finally:
            os.unlink(tmp_path)

    def write_if_absent(self, path: str, content: str, **kwargs) -> bool:
        """Write ``content`` unless ``path`` exists. Returns True if written."""
        if self.exists(path):
            return False
        self.write(path, content, **kwargs)
        return True

    def remove(self, path: str, privileged: bool = False) -> None:
        if privileged and self.sudo and not is_root():
            run(self.sudo + ["rm", "-f", path])
        elif os.path.exists(path):
            os.unlink(path)

    def make_dir(self, path: str, mode: int = 0o755, owner: Optional[str] = None) -> None:
        os.makedirs(path, exist_ok=True)
        os.chmod(path, mode)
        if owner:
            shutil.chown(path, user=owner, group=owner)

    def move(self, src: str, dst: str) -> None:
        os.replace(src, dst)


class UnixAccountManager:
    """Local user accounts through pwd/grp and adduser/usermod."""

    def __init__(self, sudo: Optional[list[str]] = None):
        self.sudo = sudo_prefix() if sudo is None else sudo

    def exists(self, username: str) -> bool:
        try:
            pwd.getpwnam(username)
            return True
        except KeyError:
            return False

    def home_dir(self, username: str) -> str:
        try:
            return pwd.getpwnam(username).pw_dir
        except KeyError:
            return f"/home/{username}"

    def create(self, username: str) -> None:
        run(self.sudo + ["adduser", "--disabled-password", "--gecos", "", username])

    def in_group(self, username: str, group: str) -> bool:
        try:
            entry = grp.getgrnam(group)
        except KeyError:
            return False
        if username in entry.gr_mem:
            return True
        try:
            return pwd.getpwnam(username).pw_gid == entry.gr_gid
        except KeyError:
            return False

    def add_to_group(self, username: str, group: str) -> None:
        run(self.sudo + ["usermod", "-aG", group, username])


class MiseVersionManager:
    """Language runtimes through mise."""

    def __init__(self, home: Optional[str] = None):
        self.home = home or os.path.expanduser("~")

    @property
    def local_bin(self) -> str:
        return os.path.join(self.home, ".local", "bin")

    def binary(self) -> Optional[str]:
        search = os.pathsep.join([self.local_bin, os.environ.get("PATH", "")])
        return shutil.which("mise", path=search)

    def is_available(self) -> bool:
        return self.binary() is not None

    def is_installed(self, spec: str) -> bool:
        mise = self.binary()
        if mise is None:
            return False
        return run([mise, "where", spec], check=False).returncode == 0

    def use_global(self, spec: str) -> None:
        mise = self.binary()
        if mise is None:
            raise FileNotFoundError("mise not found")
        run([mise, "use", "--global", spec])


class ToolProbe:
    """Answers "is this command available" for the current user."""

    def __init__(self, extra_paths: Optional[list[str]] = None):
        self.extra_paths = extra_paths or []

    def is_installed(self, tool: str) -> bool:
        return command_exists(tool, self.extra_paths)


class UfwFirewall:
    """Host firewall through ufw."""

    def __init__(self, sudo: Optional[list[str]] = None):
        self.sudo = sudo_prefix() if sudo is None else sudo

    def is_active(self) -> bool:
        if not command_exists("ufw", ["/usr/sbin", "/sbin"]):
            return False
        result = run(self.sudo + ["ufw", "status"], check=False)
        return result.returncode == 0 and "Status: active" in result.stdout

    def default(self, direction: str, policy: str) -> None:
        run(self.sudo + ["ufw", "default", policy, direction])

    def allow(self, rule: str, comment: Optional[str] = None) -> None:
        cmd = self.sudo + ["ufw", "allow", rule]
        if comment:
            cmd += ["comment", comment]
        run(cmd)

    def enable(self) -> None:
        run(self.sudo + ["ufw", "--force", "enable"])
