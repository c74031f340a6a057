"""Developer environment steps for the unprivileged user phase."""

from __future__ import annotations

import os
import shutil
import tempfile
from datetime import datetime

from bootstrap.context import SetupContext
from bootstrap.steps import StepSkipped
from bootstrap.system_utils import run, sudo_prefix

CLAUDE_INSTALL_URL = "https://claude.ai/install.sh"
MISE_INSTALL_URL = "https://mise.run"
NVIM_RELEASE_URL = "https://github.com/neovim/neovim/releases/latest/download/nvim-linux-x86_64.tar.gz"
# Top-level directory inside the release tarball
NVIM_ARCHIVE_ROOT = "nvim-linux-x86_64"
LAZYVIM_STARTER_URL = "https://github.com/LazyVim/starter"

MISE_CRON_FILE = "/etc/cron.weekly/mise-upgrade"
MISE_UPGRADE_LOG = "/var/log/mise-upgrade.log"

PHP_BUILD_DEPS = [
    "autoconf", "bison", "build-essential", "curl", "gettext", "git",
    "libgd-dev", "libcurl4-openssl-dev", "libedit-dev", "libicu-dev", "libjpeg-dev",
    "libmysqlclient-dev", "libonig-dev", "libpng-dev", "libpq-dev", "libreadline-dev",
    "libsqlite3-dev", "libssl-dev", "libxml2-dev", "libxslt-dev", "libzip-dev", "openssl",
    "pkg-config", "re2c", "zlib1g-dev",
]
RUBY_BUILD_DEPS = ["rustc", "libyaml-dev", "libgmp-dev"]
NEOVIM_DEPS = ["git", "build-essential", "ripgrep", "fd-find", "unzip"]

MISE_CRON = f"""#!/bin/bash
# Weekly mise upgrade for all users with mise installed

for user_home in /root /home/*; do
    if [ -x "$user_home/.local/bin/mise" ]; then
        user=$(basename "$user_home")
        [ "$user_home" = "/root" ] && user="root"

        su - "$user" -c 'export PATH="$HOME/.local/bin:$PATH" && mise upgrade --yes' \\
            >> {MISE_UPGRADE_LOG} 2>&1
    fi
done
"""

LOCAL_BIN_PATH = 'export PATH="$HOME/.local/bin:$PATH"'
MISE_ACTIVATE_MARKER = "mise activate bash"
MISE_ACTIVATE = 'eval "$(~/.local/bin/mise activate bash)"'
TMUX_ATTACH_MARKER = "tmux attach-session -t main"
TMUX_AUTO_ATTACH = """
# Auto-attach to tmux session on login
if command -v tmux &> /dev/null && [ -z "$TMUX" ] && [ -n "$SSH_CONNECTION" ]; then
    tmux attach-session -t main 2>/dev/null || tmux new-session -s main
fi
"""

TMUX_CONF = """# Enable mouse support
set -g mouse on

# Start windows and panes at 1, not 0
set -g base-index 1
setw -g pane-base-index 1

# Increase history limit
set -g history-limit 50000

# Renumber windows when one is closed
set -g renumber-windows on

# Reduce escape time for better vim experience
set -sg escape-time 10

# Enable 256 colors
set -g default-terminal "screen-256color"

# Enable extended keys (for Shift+Enter, etc.)
set -s extended-keys on
set -as terminal-features 'xterm*:extkeys'
"""


def _run_installer(url: str) -> None:
    """Download an installer script to a temp file and run it with bash."""
    fd, script = tempfile.mkstemp(prefix="installer-", suffix=".sh")
    os.close(fd)
    try:
        run(["curl", "-fsSL", url, "-o", script])
        run(["bash", script])
    finally:
        os.unlink(script)


# Installers

def claude_cli_installed(ctx: SetupContext) -> bool:
    return ctx.tools.is_installed("claude")


def install_claude_cli(ctx: SetupContext) -> str:
    _run_installer(CLAUDE_INSTALL_URL)
    return "Claude CLI installed"


def mise_installed(ctx: SetupContext) -> bool:
    return ctx.versions.is_available()


def install_mise(ctx: SetupContext) -> str:
    _run_installer(MISE_INSTALL_URL)
    return "mise installed"


# Build dependencies

def php_build_deps_installed(ctx: SetupContext) -> bool:
    return ctx.packages.all_installed(PHP_BUILD_DEPS)


def install_php_build_deps(ctx: SetupContext) -> str:
    installed = ctx.packages.ensure_installed(PHP_BUILD_DEPS)
    return f"PHP build dependencies installed ({len(installed)} new packages)"


def ruby_build_deps_installed(ctx: SetupContext) -> bool:
    return ctx.packages.all_installed(RUBY_BUILD_DEPS)


def install_ruby_build_deps(ctx: SetupContext) -> str:
    installed = ctx.packages.ensure_installed(RUBY_BUILD_DEPS)
    return f"Ruby build dependencies installed ({len(installed)} new packages)"


def neovim_deps_installed(ctx: SetupContext) -> bool:
    return ctx.packages.all_installed(NEOVIM_DEPS)


def install_neovim_deps(ctx: SetupContext) -> str:
    installed = ctx.packages.ensure_installed(NEOVIM_DEPS)
    return f"Neovim/LazyVim dependencies installed ({len(installed)} new packages)"


# Language runtimes

def language_checker(spec: str):
    def check(ctx: SetupContext) -> bool:
        return ctx.versions.is_installed(spec)
    return check


def language_installer(spec: str):
    def install(ctx: SetupContext) -> str:
        if not ctx.versions.is_available():
            raise StepSkipped(f"mise not found, skipping {spec}", warning=True)
        ctx.versions.use_global(spec)
        return f"{spec} installed via mise"
    return install


# Git identity

def _git_config_set(key: str) -> bool:
    return run(["git", "config", "--global", key], check=False).returncode == 0


def git_name_configured(ctx: SetupContext) -> bool:
    return _git_config_set("user.name")


def configure_git_name(ctx: SetupContext) -> str:
    run(["git", "config", "--global", "user.name", ctx.config.git_name])
    return f"Git user.name set to {ctx.config.git_name}"


def git_email_configured(ctx: SetupContext) -> bool:
    return _git_config_set("user.email")


def configure_git_email(ctx: SetupContext) -> str:
    run(["git", "config", "--global", "user.email", ctx.config.git_email])
    return f"Git user.email set to {ctx.config.git_email}"


# Directories and scheduled upgrades

def code_directory_exists(ctx: SetupContext) -> bool:
    return ctx.files.is_dir(ctx.expand(ctx.config.code_dir))


def create_code_directory(ctx: SetupContext) -> str:
    path = ctx.expand(ctx.config.code_dir)
    ctx.files.make_dir(path)
    return f"Created {path}"


def mise_upgrades_configured(ctx: SetupContext) -> bool:
    return ctx.files.matches(MISE_CRON_FILE, MISE_CRON)


def configure_mise_upgrades(ctx: SetupContext) -> str:
    ctx.files.write(MISE_CRON_FILE, MISE_CRON, mode=0o755, privileged=True)
    return f"Weekly mise upgrades configured (log: {MISE_UPGRADE_LOG})"


# Editor

def neovim_installed(ctx: SetupContext) -> bool:
    return ctx.files.exists(os.path.join(ctx.config.nvim_install_dir, "bin", "nvim"))


def install_neovim(ctx: SetupContext) -> str:
    target = ctx.config.nvim_install_dir
    parent = os.path.dirname(target)
    staging = os.path.join(parent, f".{os.path.basename(target)}.staging")
    sudo = sudo_prefix()

    tmpdir = tempfile.mkdtemp(prefix="nvim-")
    try:
        tarball = os.path.join(tmpdir, "nvim.tar.gz")
        run(["curl", "-fsSL", NVIM_RELEASE_URL, "-o", tarball])
        # Extract next to the target, then rename into place
        run(sudo + ["rm", "-rf", staging, target])
        run(sudo + ["mkdir", "-p", staging])
        run(sudo + ["tar", "-C", staging, "-xzf", tarball])
        run(sudo + ["mv", os.path.join(staging, NVIM_ARCHIVE_ROOT), target])
    finally:
        run(sudo + ["rm", "-rf", staging], check=False)
        shutil.rmtree(tmpdir, ignore_errors=True)
    return f"Neovim installed in {target}"


def _neovim_bin(ctx: SetupContext) -> str:
    return os.path.join(ctx.config.nvim_install_dir, "bin")


def neovim_path_configured(ctx: SetupContext) -> bool:
    return ctx.profile.contains(_neovim_bin(ctx))


def configure_neovim_path(ctx: SetupContext) -> str:
    ctx.profile.append_block(_neovim_bin(ctx), f'export PATH="{_neovim_bin(ctx)}:$PATH"')
    return "Neovim added to PATH in .bashrc"


def _nvim_config_dir(ctx: SetupContext) -> str:
    return os.path.join(ctx.home, ".config", "nvim")


def lazyvim_installed(ctx: SetupContext) -> bool:
    return ctx.files.exists(os.path.join(_nvim_config_dir(ctx), "lua", "config", "lazy.lua"))


def install_lazyvim(ctx: SetupContext) -> str:
    config_dir = _nvim_config_dir(ctx)
    stamp = datetime.now().strftime("%Y%m%d%H%M%S")

    for path in (
        config_dir,
        os.path.join(ctx.home, ".local", "share", "nvim"),
        os.path.join(ctx.home, ".local", "state", "nvim"),
        os.path.join(ctx.home, ".cache", "nvim"),
    ):
        if ctx.files.exists(path):
            backup = f"{path}.backup.{stamp}"
            ctx.logger.info(f"  Backing up {path} to {backup}")
            ctx.files.move(path, backup)

    clone_dir = f"{config_dir}.clone"
    shutil.rmtree(clone_dir, ignore_errors=True)
    run(["git", "clone", "--depth", "1", LAZYVIM_STARTER_URL, clone_dir])
    shutil.rmtree(os.path.join(clone_dir, ".git"), ignore_errors=True)
    ctx.files.move(clone_dir, config_dir)
    return "LazyVim installed. Run 'nvim' to complete plugin installation."


# Shell profile

def local_bin_path_configured(ctx: SetupContext) -> bool:
    return ctx.profile.contains(LOCAL_BIN_PATH)


def configure_local_bin_path(ctx: SetupContext) -> str:
    ctx.profile.append_block(LOCAL_BIN_PATH, LOCAL_BIN_PATH)
    return "~/.local/bin added to PATH in .bashrc"


def mise_activation_configured(ctx: SetupContext) -> bool:
    return ctx.profile.contains(MISE_ACTIVATE_MARKER)


def configure_mise_activation(ctx: SetupContext) -> str:
    ctx.profile.append_block(MISE_ACTIVATE_MARKER, MISE_ACTIVATE)
    return "mise activation added to .bashrc"


def _default_directory_marker(ctx: SetupContext) -> str:
    return f"cd {ctx.config.code_dir}"


def default_directory_configured(ctx: SetupContext) -> bool:
    return ctx.profile.contains(_default_directory_marker(ctx))


def configure_default_directory(ctx: SetupContext) -> str:
    marker = _default_directory_marker(ctx)
    block = f"# Change to code directory on new terminal\n{marker} 2>/dev/null || true"
    ctx.profile.append_block(marker, block)
    return f"{ctx.config.code_dir} set as default directory"


def tmux_autoattach_configured(ctx: SetupContext) -> bool:
    return ctx.profile.contains(TMUX_ATTACH_MARKER)


def configure_tmux_autoattach(ctx: SetupContext) -> str:
    ctx.profile.append_block(TMUX_ATTACH_MARKER, TMUX_AUTO_ATTACH)
    return "tmux auto-attach configured for SSH logins"


def _tmux_conf(ctx: SetupContext) -> str:
    return os.path.join(ctx.home, ".tmux.conf")


def tmux_config_exists(ctx: SetupContext) -> bool:
    return ctx.files.exists(_tmux_conf(ctx))


def configure_tmux(ctx: SetupContext) -> str:
    ctx.files.write_if_absent(_tmux_conf(ctx), TMUX_CONF)
    return "Basic tmux configuration created"
