"""Base system and account steps for the root phase."""

from __future__ import annotations

import os
import shlex
import sys

from bootstrap.context import SetupContext
from bootstrap.logging_utils import log_subprocess_result
from bootstrap.steps import StepSkipped
from bootstrap.system_utils import run, sudo_prefix

SUDOERS_DIR = "/etc/sudoers.d"


def packages_upgraded_recently(ctx: SetupContext) -> bool:
    return ctx.packages.upgraded_within(ctx.config.apt_max_age_hours)


def update_and_upgrade_packages(ctx: SetupContext) -> str:
    ctx.logger.info("  Updating package lists...")
    ctx.packages.update()
    ctx.logger.info("  Upgrading packages...")
    ctx.packages.upgrade()
    ctx.packages.mark_upgraded()
    return "System packages updated and upgraded"


def user_configured(ctx: SetupContext) -> bool:
    username = ctx.config.username
    return ctx.accounts.exists(username) and ctx.accounts.in_group(username, "sudo")


def create_user(ctx: SetupContext) -> str:
    username = ctx.config.username
    if not ctx.accounts.exists(username):
        ctx.accounts.create(username)
        ctx.logger.info(f"  Created new user: {username}")
    ctx.accounts.add_to_group(username, "sudo")
    return f"User {username} configured with sudo group"


def sudoers_path(ctx: SetupContext) -> str:
    return os.path.join(SUDOERS_DIR, ctx.config.username)


def sudoers_content(ctx: SetupContext) -> str:
    return f"{ctx.config.username} ALL=(ALL) NOPASSWD:ALL\n"


def sudoers_configured(ctx: SetupContext) -> bool:
    return ctx.files.matches(sudoers_path(ctx), sudoers_content(ctx), privileged=True)


def configure_sudoers(ctx: SetupContext) -> str:
    path = sudoers_path(ctx)
    ctx.files.write(path, sudoers_content(ctx), mode=0o440, privileged=True)
    # A broken sudoers drop-in disables sudo entirely
    result = run(sudo_prefix() + ["visudo", "-cf", path], check=False)
    if not log_subprocess_result(ctx.logger, f"visudo -cf {path}", result):
        ctx.files.remove(path, privileged=True)
        raise RuntimeError(f"visudo rejected {path}, drop-in removed")
    return f"Passwordless sudo enabled for {ctx.config.username}"


def user_has_ssh_keys(ctx: SetupContext) -> bool:
    return ctx.files.has_entries(ctx.user_authorized_keys())


def copy_ssh_keys_to_user(ctx: SetupContext) -> str:
    username = ctx.config.username
    source = ctx.own_authorized_keys()
    target = ctx.user_authorized_keys()

    if not ctx.files.has_entries(source):
        raise StepSkipped(f"No SSH keys found in {source} to copy. Add keys to {target}")

    ctx.files.make_dir(os.path.dirname(target), mode=0o700, owner=username)
    ctx.files.write(target, ctx.files.read(source), mode=0o600, owner=username)
    return f"SSH keys copied to {username}"


def _install_tool(ctx: SetupContext, package: str) -> str:
    ctx.packages.ensure_installed([package])
    return f"{package} installed"


def mosh_installed(ctx: SetupContext) -> bool:
    return ctx.tools.is_installed("mosh")


def install_mosh(ctx: SetupContext) -> str:
    return _install_tool(ctx, "mosh")


def tmux_installed(ctx: SetupContext) -> bool:
    return ctx.tools.is_installed("tmux")


def install_tmux(ctx: SetupContext) -> str:
    return _install_tool(ctx, "tmux")


def setup_script_destination(ctx: SetupContext) -> str:
    return os.path.join(ctx.user_home(), ctx.config.script_name)


def setup_script_launcher(ctx: SetupContext) -> str:
    """Shell wrapper that runs the bootstrap script from its install location."""
    script = os.path.abspath(ctx.config.script_path)
    return f'#!/bin/sh\nexec {shlex.quote(sys.executable)} {shlex.quote(script)} "$@"\n'


def setup_script_installed(ctx: SetupContext) -> bool:
    if not ctx.config.script_path:
        return False
    return ctx.files.matches(setup_script_destination(ctx), setup_script_launcher(ctx))


def install_setup_script(ctx: SetupContext) -> str:
    source = ctx.config.script_path
    if not source or not ctx.files.exists(source):
        raise FileNotFoundError(f"Setup script not found: {source}")

    destination = setup_script_destination(ctx)
    ctx.files.write(destination, setup_script_launcher(ctx), mode=0o755, owner=ctx.config.username)
    return f"Setup script launcher written to {destination}"

