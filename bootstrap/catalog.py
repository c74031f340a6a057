"""Step catalog: every step of both phases, in execution order."""

from __future__ import annotations

from typing import Optional

from bootstrap.config import BootstrapConfig
from bootstrap.steps import Phase, SafetyGatedStep, Step

from common.steps import (
    packages_upgraded_recently,
    update_and_upgrade_packages,
    user_configured,
    create_user,
    sudoers_configured,
    configure_sudoers,
    user_has_ssh_keys,
    copy_ssh_keys_to_user,
    mosh_installed,
    install_mosh,
    tmux_installed,
    install_tmux,
    setup_script_installed,
    install_setup_script,
)

from security.steps import (
    SSH_LOCKOUT_WARNING,
    firewall_active,
    configure_firewall,
    fail2ban_running,
    configure_fail2ban,
    ssh_hardened,
    ssh_keys_present,
    harden_ssh,
    auto_updates_configured,
    configure_auto_updates,
)

from devenv.steps import (
    claude_cli_installed,
    install_claude_cli,
    mise_installed,
    install_mise,
    php_build_deps_installed,
    install_php_build_deps,
    ruby_build_deps_installed,
    install_ruby_build_deps,
    neovim_deps_installed,
    install_neovim_deps,
    language_checker,
    language_installer,
    git_name_configured,
    configure_git_name,
    git_email_configured,
    configure_git_email,
    code_directory_exists,
    create_code_directory,
    mise_upgrades_configured,
    configure_mise_upgrades,
    neovim_installed,
    install_neovim,
    neovim_path_configured,
    configure_neovim_path,
    lazyvim_installed,
    install_lazyvim,
    local_bin_path_configured,
    configure_local_bin_path,
    mise_activation_configured,
    configure_mise_activation,
    default_directory_configured,
    configure_default_directory,
    tmux_autoattach_configured,
    configure_tmux_autoattach,
    tmux_config_exists,
    configure_tmux,
)


ROOT = Phase.ROOT
USER = Phase.USER

ROOT_STEPS: list[Step] = [
    Step("update_packages", "Updating and upgrading packages",
         packages_upgraded_recently, update_and_upgrade_packages, ROOT),
    Step("configure_firewall", "Configuring UFW firewall",
         firewall_active, configure_firewall, ROOT),
    Step("install_fail2ban", "Installing fail2ban",
         fail2ban_running, configure_fail2ban, ROOT),
    Step("create_user", "Creating unprivileged user",
         user_configured, create_user, ROOT),
    Step("configure_sudoers", "Enabling passwordless sudo",
         sudoers_configured, configure_sudoers, ROOT, requires=("create_user",)),
    Step("copy_ssh_keys", "Copying SSH keys to user",
         user_has_ssh_keys, copy_ssh_keys_to_user, ROOT, requires=("create_user",)),
    SafetyGatedStep("harden_ssh", "Hardening SSH configuration",
                    ssh_hardened, harden_ssh, ROOT,
                    precondition=ssh_keys_present, blocked_message=SSH_LOCKOUT_WARNING),
    Step("configure_auto_updates", "Configuring automatic security updates",
         auto_updates_configured, configure_auto_updates, ROOT),
    Step("install_mosh", "Installing mosh",
         mosh_installed, install_mosh, ROOT),
    Step("install_tmux", "Installing tmux",
         tmux_installed, install_tmux, ROOT),
    Step("install_setup_script", "Installing setup script launcher in user's home",
         setup_script_installed, install_setup_script, ROOT, requires=("create_user",)),
]

USER_STEPS_BEFORE_LANGUAGES: list[Step] = [
    Step("install_claude_cli", "Installing Claude CLI",
         claude_cli_installed, install_claude_cli, USER),
    Step("install_mise", "Installing mise",
         mise_installed, install_mise, USER),
    Step("install_php_build_deps", "Installing PHP build dependencies",
         php_build_deps_installed, install_php_build_deps, USER),
    Step("install_ruby_build_deps", "Installing Ruby build dependencies",
         ruby_build_deps_installed, install_ruby_build_deps, USER),
]

USER_STEPS_AFTER_LANGUAGES: list[Step] = [
    Step("configure_git_name", "Configuring git user.name",
         git_name_configured, configure_git_name, USER),
    Step("configure_git_email", "Configuring git user.email",
         git_email_configured, configure_git_email, USER),
    Step("create_code_directory", "Creating code directory",
         code_directory_exists, create_code_directory, USER),
    Step("configure_mise_upgrades", "Configuring weekly mise upgrades",
         mise_upgrades_configured, configure_mise_upgrades, USER),
    Step("install_neovim_deps", "Installing Neovim/LazyVim dependencies",
         neovim_deps_installed, install_neovim_deps, USER),
    Step("install_neovim", "Installing latest Neovim",
         neovim_installed, install_neovim, USER),
    Step("configure_neovim_path", "Adding Neovim to PATH",
         neovim_path_configured, configure_neovim_path, USER),
    Step("install_lazyvim", "Installing LazyVim",
         lazyvim_installed, install_lazyvim, USER),
    Step("configure_local_bin_path", "Adding ~/.local/bin to PATH",
         local_bin_path_configured, configure_local_bin_path, USER),
    Step("configure_mise_activation", "Adding mise activation to .bashrc",
         mise_activation_configured, configure_mise_activation, USER),
    Step("configure_default_directory", "Setting default directory",
         default_directory_configured, configure_default_directory, USER),
    Step("configure_tmux_autoattach", "Configuring tmux auto-attach on login",
         tmux_autoattach_configured, configure_tmux_autoattach, USER),
    Step("configure_tmux", "Creating tmux configuration",
         tmux_config_exists, configure_tmux, USER),
]


def language_steps(config: BootstrapConfig) -> list[Step]:
    steps = []
    for spec in config.languages:
        tool = spec.split("@", 1)[0]
        steps.append(Step(
            f"install_{tool}", f"Installing {spec} via mise",
            language_checker(spec), language_installer(spec), USER,
            requires=("install_mise",),
        ))
    return steps


def build_catalog(config: BootstrapConfig) -> list[Step]:
    """All steps of both phases, tagged with their phase."""
    return ROOT_STEPS + USER_STEPS_BEFORE_LANGUAGES + language_steps(config) + USER_STEPS_AFTER_LANGUAGES


def get_steps_for_phase(
    phase: Phase,
    config: BootstrapConfig,
    names: Optional[list[str]] = None
) -> list[Step]:
    """Steps of ``phase`` in order, optionally limited to ``names``."""
    catalog = build_catalog(config)
    steps = [step for step in catalog if step.phase is phase]
    if not names:
        return steps

    by_name = {step.name: step for step in catalog}
    for name in names:
        if name not in by_name:
            raise ValueError(f"Unknown step: {name}")
        if by_name[name].phase is not phase:
            raise ValueError(f"Step {name} belongs to the {by_name[name].phase.value} phase")

    wanted = set(names)
    return [step for step in steps if step.name in wanted]
