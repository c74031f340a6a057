"""Common setup steps."""

from __future__ import annotations

from .common_steps import (
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

__all__ = [
    'packages_upgraded_recently',
    'update_and_upgrade_packages',
    'user_configured',
    'create_user',
    'sudoers_configured',
    'configure_sudoers',
    'user_has_ssh_keys',
    'copy_ssh_keys_to_user',
    'mosh_installed',
    'install_mosh',
    'tmux_installed',
    'install_tmux',
    'setup_script_installed',
    'install_setup_script',
]
