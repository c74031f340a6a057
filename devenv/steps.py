"""Developer environment steps."""

from __future__ import annotations

from .devenv_steps import (
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

__all__ = [
    'claude_cli_installed',
    'install_claude_cli',
    'mise_installed',
    'install_mise',
    'php_build_deps_installed',
    'install_php_build_deps',
    'ruby_build_deps_installed',
    'install_ruby_build_deps',
    'neovim_deps_installed',
    'install_neovim_deps',
    'language_checker',
    'language_installer',
    'git_name_configured',
    'configure_git_name',
    'git_email_configured',
    'configure_git_email',
    'code_directory_exists',
    'create_code_directory',
    'mise_upgrades_configured',
    'configure_mise_upgrades',
    'neovim_installed',
    'install_neovim',
    'neovim_path_configured',
    'configure_neovim_path',
    'lazyvim_installed',
    'install_lazyvim',
    'local_bin_path_configured',
    'configure_local_bin_path',
    'mise_activation_configured',
    'configure_mise_activation',
    'default_directory_configured',
    'configure_default_directory',
    'tmux_autoattach_configured',
    'configure_tmux_autoattach',
    'tmux_config_exists',
    'configure_tmux',
]
