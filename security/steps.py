"""Security hardening steps."""

from __future__ import annotations

from .security_steps import (
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

__all__ = [
    'SSH_LOCKOUT_WARNING',
    'firewall_active',
    'configure_firewall',
    'fail2ban_running',
    'configure_fail2ban',
    'ssh_hardened',
    'ssh_keys_present',
    'harden_ssh',
    'auto_updates_configured',
    'configure_auto_updates',
]
