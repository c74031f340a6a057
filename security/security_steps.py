"""Security hardening steps."""

from __future__ import annotations

from bootstrap.context import SetupContext
from bootstrap.system_utils import CommandError, run, sudo_prefix

SSHD_CONFIG = "/etc/ssh/sshd_config"
SSH_HARDENING_FILE = "/etc/ssh/sshd_config.d/hardening.conf"
AUTO_UPGRADES_FILE = "/etc/apt/apt.conf.d/20auto-upgrades"

AUTO_UPGRADES = """APT::Periodic::Update-Package-Lists "1";
APT::Periodic::Unattended-Upgrade "1";
APT::Periodic::AutocleanInterval "7";
"""

SSH_LOCKOUT_WARNING = (
    "No SSH keys found for the target user. Skipping SSH hardening to prevent lockout. "
    "Add your public key to the user's ~/.ssh/authorized_keys and re-run this script."
)


def firewall_active(ctx: SetupContext) -> bool:
    return ctx.firewall.is_active()


def configure_firewall(ctx: SetupContext) -> str:
    ctx.packages.ensure_installed(["ufw"])
    ctx.firewall.default("incoming", "deny")
    ctx.firewall.default("outgoing", "allow")
    ctx.firewall.allow("ssh")
    ctx.firewall.allow(f"{ctx.config.mosh_ports}/udp", comment="mosh")
    ctx.firewall.enable()
    return "Firewall configured (SSH and mosh allowed)"


def fail2ban_running(ctx: SetupContext) -> bool:
    return ctx.tools.is_installed("fail2ban-server") and ctx.services.is_active("fail2ban")


def configure_fail2ban(ctx: SetupContext) -> str:
    ctx.packages.ensure_installed(["fail2ban"])
    ctx.services.enable("fail2ban")
    ctx.services.start("fail2ban")
    return "fail2ban installed and running"


def ssh_hardening_content(ctx: SetupContext) -> str:
    return f"""# Disable password authentication
PasswordAuthentication no
ChallengeResponseAuthentication no

# Disable root login entirely (use {ctx.config.username} instead)
PermitRootLogin no

# Other hardening
X11Forwarding no
MaxAuthTries 3
ClientAliveInterval 300
ClientAliveCountMax 2
"""


def ssh_hardened(ctx: SetupContext) -> bool:
    return ctx.files.matches(SSH_HARDENING_FILE, ssh_hardening_content(ctx))


def ssh_keys_present(ctx: SetupContext) -> bool:
    """Password login may only be disabled once the target user can log in with a key."""
    return ctx.files.has_entries(ctx.user_authorized_keys())


def harden_ssh(ctx: SetupContext) -> str:
    sshd_config = ctx.files.read(SSHD_CONFIG) or ""
    if "sshd_config.d" not in sshd_config:
        raise RuntimeError(f"{SSHD_CONFIG} does not include sshd_config.d, drop-in would be ignored")

    ctx.files.write(SSH_HARDENING_FILE, ssh_hardening_content(ctx), mode=0o644, privileged=True)
    try:
        run(sudo_prefix() + ["sshd", "-t"])
    except CommandError:
        ctx.files.remove(SSH_HARDENING_FILE, privileged=True)
        raise

    ctx.services.reload(ctx.config.ssh_service)
    return f"SSH hardened. Use 'ssh {ctx.config.username}@<ip>' for future connections."


def auto_updates_configured(ctx: SetupContext) -> bool:
    return (
        ctx.packages.is_installed("unattended-upgrades")
        and ctx.files.matches(AUTO_UPGRADES_FILE, AUTO_UPGRADES)
    )


def configure_auto_updates(ctx: SetupContext) -> str:
    ctx.packages.ensure_installed(["unattended-upgrades"])
    ctx.files.write(AUTO_UPGRADES_FILE, AUTO_UPGRADES, mode=0o644, privileged=True)
    return "Automatic security updates enabled"
