#!/usr/bin/env python3

from __future__ import annotations

import argparse

import argcomplete

from bootstrap.config import PHASES


def create_setup_argument_parser(description: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=description)

    parser.add_argument("--phase", choices=PHASES, default=None,
                       help="Phase to run (default: root when run as root, user otherwise)")
    parser.add_argument("--dry-run", action="store_true",
                       help="Report which steps would run without executing anything")
    parser.add_argument("--list", dest="list_steps", action="store_true",
                       help="Print the steps of the selected phase in order and exit")
    parser.add_argument("--steps", dest="custom_steps",
                       help="Space-separated list of steps to run (e.g., 'install_mosh install_tmux')")

    parser.add_argument("-u", "--username",
                       help="Unprivileged user created in the root phase (default: kuranai)")
    parser.add_argument("--git-name", dest="git_name",
                       help="Git user.name for the user phase (default: the username)")
    parser.add_argument("--git-email", dest="git_email",
                       help="Git user.email for the user phase")
    parser.add_argument("-c", "--config",
                       help="JSON configuration file")

    parser.add_argument("--log-file", dest="log_file",
                       help="Log file (default: /var/log/server_bootstrap/bootstrap.log as root, "
                            "~/.local/state/server_bootstrap/bootstrap.log otherwise)")
    parser.add_argument("-v", "--verbose", action="store_true",
                       help="Show commands and check details")

    argcomplete.autocomplete(parser)
    return parser
