#!/usr/bin/env python3

"""Validation utilities for bootstrap configuration."""

import re


def validate_username(username: str) -> bool:
    """Validate a Unix username."""
    pattern = r'^[a-z_][a-z0-9_-]{0,31}$'
    return bool(re.match(pattern, username))


def validate_email(email: str) -> bool:
    """Loosely validate an email address for git configuration."""
    pattern = r'^[^@\s]+@[^@\s]+\.[^@\s]+$'
    return bool(re.match(pattern, email))


def validate_port_range(port_range: str) -> bool:
    """Validate a ufw port range such as ``60000:61000``."""
    match = re.match(r'^(\d{1,5}):(\d{1,5})$', port_range)
    if not match:
        return False
    low, high = int(match.group(1)), int(match.group(2))
    return 1 <= low < high <= 65535
