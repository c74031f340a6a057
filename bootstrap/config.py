#!/usr/bin/env python3

import argparse
import json
import os
import sys
from dataclasses import dataclass, asdict, field, fields
from typing import Optional, Dict, List, Any, Union, get_args, get_origin, get_type_hints

from bootstrap.validators import validate_username, validate_email, validate_port_range


PHASES = ["root", "user"]

DEFAULT_USERNAME = "kuranai"
DEFAULT_GIT_EMAIL = "mail@kuranai.de"
DEFAULT_LANGUAGES = ["node@lts", "php@latest", "ruby@latest"]

ROOT_LOG_FILE = "/var/log/server_bootstrap/bootstrap.log"
USER_LOG_FILE = "~/.local/state/server_bootstrap/bootstrap.log"



def _matches_type(value: Any, hint: Any) -> bool:
    """Shallow isinstance check against a dataclass field annotation."""
    origin = get_origin(hint)
    if origin is Union:
        return any(_matches_type(value, arg) for arg in get_args(hint))
    if origin is list:
        item = get_args(hint)[0] if get_args(hint) else Any
        return isinstance(value, list) and all(_matches_type(v, item) for v in value)
    if hint is Any:
        return True
    if hint is type(None):
        return value is None
    if hint is int:
        return isinstance(value, int) and not isinstance(value, bool)
    return isinstance(value, hint)


@dataclass
class BootstrapConfig:
    username: str = DEFAULT_USERNAME
    git_name: Optional[str] = None
    git_email: str = DEFAULT_GIT_EMAIL
    code_dir: str = "~/code"
    mosh_ports: str = "60000:61000"
    ssh_service: str = "ssh"
    nvim_install_dir: str = "/opt/nvim-linux-x86_64"
    languages: List[str] = field(default_factory=lambda: list(DEFAULT_LANGUAGES))
    apt_max_age_hours: int = 24
    script_path: Optional[str] = None
    script_name: str = "setup-server"
    phase: Optional[str] = None
    dry_run: bool = False
    custom_steps: Optional[str] = None
    log_file: Optional[str] = None
    verbose: bool = False

    def __post_init__(self) -> None:
        if self.git_name is None:
            self.git_name = self.username

    def validate(self) -> None:
        """Raise ValueError on the first invalid setting."""
        if not validate_username(self.username):
            raise ValueError(f"Invalid username: {self.username}")
        if not validate_email(self.git_email):
            raise ValueError(f"Invalid git email: {self.git_email}")
        if not validate_port_range(self.mosh_ports):
            raise ValueError(f"Invalid mosh port range: {self.mosh_ports}")
        if self.phase is not None and self.phase not in PHASES:
            raise ValueError(f"Invalid phase: {self.phase}")
        if self.apt_max_age_hours < 0:
            raise ValueError("apt_max_age_hours must not be negative")
        for spec in self.languages:
            if "@" not in spec:
                raise ValueError(f"Language must be given as tool@version: {spec}")

    def step_names(self) -> Optional[List[str]]:
        if not self.custom_steps:
            return None
        return self.custom_steps.split()

    def default_log_file(self, is_root: bool) -> str:
        if self.log_file:
            return os.path.expanduser(self.log_file)
        return ROOT_LOG_FILE if is_root else os.path.expanduser(USER_LOG_FILE)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data.pop('dry_run', None)
        data.pop('phase', None)
        data.pop('custom_steps', None)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BootstrapConfig':
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(unknown)}")
        hints = get_type_hints(cls)
        for key, value in data.items():
            if not _matches_type(value, hints[key]):
                raise ValueError(f"Invalid type for {key}: {type(value).__name__} ({value!r})")
        return cls(**data)

    @classmethod
    def from_file(cls, path: str) -> 'BootstrapConfig':
        try:
            with open(path, 'r') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ValueError(f"Cannot read configuration file {path}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Configuration file {path} must contain a JSON object")
        return cls.from_dict(data)

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> 'BootstrapConfig':
        config_path = getattr(args, 'config', None)
        config = cls.from_file(config_path) if config_path else cls()

        username = getattr(args, 'username', None)
        if username:
            if config.git_name == config.username:
                config.git_name = username
            config.username = username
        if getattr(args, 'git_name', None):
            config.git_name = args.git_name
        if getattr(args, 'git_email', None):
            config.git_email = args.git_email
        if getattr(args, 'log_file', None):
            config.log_file = args.log_file

        config.phase = getattr(args, 'phase', None)
        config.dry_run = getattr(args, 'dry_run', False)
        config.custom_steps = getattr(args, 'custom_steps', None)
        config.verbose = getattr(args, 'verbose', False)
        if not config.script_path:
            config.script_path = os.path.abspath(sys.argv[0])
        return config
