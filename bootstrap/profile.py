"""Shell profile (~/.bashrc) as an explicit configuration file."""

from __future__ import annotations

import os
from typing import Optional

from bootstrap.capabilities import LocalFileStore


class ShellProfile:
    """Scoped read/append access to one shell startup file.

    Each managed block is identified by a marker string that must appear in
    the block itself; a block is appended only while its marker is absent.
    """

    def __init__(self, path: str, files: Optional[LocalFileStore] = None):
        self.path = os.path.expanduser(path)
        self.files = files or LocalFileStore()

    def read(self) -> str:
        return self.files.read(self.path) or ""

    def contains(self, marker: str) -> bool:
        return marker in self.read()

    def append_block(self, marker: str, block: str) -> bool:
        """Append ``block`` unless ``marker`` is present. Returns True if appended."""
        if marker not in block:
            raise ValueError(f"Block does not contain its marker: {marker}")
        current = self.read()
        if marker in current:
            return False

        if current and not current.endswith("\n"):
            current += "\n"
        if not block.endswith("\n"):
            block += "\n"

        mode = 0o644
        if os.path.exists(self.path):
            mode = os.stat(self.path).st_mode & 0o777
        self.files.write(self.path, current + block, mode=mode)
        return True
