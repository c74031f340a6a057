#!/usr/bin/env python3
# PYTHON_ARGCOMPLETE_OK

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from bootstrap.setup_common import setup_main


def main() -> int:
    return setup_main("Server Bootstrap")


if __name__ == "__main__":
    sys.exit(main())
