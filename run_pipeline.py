#!/usr/bin/env python3
"""Compatibility shim that forwards to the news_digest.cli.main entry point."""
from __future__ import annotations

import sys

from news_digest.cli.main import main as cli_main


def main() -> int:
    return cli_main(["run", *sys.argv[1:]])


if __name__ == "__main__":
    sys.exit(main())
