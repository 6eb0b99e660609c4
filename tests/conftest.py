from __future__ import annotations

import logging

import pytest

from news_digest.workers import CONSOLE_HANDLER_NAME


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Drop the console handler the CLI installs so it never outlives a test's captured stderr."""
    root = logging.getLogger()
    level = root.level
    yield root
    for handler in list(root.handlers):
        if handler.get_name() == CONSOLE_HANDLER_NAME:
            root.removeHandler(handler)
    root.setLevel(level)
