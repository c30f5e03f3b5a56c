# src/agent/logging_config.py
"""
Central logging configuration for the agent runtime.

Call configure_logging() once from the entrypoint, for example:

    from agent.logging_config import configure_logging
    configure_logging(settings.log_level)

Module loggers (states.*, execution.executor, crafting.session, ...) then
print to stdout. Libraries that configure logging themselves are left alone.
"""

from __future__ import annotations

import logging
import sys
from typing import Union


def configure_logging(level: Union[int, str] = logging.INFO) -> None:
    """
    Configure root logging if no handlers are attached yet.

    Args:
        level: logging level as an int (logging.DEBUG) or a name ("DEBUG")
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level}")
        level = resolved

    root = logging.getLogger()

    # Don't duplicate handlers if someone already configured logging.
    if root.handlers:
        return

    handler = logging.StreamHandler(stream=sys.stdout)
    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    )
    handler.setFormatter(formatter)
    root.addHandler(handler)
    root.setLevel(level)
