"""Small helpers shared across the package."""

from __future__ import annotations

import os
from typing import Any

from . import logger


def error_if(condition: bool, msg: str) -> None:
    """Log ``msg`` at ERROR level when ``condition`` holds."""
    if condition:
        logger.error(msg)


def is_fd_closed(fd: int) -> bool:
    """Return True when ``fd`` is not a valid open descriptor."""
    try:
        os.fstat(fd)
    except OSError:
        return True
    return False


def ptr_to_string(obj: Any) -> str:
    """Return the object's identity as a hexadecimal address string."""
    return f"0x{id(obj):x}"