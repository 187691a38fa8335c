"""Paths relative to the directory of the running program."""

from __future__ import annotations

import functools
import os
import sys
from pathlib import Path


@functools.lru_cache(maxsize=None)
def executable_dir() -> str:
    """Return the directory holding the running program (cached)."""
    if getattr(sys, "frozen", False):
        target = sys.executable
    else:
        script = sys.argv[0] if sys.argv else ""
        target = script if script and os.path.isfile(script) else sys.executable
    if not target:
        return ""
    return str(Path(target).resolve().parent)


def data_path(suffix: str) -> str:
    """Join ``suffix`` onto the program's directory."""
    return executable_dir() + "/" + suffix