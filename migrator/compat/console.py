#!/usr/bin/env python3
# CUI // SP-CTI
"""Console encoding helper for the CLI."""

import io
import sys

IS_WINDOWS = sys.platform == "win32"


def ensure_utf8_console():
    """Ensure stdout supports UTF-8 on Windows.

    Safe to call on any platform (no-op elsewhere).
    """
    if not IS_WINDOWS:
        return
    try:
        sys.stdout.reconfigure(encoding="utf-8", errors="replace")
    except (AttributeError, OSError):
        sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding="utf-8", errors="replace")
