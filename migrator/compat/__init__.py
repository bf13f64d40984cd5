# CUI // SP-CTI
"""Cross-platform path and console helpers.

Uses only Python stdlib.
"""
from migrator.compat.console import IS_WINDOWS, ensure_utf8_console  # noqa: F401
from migrator.compat.paths import (  # noqa: F401
    normalize_path,
    relative_posix,
    to_posix_path,
)
