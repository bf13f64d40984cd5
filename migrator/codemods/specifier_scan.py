#!/usr/bin/env python3
# CUI // SP-CTI
"""Text-level module specifier scanner.

Recognizes exactly three forms, each with single or double quotes:

    ... from 'spec'
    require('spec')
    import('spec')

Works on raw text, independent of any syntax tree, so CommonJS and dynamic
import forms are caught as well as static declarations.
"""

import re
from typing import List

_SPECIFIER_RE = re.compile(
    r"""(?:from\s+['"](?P<from>[^'"]+)['"])"""
    r"""|(?:require\s*\(\s*['"](?P<require>[^'"]+)['"]\s*\))"""
    r"""|(?:import\s*\(\s*['"](?P<dynamic>[^'"]+)['"]\s*\))"""
)


def find_imported_module_specifiers(text: str) -> List[str]:
    """Return unique specifiers in order of first appearance."""
    seen = {}
    for match in _SPECIFIER_RE.finditer(text):
        spec = match.group("from") or match.group("require") or match.group("dynamic")
        if spec and spec not in seen:
            seen[spec] = True
    return list(seen)


def find_relative_specifiers(text: str) -> List[str]:
    """Specifiers that start with ``.`` (relative to the importing file)."""
    return [s for s in find_imported_module_specifiers(text) if s.startswith(".")]
