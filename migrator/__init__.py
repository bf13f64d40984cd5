#!/usr/bin/env python3
# CUI // SP-CTI
"""Legacy SDK migration engine.

Scans a JavaScript/TypeScript source tree for usage of a legacy vendor SDK,
infers the data schema and environment surface it relies on, rewrites common
call shapes onto a neutral ``backend`` interface, verifies that no legacy
module references remain, and cleans up legacy-only files.

Pipeline:
  1. Analyze  (deterministic) - imports, usage categories, inference
  2. Convert  (deterministic) - binding resolution, call rewrites, TODOs
  3. Verify   (deterministic) - text-level specifier scan
  4. Cleanup  (deterministic) - reverse-import-safe deletion / quarantine
"""

__version__ = "0.1.0"
