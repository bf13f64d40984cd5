#!/usr/bin/env python3
# CUI // SP-CTI
"""Terminal error types for the migration engine.

Ambiguous call shapes and unsafe deletions are never errors; they are
recorded in the report. Only precondition failures raise.
"""


class MigrationError(Exception):
    """Base class for terminal failures of a migration stage."""


class ConfigError(MigrationError, ValueError):
    """Configuration file is malformed or names an unknown option."""


class BackendConfigError(MigrationError):
    """Backend credentials required by a profile are missing."""


class ReportError(MigrationError):
    """A persisted report cannot be used by the requested stage."""
