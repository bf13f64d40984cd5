#!/usr/bin/env python3
# CUI // SP-CTI
"""Generated-file templates for the convert stage.

Two backend profiles share one call surface and differ only in which
service endpoint and credentials the adapter targets.
"""

from migrator.codemods.errors import ConfigError

ADAPTER_PACKAGE = "@portable-backend/adapter"

_PROFILE_FACTORIES = {
    "supabase": ("@portable-backend/adapter-supabase", "createSupabaseBackendFromEnv"),
    "local": ("@portable-backend/adapter-local", "createLocalSupabaseBackendFromEnv"),
}

_ENTRY_TEMPLATE = """\
import type {{ Backend }} from '{adapter}';
import {{ {factory} }} from '{package}';

// Generated by the legacy SDK migrator.
// Customize this file for your app (e.g. multiple clients, admin client, server-only code).

export const backend: Backend = {factory}();
"""

ENV_EXAMPLE = """\
# Supabase
# Cloud: set SUPABASE_URL and SUPABASE_ANON_KEY
# Local: SUPABASE_URL defaults to http://127.0.0.1:54321 when using adapter-local
SUPABASE_URL=
SUPABASE_ANON_KEY=

# Optional local overrides
SUPABASE_LOCAL_URL=http://127.0.0.1:54321
SUPABASE_LOCAL_ANON_KEY=
"""

REVIEW_COMMENT = (
    "// TODO(sdk-migration): Some legacy SDK usage could not be safely converted. "
    "Review this file and route remaining calls through "
    "backend.auth/backend.data/backend.storage."
)


def render_backend_entry(mode: str) -> str:
    """Return the backend entry module source for profile *mode*."""
    try:
        package, factory = _PROFILE_FACTORIES[mode]
    except KeyError:
        raise ConfigError(
            f"Unknown backend mode {mode!r}; expected one of {', '.join(_PROFILE_FACTORIES)}"
        ) from None
    return _ENTRY_TEMPLATE.format(adapter=ADAPTER_PACKAGE, package=package, factory=factory)
