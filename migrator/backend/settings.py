#!/usr/bin/env python3
# CUI // SP-CTI
"""Resolve adapter connection settings from the environment."""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from migrator.codemods.errors import BackendConfigError

PROFILES = ("supabase", "local")
DEFAULT_LOCAL_URL = "http://127.0.0.1:54321"


@dataclass(frozen=True)
class BackendSettings:
    profile: str
    url: str
    anon_key: str

    @classmethod
    def from_env(cls, profile: str = "supabase",
                 env: Optional[Mapping[str, str]] = None) -> "BackendSettings":
        """Build settings for *profile* from *env* (defaults to ``os.environ``).

        The hosted profile needs both URL and anon key. The local profile
        needs only an anon key and falls back to the local stack's URL.
        """
        env = os.environ if env is None else env
        if profile == "supabase":
            url = env.get("SUPABASE_URL")
            anon_key = env.get("SUPABASE_ANON_KEY")
            if not url or not anon_key:
                raise BackendConfigError(
                    "Missing SUPABASE_URL or SUPABASE_ANON_KEY in environment"
                )
        elif profile == "local":
            url = env.get("SUPABASE_URL") or env.get("SUPABASE_LOCAL_URL") or DEFAULT_LOCAL_URL
            anon_key = env.get("SUPABASE_ANON_KEY") or env.get("SUPABASE_LOCAL_ANON_KEY")
            if not anon_key:
                raise BackendConfigError(
                    "Missing SUPABASE_ANON_KEY (or SUPABASE_LOCAL_ANON_KEY) in environment"
                )
        else:
            raise BackendConfigError(
                f"Unknown backend profile {profile!r}; expected one of {', '.join(PROFILES)}"
            )
        return cls(profile=profile, url=url, anon_key=anon_key)
