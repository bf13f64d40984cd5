#!/usr/bin/env python3
# CUI // SP-CTI
"""Shared pytest fixtures for the migrator test suite.

Builds throwaway JavaScript/TypeScript projects under tmp_path so every
stage can be exercised against real files on disk.
"""

import json
import sys
import textwrap
from pathlib import Path

import pytest

# Ensure project root is on sys.path
BASE_DIR = Path(__file__).resolve().parent.parent
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from migrator.codemods.config import default_config  # noqa: E402


@pytest.fixture
def config():
    """Built-in defaults, independent of args/migration_config.yaml edits."""
    return default_config()


@pytest.fixture
def make_project(tmp_path):
    """Return a writer: ``make_project({"src/a.ts": "..."})`` -> project root.

    File contents are dedented. ``dict`` values are written as JSON.
    """

    def _make(files):
        for rel, content in files.items():
            path = tmp_path / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, dict):
                path.write_text(json.dumps(content, indent=2) + "\n", encoding="utf-8")
            else:
                path.write_text(textwrap.dedent(content), encoding="utf-8")
        return tmp_path

    return _make


@pytest.fixture
def canonical_app(make_project):
    """Single-file app covering every supported auth, data and storage shape."""
    return make_project({
        "app.ts": "\n".join([
            "'use client';",
            "",
            "import { auth, collections, storage } from 'base44';",
            "",
            "export async function run() {",
            '  await auth.signIn({ email: "a@b.com", password: "pw" });',
            "  const todo = await collections('todos').create({ title: 'hello', done: false });",
            "  const one = await collections('todos').get('123');",
            "  const list = await collections('todos').list({ done: false });",
            "  const upd = await collections('todos').update('123', { done: true });",
            "  await collections('todos').delete('123');",
            "  await storage.upload('files', 'a.txt', new Uint8Array([1,2,3]));",
            "  await storage.download('files', 'a.txt');",
            "  return { todo, one, list, upd };",
            "}",
            "",
            "export function env() {",
            "  return process.env.SUPABASE_URL;",
            "}",
            "",
        ]),
    })
