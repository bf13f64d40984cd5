#!/usr/bin/env python3
# CUI // SP-CTI
"""Tests for binding resolution and the call-site rewriter."""

import sys
import textwrap
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from migrator.codemods.bindings import resolve_bindings
from migrator.codemods.call_rewriter import CallSiteRewriter, calls_in_reverse
from migrator.codemods.syntax_tree import SyntaxTreeProject


def _module(text, name="mod.ts"):
    return SyntaxTreeProject().parse_text(name, textwrap.dedent(text))


def _rewrite(text):
    module = _module(text)
    bindings = resolve_bindings(module.imports())
    stats = CallSiteRewriter(module, bindings).rewrite()
    return module.render(), stats


class TestResolveBindings:

    def test_default_and_namespace_are_namespace_like(self):
        module = _module("import sdk from 'base44';\nimport * as Sdk from '@base44/sdk';\n")
        bindings = resolve_bindings(module.imports())
        assert bindings.namespace_like == ["sdk", "Sdk"]

    def test_named_roles_use_local_alias(self):
        module = _module(
            "import { auth as a, collection as c, Storage as s, other } from 'base44';\n"
        )
        bindings = resolve_bindings(module.imports())
        assert bindings.auth == ["a"]
        assert bindings.collections == ["c"]
        assert bindings.storage == ["s"]

    def test_empty(self):
        module = _module("import { helper } from 'base44';\n")
        assert resolve_bindings(module.imports()).is_empty()

    def test_unrouted_names_kept_as_other(self):
        module = _module("import { helper, auth as a } from 'base44';\n")
        bindings = resolve_bindings(module.imports())
        assert bindings.other == ["helper"]
        assert bindings.local_names() == ["a", "helper"]


class TestCallsInReverse:

    def test_later_and_inner_first(self):
        module = _module("a(b());\nc();\n")
        names = [n.child_by_field_name("function").text.decode() for n in calls_in_reverse(module)]
        assert names == ["c", "b", "a"]


class TestCallSiteRewriter:

    def test_auth_via_alias(self):
        out, stats = _rewrite("""\
            import { auth as a } from 'base44';
            a.signIn(creds);
        """)
        assert "backend.auth.signIn(creds);" in out
        assert stats.auth_rewritten == 1

    def test_namespace_members(self):
        out, stats = _rewrite("""\
            import * as sdk from '@base44/sdk';
            sdk.auth.signOut();
            sdk.collections('posts').list();
            sdk.storage.download('b', 'p');
        """)
        assert "backend.auth.signOut();" in out
        assert "backend.data.read('posts');" in out
        assert "backend.storage.download('b', 'p');" in out
        assert stats.rewritten == 3

    def test_nested_calls_rewritten_in_arguments(self):
        out, stats = _rewrite("""\
            import { auth, collections } from 'base44';
            collections('todos').create({ owner: await auth.getUser() });
        """)
        assert "backend.data.create('todos', { owner: await backend.auth.getUser() });" in out
        assert stats.rewritten == 2

    @pytest.mark.parametrize("call,expected", [
        ("c('t').get()", "backend.data.read('t')"),
        ("c('t').read(id)", "backend.data.read('t', { id: id })"),
        ("c('t').all()", "backend.data.read('t')"),
        ("c('t').all(q)", "backend.data.read('t', { filter: q })"),
        ("c('t').find(q)", "backend.data.read('t', { filter: q })"),
        ("c('t').remove(id)", "backend.data.delete('t', id)"),
        ('c("t").update(id, patch)', 'backend.data.update("t", id, patch)'),
    ])
    def test_crud_shapes(self, call, expected):
        out, stats = _rewrite(f"import {{ collections as c }} from 'base44';\n{call};\n")
        assert f"{expected};" in out
        assert stats.data_rewritten == 1

    @pytest.mark.parametrize("call,counter", [
        ("c(name).create(x)", "unknown_entities"),
        ("c('t').upsert(x)", "unknown_crud"),
        ("c('t').update(x)", "unknown_crud"),
        ("c('t').find()", "unknown_crud"),
        ("s.remove('f')", "unknown_storage"),
    ])
    def test_unsupported_shapes_are_counted(self, call, counter):
        text = f"import {{ collections as c, storage as s }} from 'base44';\n{call};\n"
        out, stats = _rewrite(text)
        assert getattr(stats, counter) == 1
        assert stats.rewritten == 0
        assert f"{call};" in out

    def test_unknown_auth_method_counted(self):
        out, stats = _rewrite("import { auth } from 'base44';\nauth.refresh();\n")
        assert "auth.refresh();" in out
        assert stats.unknown_auth == 1
        assert stats.unresolved_references == 0

    def test_unrouted_namespace_member_is_unresolved(self):
        out, stats = _rewrite("""\
            import sdk from 'base44';
            sdk.auth.signIn(x);
            sdk.entities.Todo.list();
            sdk.auth.refresh();
        """)
        assert "backend.auth.signIn(x);" in out
        assert stats.auth_rewritten == 1
        assert stats.unknown_auth == 1
        assert stats.unresolved_references == 1

    def test_bare_references_are_unresolved(self):
        _out, stats = _rewrite("""\
            import { auth, entities } from 'base44';
            const client = { auth };
            entities.Todo.list();
        """)
        assert stats.unresolved_references == 2
        assert stats.rewritten == 0

    def test_unrelated_receivers_untouched(self):
        out, stats = _rewrite("import { auth } from 'base44';\nother.auth.signIn();\n")
        assert "other.auth.signIn();" in out
        assert stats.rewritten == 0
