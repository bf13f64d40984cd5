#!/usr/bin/env python3
# CUI // SP-CTI
"""Tests for the backend interface model: filters, read options, settings."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from migrator.backend import (
    AuthSession,
    BackendSettings,
    DataFilter,
    DataReadOptions,
    FilterOp,
    OrderBy,
    apply_filter,
    apply_read_options,
    normalize_select,
)
from migrator.codemods.errors import BackendConfigError


class RecordingQuery:
    """Query-builder double that records every chained call."""

    def __init__(self):
        self.calls = []

    def __getattr__(self, name):
        def _method(*args, **kwargs):
            self.calls.append((name, args, kwargs) if kwargs else (name, args))
            return self
        return _method


class TestDataFilter:

    def test_op_coerced_from_string(self):
        assert DataFilter("age", "gte", 18).op is FilterOp.GTE

    @pytest.mark.parametrize("op,value", [
        (FilterOp.IN, "abc"),
        (FilterOp.IN, 5),
        (FilterOp.CONTAINS, None),
        (FilterOp.LIKE, 3),
        (FilterOp.ILIKE, None),
        (FilterOp.IS, "null"),
    ])
    def test_operand_shape_enforced(self, op, value):
        with pytest.raises(TypeError):
            DataFilter("f", op, value)

    @pytest.mark.parametrize("op,value", [
        (FilterOp.IN, [1, 2]),
        (FilterOp.CONTAINS, {"a": 1}),
        (FilterOp.CONTAINED_BY, ("x",)),
        (FilterOp.LIKE, "a%"),
        (FilterOp.IS, None),
        (FilterOp.IS, True),
        (FilterOp.EQ, object()),
    ])
    def test_valid_operands(self, op, value):
        assert DataFilter("f", op, value).value is value

    def test_unknown_op(self):
        with pytest.raises(ValueError):
            DataFilter("f", "between", 1)

    def test_empty_field(self):
        with pytest.raises(ValueError):
            DataFilter("", FilterOp.EQ, 1)


class TestApplyFilter:

    @pytest.mark.parametrize("op,value,call", [
        (FilterOp.EQ, 1, ("eq", ("f", 1))),
        (FilterOp.NEQ, 1, ("neq", ("f", 1))),
        (FilterOp.GT, 1, ("gt", ("f", 1))),
        (FilterOp.GTE, 1, ("gte", ("f", 1))),
        (FilterOp.LT, 1, ("lt", ("f", 1))),
        (FilterOp.LTE, 1, ("lte", ("f", 1))),
        (FilterOp.LIKE, "a%", ("like", ("f", "a%"))),
        (FilterOp.ILIKE, "a%", ("ilike", ("f", "a%"))),
        (FilterOp.IN, (1, 2), ("in_", ("f", [1, 2]))),
        (FilterOp.CONTAINS, ["x"], ("contains", ("f", ["x"]))),
        (FilterOp.CONTAINED_BY, ["x"], ("contained_by", ("f", ["x"]))),
        (FilterOp.IS, None, ("is_", ("f", None))),
    ])
    def test_each_operator(self, op, value, call):
        query = RecordingQuery()
        assert apply_filter(query, DataFilter("f", op, value)) is query
        assert query.calls == [call]


class TestApplyReadOptions:

    def test_none_is_identity(self):
        query = RecordingQuery()
        assert apply_read_options(query) is query
        assert query.calls == []

    def test_full_options_in_order(self):
        query = RecordingQuery()
        options = DataReadOptions(
            id="42",
            filter={"done": False},
            filters=[DataFilter("n", FilterOp.GT, 3)],
            order_by=[OrderBy("created_at", ascending=False), OrderBy("title")],
            limit=10,
            offset=20,
        )
        apply_read_options(query, options)
        assert query.calls == [
            ("eq", ("id", "42")),
            ("limit", (1,)),
            ("eq", ("done", False)),
            ("gt", ("n", 3)),
            ("order", ("created_at",), {"desc": True}),
            ("order", ("title",), {"desc": False}),
            ("limit", (10,)),
            ("range", (20, 29)),
        ]

    def test_offset_without_limit_uses_default_page(self):
        query = RecordingQuery()
        apply_read_options(query, DataReadOptions(offset=0))
        assert query.calls == [("range", (0, 999))]

    def test_single_order_by(self):
        query = RecordingQuery()
        apply_read_options(query, DataReadOptions(order_by=OrderBy("x")))
        assert query.calls == [("order", ("x",), {"desc": False})]

    @pytest.mark.parametrize("select,expected", [
        (None, "*"),
        ("id,title", "id,title"),
        (["id", "title"], "id,title"),
    ])
    def test_normalize_select(self, select, expected):
        assert normalize_select(select) == expected


class TestBackendSettings:

    def test_hosted_requires_url_and_key(self):
        with pytest.raises(BackendConfigError, match="SUPABASE_URL"):
            BackendSettings.from_env("supabase", {"SUPABASE_URL": "https://x.supabase.co"})
        settings = BackendSettings.from_env(
            "supabase", {"SUPABASE_URL": "https://x.supabase.co", "SUPABASE_ANON_KEY": "k"}
        )
        assert settings.url == "https://x.supabase.co"
        assert settings.anon_key == "k"

    def test_local_defaults_url(self):
        settings = BackendSettings.from_env("local", {"SUPABASE_LOCAL_ANON_KEY": "lk"})
        assert settings.url == "http://127.0.0.1:54321"
        assert settings.anon_key == "lk"

    def test_local_url_precedence(self):
        env = {
            "SUPABASE_URL": "http://a",
            "SUPABASE_LOCAL_URL": "http://b",
            "SUPABASE_ANON_KEY": "k",
        }
        assert BackendSettings.from_env("local", env).url == "http://a"
        del env["SUPABASE_URL"]
        assert BackendSettings.from_env("local", env).url == "http://b"

    def test_local_requires_key(self):
        with pytest.raises(BackendConfigError):
            BackendSettings.from_env("local", {})

    def test_unknown_profile(self):
        with pytest.raises(BackendConfigError):
            BackendSettings.from_env("firebase", {})

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", "https://env.example")
        monkeypatch.setenv("SUPABASE_ANON_KEY", "secret")
        assert BackendSettings.from_env().url == "https://env.example"


class TestAuthSession:

    def test_from_provider(self):
        session = AuthSession.from_provider({
            "access_token": "a",
            "refresh_token": "r",
            "expires_at": 10,
            "user": {"id": "u1", "email": "u@x"},
        })
        assert session.access_token == "a"
        assert session.user.email == "u@x"

    def test_none(self):
        assert AuthSession.from_provider(None) is None
