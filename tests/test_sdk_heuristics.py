#!/usr/bin/env python3
# CUI // SP-CTI
"""Tests for legacy import classification and usage categories."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from migrator.codemods.sdk_heuristics import (
    LegacyImportClassifier,
    classify_usage_from_text,
)


@pytest.fixture
def classifier(config):
    return LegacyImportClassifier.from_config(config)


class TestLegacyImportClassifier:

    @pytest.mark.parametrize("spec", ["base44", "@base44/sdk", "@base44/client", "base44-sdk"])
    def test_allow_listed_sources(self, classifier, spec):
        assert classifier.is_legacy(spec)

    def test_name_token_is_case_insensitive(self, classifier):
        assert classifier.is_legacy("@acme/Base44-helpers")
        assert classifier("BASE44")

    @pytest.mark.parametrize("spec", ["react", "@supabase/supabase-js", "./client"])
    def test_other_specifiers(self, classifier, spec):
        assert not classifier.is_legacy(spec)

    def test_extra_sources(self, config):
        classifier = LegacyImportClassifier.from_config(config, ["@acme/old-sdk"])
        assert classifier.is_legacy("@acme/old-sdk")
        assert not classifier.is_legacy("@acme/new-sdk")

    def test_filter_keeps_order(self, classifier):
        assert classifier.filter(["react", "base44", "x", "@base44/sdk"]) == [
            "base44", "@base44/sdk",
        ]


class TestClassifyUsageFromText:

    def test_auth(self):
        assert classify_usage_from_text("await auth.signIn(creds)") == ["auth"]

    def test_storage(self):
        assert classify_usage_from_text("storage.upload(blob)") == ["storage"]

    def test_multiple_categories_in_table_order(self):
        text = "collections('t').create(x); channel.subscribe(); sdk.invoke('f');"
        assert classify_usage_from_text(text) == ["data", "realtime", "server-functions"]

    def test_unknown_when_nothing_matches(self):
        assert classify_usage_from_text("const x = 1;") == ["unknown"]
