"""Tests for coded diagnostics and the warning policy."""

from __future__ import annotations

import logging
import warnings

import pytest

from c3bundle.errors import BundleError
from c3bundle.warning_policy import (
    KNOWN_CODES,
    WARNING_CODES,
    BundleWarning,
    PromotedWarning,
    WarningAction,
    WarningPolicy,
    emit_warning,
    parse_code_list,
)


class TestParseCodeList:
    def test_codes_are_normalized(self):
        assert parse_code_list("w01 , W03") == frozenset({"W01", "W03"})

    def test_empty_tokens_ignored(self):
        assert parse_code_list("") == frozenset()
        assert parse_code_list("W02,,") == frozenset({"W02"})

    def test_unknown_code_rejected(self):
        with pytest.raises(ValueError, match="Unknown warning code.*W99"):
            parse_code_list("W01,W99")


class TestWarningPolicy:
    def test_default_action_is_warn(self):
        assert WarningPolicy().action("W01") is WarningAction.WARN

    def test_promoted_code_raises(self):
        assert WarningPolicy(warn_as_error=frozenset({"W04"})).action("W04") is WarningAction.RAISE

    def test_suppression_wins_over_promotion(self):
        policy = WarningPolicy(warn_as_error=frozenset({"W02"}), suppress=frozenset({"W02"}))
        assert policy.action("W02") is WarningAction.SUPPRESS


class TestEmitWarning:
    def test_warning_names_code_and_file(self):
        with warnings.catch_warnings(record=True) as w:
            warnings.simplefilter("always")
            emit_warning("W02", "no skin", path="orc.c3b")
        assert len(w) == 1
        assert issubclass(w[0].category, BundleWarning)
        assert w[0].message.code == "W02"
        assert w[0].message.path == "orc.c3b"
        assert str(w[0].message) == "[W02] orc.c3b: no skin"

    def test_suppressed_code_is_logged_only(self, caplog):
        policy = WarningPolicy(suppress=frozenset({"W01"}))
        with caplog.at_level(logging.DEBUG, logger="c3bundle.warning_policy"):
            with warnings.catch_warnings(record=True) as w:
                warnings.simplefilter("always")
                emit_warning("W01", "future version", policy=policy)
        assert len(w) == 0
        assert "Suppressed [W01] future version" in caplog.text

    def test_promoted_code_is_bundle_error(self):
        policy = WarningPolicy(warn_as_error=frozenset({"W04"}))
        with pytest.raises(PromotedWarning) as excinfo:
            emit_warning("W04", "short list", policy=policy, path="a.c3b")
        assert isinstance(excinfo.value, BundleError)
        assert excinfo.value.path == "a.c3b"

    def test_other_codes_still_warn(self):
        policy = WarningPolicy(suppress=frozenset({"W02"}))
        with warnings.catch_warnings(record=True) as w:
            warnings.simplefilter("always")
            emit_warning("W01", "test", policy=policy)
        assert len(w) == 1


class TestKnownCodes:
    def test_every_code_is_described(self):
        assert KNOWN_CODES == {"W01", "W02", "W03", "W04"}
        assert all(WARNING_CODES[code] for code in KNOWN_CODES)
