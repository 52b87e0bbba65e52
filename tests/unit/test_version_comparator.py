"""Tests for version comparators."""

from __future__ import annotations

import pytest

from request_migrations.core.versioning.version import (
    SemanticVersion,
    lexicographic_compare,
    resolve_comparator,
    semantic_compare,
    sort_by_version,
)


class TestLexicographicCompare:
    """Tests for the default comparator."""

    def test_orders_fixed_width_dates(self):
        assert lexicographic_compare("2023-01-01", "2023-06-15") < 0
        assert lexicographic_compare("2023-12-15", "2023-06-15") > 0
        assert lexicographic_compare("2023-06-15", "2023-06-15") == 0

    def test_variable_width_dates_are_misordered(self):
        """Non zero-padded dates do not sort chronologically."""
        # 2023-01-15 is chronologically after 2023-1-5, but sorts before it
        assert lexicographic_compare("2023-1-5", "2023-01-15") > 0

    def test_numeric_tokens_are_misordered(self):
        """'10' sorts before '9' as a string."""
        assert lexicographic_compare("10", "9") < 0
        assert lexicographic_compare("v1.10.0", "v1.9.0") < 0


class TestSemanticVersion:
    """Tests for SemanticVersion parsing and ordering."""

    def test_parse_full(self):
        version = SemanticVersion.parse("v1.2.3-beta.1+build.7")

        assert version.major == 1
        assert version.minor == 2
        assert version.patch == 3
        assert version.prerelease == "beta.1"
        assert version.build == "build.7"
        assert str(version) == "1.2.3-beta.1+build.7"

    def test_parse_short_forms(self):
        assert SemanticVersion.parse("2") == SemanticVersion(2, 0, 0)
        assert SemanticVersion.parse("2.1") == SemanticVersion(2, 1, 0)

    def test_parse_invalid(self):
        with pytest.raises(ValueError):
            SemanticVersion.parse("2023-01-01")

    def test_prerelease_precedence(self):
        assert SemanticVersion.parse("1.0.0-alpha").compare(SemanticVersion.parse("1.0.0")) < 0
        assert SemanticVersion.parse("1.0.0-alpha.2").compare(SemanticVersion.parse("1.0.0-alpha.10")) < 0
        assert SemanticVersion.parse("1.0.0-alpha").compare(SemanticVersion.parse("1.0.0-alpha.1")) < 0

    def test_semantic_compare_numeric(self):
        assert semantic_compare("1.10.0", "1.9.0") > 0
        assert semantic_compare("v2", "2.0.0") == 0
        assert semantic_compare("1.0.0+a", "1.0.0+b") == 0


class TestResolveComparator:
    def test_known_names(self):
        assert resolve_comparator("lexicographic") is lexicographic_compare
        assert resolve_comparator(" Semantic ") is semantic_compare

    def test_unknown_name(self):
        with pytest.raises(ValueError, match="Unknown version comparator"):
            resolve_comparator("calendar")


class TestSortByVersion:
    def test_ascending(self):
        items = ["2023-12-15", "2023-01-01", "2023-06-15"]

        assert sort_by_version(items, lexicographic_compare, key=lambda v: v) == [
            "2023-01-01",
            "2023-06-15",
            "2023-12-15",
        ]

    def test_ties_keep_input_order(self):
        items = [("2023-06-15", "b"), ("2023-01-01", "a"), ("2023-06-15", "c")]

        result = sort_by_version(items, lexicographic_compare, key=lambda item: item[0])

        assert [name for _, name in result] == ["a", "b", "c"]

    def test_custom_comparator(self):
        items = ["1.10.0", "1.2.0", "1.9.0"]

        assert sort_by_version(items, semantic_compare, key=lambda v: v) == ["1.2.0", "1.9.0", "1.10.0"]
