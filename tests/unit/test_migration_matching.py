"""Tests for route and verb matchers."""

from __future__ import annotations

import pytest

from request_migrations.core.errors import MigrationLoadError
from request_migrations.core.versioning.matching import RouteMatcher, VerbMatcher, normalize_route


class TestNormalizeRoute:
    def test_express_params(self):
        assert normalize_route("/api/users/:id") == "/api/users/{id}"
        assert normalize_route("/orgs/:org_id/users/:id") == "/orgs/{org_id}/users/{id}"

    def test_starlette_params_untouched(self):
        assert normalize_route("/api/users/{id:int}") == "/api/users/{id:int}"


class TestRouteMatcher:
    """Tests for RouteMatcher."""

    def test_matches_express_pattern(self):
        matcher = RouteMatcher("/api/users/:id")

        assert matcher.matches("/api/users/123")
        assert matcher.match("/api/users/123") == {"id": "123"}

    def test_matches_starlette_pattern_with_convertor(self):
        matcher = RouteMatcher("/api/users/{id:int}")

        assert matcher.match("/api/users/42") == {"id": 42}
        assert not matcher.matches("/api/users/abc")

    def test_rejects_other_paths(self):
        matcher = RouteMatcher("/api/users/:id")

        assert not matcher.matches("/api/users")
        assert not matcher.matches("/api/users/1/orders")
        assert not matcher.matches("/api/accounts/1")

    def test_trailing_slash_tolerated(self):
        matcher = RouteMatcher("/api/users/:id")

        assert matcher.matches("/api/users/7/")

    def test_static_route(self):
        matcher = RouteMatcher("/api/health")

        assert matcher.match("/api/health") == {}

    @pytest.mark.parametrize("route", ["api/users", "", None, "/api/{id:unknown}"])
    def test_invalid_route_raises_load_error(self, route):
        with pytest.raises(MigrationLoadError):
            RouteMatcher(route)


class TestVerbMatcher:
    """Tests for VerbMatcher."""

    def test_alternation(self):
        matcher = VerbMatcher("POST|PUT")

        assert matcher.matches("POST")
        assert matcher.matches("PUT")
        assert not matcher.matches("GET")

    def test_case_insensitive(self):
        assert VerbMatcher("post").matches("POST")
        assert VerbMatcher("GET|POST").matches("get")

    def test_whole_method_only(self):
        matcher = VerbMatcher("PUT")

        assert not matcher.matches("PUTX")
        assert not matcher.matches("OPTIONS")

    def test_wildcard(self):
        assert VerbMatcher(".*").matches("DELETE")

    @pytest.mark.parametrize("verbs", ["", "   ", "POST|(", None])
    def test_invalid_verbs_raise_load_error(self, verbs):
        with pytest.raises(MigrationLoadError):
            VerbMatcher(verbs)
