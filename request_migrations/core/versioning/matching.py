"""Route and verb matching for migrations.

Route patterns accept both ``/api/users/:id`` and ``/api/users/{id}`` (with
Starlette path convertors such as ``{id:int}``). Patterns are compiled once
when the registry is built.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Optional, Pattern

from starlette.routing import compile_path

from request_migrations.core.errors import MigrationLoadError

# ":name" at the start of a path segment
_EXPRESS_PARAM = re.compile(r"(?<=/):([A-Za-z_][A-Za-z0-9_]*)")


def normalize_route(route: str) -> str:
    """Rewrite Express style ``:param`` segments to ``{param}``."""
    return _EXPRESS_PARAM.sub(r"{\1}", route)


class RouteMatcher:
    """Compiled path pattern."""

    def __init__(self, route: str):
        if not isinstance(route, str) or not route.startswith("/"):
            raise MigrationLoadError(f"Invalid route pattern: {route!r}")
        self.route = route
        try:
            self._regex, self.path_format, self._convertors = compile_path(normalize_route(route))
        except (AssertionError, KeyError, ValueError, re.error) as exc:
            raise MigrationLoadError(f"Invalid route pattern {route!r}: {exc}") from exc

    def match(self, path: str) -> Optional[Dict[str, Any]]:
        """Return the path parameters when ``path`` matches, else None.

        A single trailing slash on the concrete path is tolerated.
        """
        match = self._regex.match(path)
        if match is None and len(path) > 1 and path.endswith("/"):
            match = self._regex.match(path[:-1])
        if match is None:
            return None
        return {
            key: self._convertors[key].convert(value)
            for key, value in match.groupdict().items()
        }

    def matches(self, path: str) -> bool:
        return self.match(path) is not None

    def __repr__(self) -> str:
        return f"RouteMatcher({self.route!r})"


class VerbMatcher:
    """Compiled HTTP method expression, e.g. ``GET|POST``."""

    def __init__(self, verbs: str):
        if not isinstance(verbs, str) or not verbs.strip():
            raise MigrationLoadError(f"Invalid verb pattern: {verbs!r}")
        self.verbs = verbs
        try:
            self._regex: Pattern[str] = re.compile(verbs.strip(), re.IGNORECASE)
        except re.error as exc:
            raise MigrationLoadError(f"Invalid verb pattern {verbs!r}: {exc}") from exc

    def matches(self, method: str) -> bool:
        # Whole-method match so that "PUT" never matches "PUTX"
        return self._regex.fullmatch(method) is not None

    def __repr__(self) -> str:
        return f"VerbMatcher({self.verbs!r})"
