"""Migration Selector.

Picks the migrations that apply to one request: matching route and verb, and
strictly newer than the version the client declared.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from request_migrations.core.errors import RequestMigrationError
from request_migrations.core.versioning.migration import Migration
from request_migrations.core.versioning.registry import MigrationRegistry
from request_migrations.core.versioning.version import VersionComparator, lexicographic_compare


class MissingVersionPolicy(Enum):
    """What to do when the client sends no version header."""
    LATEST = "latest"  # client is up to date, nothing applies
    OLDEST = "oldest"  # client predates every migration


@dataclass(frozen=True)
class MigrationSelection:
    """Applicable migrations for one request, in registration order."""
    migrations: Tuple[Migration, ...] = ()
    path_params: Dict[str, Any] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return bool(self.migrations)

    def __len__(self) -> int:
        return len(self.migrations)


class MigrationSelector:
    """Selects the applicable migration set for a request."""

    def __init__(
        self,
        registry: MigrationRegistry,
        comparator: Optional[VersionComparator] = None,
        missing_version_policy: Union[MissingVersionPolicy, str] = MissingVersionPolicy.LATEST,
    ):
        self.registry = registry
        self.comparator = comparator or lexicographic_compare
        self.missing_version_policy = MissingVersionPolicy(missing_version_policy)

    def select(self, method: str, path: str, client_version: Optional[str]) -> MigrationSelection:
        """Collect the migrations newer than ``client_version`` for this request.

        Raises:
            RequestMigrationError: If the comparator cannot order the client
                version against a migration version.
        """
        client_version = client_version or ""
        if not client_version and self.missing_version_policy is MissingVersionPolicy.LATEST:
            return MigrationSelection()

        method = method.upper()
        selected = []
        path_params: Dict[str, Any] = {}
        for entry in self.registry:
            if not entry.verb_matcher.matches(method):
                continue
            params = entry.route_matcher.match(path)
            if params is None:
                continue
            if client_version and self._compare(entry.version, client_version) <= 0:
                continue
            selected.append(entry.migration)
            for key, value in params.items():
                path_params.setdefault(key, value)

        return MigrationSelection(migrations=tuple(selected), path_params=path_params)

    def _compare(self, version: str, client_version: str) -> int:
        try:
            return self.comparator(version, client_version)
        except Exception as exc:
            raise RequestMigrationError(
                f"Cannot compare client version {client_version!r} with {version!r}: {exc}",
                version=version,
            ) from exc
