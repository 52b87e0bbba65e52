"""Migration Registry.

Validates and compiles the loaded migrations once. The registry is read-only
after construction and safe to share between concurrent requests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Tuple

from request_migrations.core.errors import MigrationLoadError
from request_migrations.core.versioning.matching import RouteMatcher, VerbMatcher
from request_migrations.core.versioning.migration import Migration, MigrationSource, to_migration

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegisteredMigration:
    """A migration with its compiled matchers."""
    migration: Migration
    route_matcher: RouteMatcher
    verb_matcher: VerbMatcher

    @property
    def version(self) -> str:
        return self.migration.version


def compile_migration(source: MigrationSource) -> RegisteredMigration:
    """Validate one migration and compile its matchers.

    Raises:
        MigrationLoadError: If the migration is malformed.
    """
    try:
        migration = to_migration(source)
    except TypeError as exc:
        raise MigrationLoadError(f"Invalid migration {source!r}: {exc}") from exc

    if not isinstance(migration.version, str) or not migration.version:
        raise MigrationLoadError(f"Migration for {migration.route!r} has no version")
    if not callable(migration.migrate_request) or not callable(migration.migrate_response):
        raise MigrationLoadError(
            f"Migration {migration.version} ({migration.route!r}) is missing "
            "migrate_request or migrate_response function",
            version=migration.version,
        )

    return RegisteredMigration(
        migration=migration,
        route_matcher=RouteMatcher(migration.route),
        verb_matcher=VerbMatcher(migration.verbs),
    )


class MigrationRegistry:
    """Loaded, validated migrations in load order."""

    def __init__(self, migrations: Iterable[MigrationSource] = ()):
        entries: List[RegisteredMigration] = []
        for source in migrations:
            try:
                entries.append(compile_migration(source))
            except MigrationLoadError:
                logger.error("Error loading migration %r", source, exc_info=True)
                raise
        self._entries: Tuple[RegisteredMigration, ...] = tuple(entries)
        logger.debug("Migrations loaded: %s", self.versions())

    def __iter__(self) -> Iterator[RegisteredMigration]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> Tuple[RegisteredMigration, ...]:
        return self._entries

    def versions(self) -> List[str]:
        """Versions in load order."""
        return [entry.version for entry in self._entries]
