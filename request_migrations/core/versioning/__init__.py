"""Request Migration Versioning Module.

Provides the migration core:
- Version comparison
- Migration descriptors
- Route/verb matching
- Registry and selection
- Request/response pipeline
- Filesystem discovery
"""

from request_migrations.core.versioning.version import (
    VersionComparator,
    SemanticVersion,
    lexicographic_compare,
    semantic_compare,
    resolve_comparator,
    sort_by_version,
)
from request_migrations.core.versioning.migration import (
    Migration,
    MigrationHandler,
    MigrationRequest,
    to_migration,
)
from request_migrations.core.versioning.matching import (
    RouteMatcher,
    VerbMatcher,
)
from request_migrations.core.versioning.registry import (
    MigrationRegistry,
    RegisteredMigration,
)
from request_migrations.core.versioning.selector import (
    MigrationSelection,
    MigrationSelector,
    MissingVersionPolicy,
)
from request_migrations.core.versioning.pipeline import MigrationPipeline
from request_migrations.core.versioning.loader import load_migrations

__all__ = [
    # Version
    "VersionComparator",
    "SemanticVersion",
    "lexicographic_compare",
    "semantic_compare",
    "resolve_comparator",
    "sort_by_version",
    # Migration
    "Migration",
    "MigrationHandler",
    "MigrationRequest",
    "to_migration",
    # Matching
    "RouteMatcher",
    "VerbMatcher",
    # Registry
    "MigrationRegistry",
    "RegisteredMigration",
    "MigrationSelection",
    "MigrationSelector",
    "MissingVersionPolicy",
    # Pipeline
    "MigrationPipeline",
    # Loader
    "load_migrations",
]
