"""Migration discovery from the filesystem.

A migrations directory holds one module per migration, named
``<anything>_migration.py``, each exposing a module-level ``migration``
attribute (a ``Migration``, a ``MigrationHandler`` instance or subclass).
"""

from __future__ import annotations

import hashlib
import importlib.util
import logging
from pathlib import Path
from typing import List, Union

from request_migrations.core.errors import MigrationLoadError
from request_migrations.core.versioning.migration import Migration, to_migration

logger = logging.getLogger(__name__)

MIGRATION_FILE_SUFFIX = "_migration.py"
MIGRATION_ATTRIBUTE = "migration"


def discover_migration_files(path: Union[str, Path]) -> List[Path]:
    """List migration modules under ``path`` (or ``path`` itself if a file)."""
    path = Path(path)
    if not path.exists():
        raise MigrationLoadError(f"Migrations path does not exist: {path}")
    if path.is_file():
        return [path]
    return sorted(p for p in path.iterdir() if p.is_file() and p.name.endswith(MIGRATION_FILE_SUFFIX))


def load_migration_file(file_path: Union[str, Path]) -> Migration:
    """Import one migration module and return its descriptor.

    Raises:
        MigrationLoadError: If the module cannot be imported or does not
            expose a usable ``migration`` attribute.
    """
    file_path = Path(file_path)
    # Unique module name per file so that same-named files never collide
    digest = hashlib.sha1(str(file_path.resolve()).encode()).hexdigest()[:12]
    module_name = f"_request_migrations_{file_path.stem}_{digest}"

    spec = importlib.util.spec_from_file_location(module_name, file_path)
    if spec is None or spec.loader is None:
        raise MigrationLoadError(f"Cannot import migration from {file_path}")
    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        logger.error("Error loading migration from %s", file_path, exc_info=True)
        raise MigrationLoadError(f"Error loading migration from {file_path}: {exc}") from exc

    source = getattr(module, MIGRATION_ATTRIBUTE, None)
    if source is None:
        raise MigrationLoadError(f"Migration {file_path.name} does not define '{MIGRATION_ATTRIBUTE}'")
    try:
        return to_migration(source)
    except TypeError as exc:
        raise MigrationLoadError(f"Migration {file_path.name} is invalid: {exc}") from exc


def load_migrations(path: Union[str, Path]) -> List[Migration]:
    """Load every migration module found at ``path``."""
    migrations = [load_migration_file(file_path) for file_path in discover_migration_files(path)]
    logger.info("Loaded %d migration(s) from %s", len(migrations), path)
    return migrations
