"""Versioned request/response migrations for Starlette and FastAPI apps."""

from __future__ import annotations

from request_migrations.core.errors import (
    ErrorCode,
    MigrationError,
    MigrationLoadError,
    RequestMigrationError,
    ResponseBodyError,
    ResponseMigrationError,
)
from request_migrations.core.versioning import (
    Migration,
    MigrationHandler,
    MigrationRegistry,
    MigrationRequest,
    MissingVersionPolicy,
    lexicographic_compare,
    load_migrations,
    semantic_compare,
)
from request_migrations.middleware import (
    RequestMigrationMiddleware,
    install_request_migrations,
)

__version__ = "0.1.0"

__all__ = [
    "ErrorCode",
    "Migration",
    "MigrationError",
    "MigrationHandler",
    "MigrationLoadError",
    "MigrationRegistry",
    "MigrationRequest",
    "MissingVersionPolicy",
    "RequestMigrationError",
    "RequestMigrationMiddleware",
    "ResponseBodyError",
    "ResponseMigrationError",
    "install_request_migrations",
    "lexicographic_compare",
    "load_migrations",
    "semantic_compare",
]
