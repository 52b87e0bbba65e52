"""Migration Pipeline.

Runs the two ordered traversals over one applicable migration set:

- request phase, ascending by version: the old-shaped request is brought
  forward one historical change at a time;
- response phase, the exact reverse: the newest change is undone first.

Each phase is strictly sequential, every transform consumes the previous
transform's output, and a failure aborts the rest of the phase.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional, Sequence, Tuple, Union

from request_migrations.core.errors import (
    RequestMigrationError,
    ResponseBodyError,
    ResponseMigrationError,
)
from request_migrations.core.versioning.migration import Migration, MigrationRequest, call_transform
from request_migrations.core.versioning.version import (
    VersionComparator,
    lexicographic_compare,
    sort_by_version,
)

logger = logging.getLogger(__name__)


def decode_json(raw: Union[bytes, str]) -> Any:
    """Deserialize a JSON body.

    Raises:
        ResponseBodyError: If the body is not valid JSON.
    """
    try:
        return json.loads(raw)
    except (UnicodeDecodeError, ValueError) as exc:
        raise ResponseBodyError(f"Invalid JSON response body: {exc}") from exc


def encode_json(body: Any) -> bytes:
    """Serialize a body the way Starlette's JSONResponse renders it."""
    return json.dumps(
        body,
        ensure_ascii=False,
        allow_nan=False,
        indent=None,
        separators=(",", ":"),
    ).encode("utf-8")


class MigrationPipeline:
    """Applies one request's migrations in both directions."""

    def __init__(
        self,
        migrations: Sequence[Migration],
        comparator: Optional[VersionComparator] = None,
    ):
        self.comparator = comparator or lexicographic_compare
        self.request_order: Tuple[Migration, ...] = tuple(
            sort_by_version(migrations, self.comparator, key=lambda m: m.version)
        )
        # Mirror image of the request order, ties included
        self.response_order: Tuple[Migration, ...] = tuple(reversed(self.request_order))

    def __bool__(self) -> bool:
        return bool(self.request_order)

    def __len__(self) -> int:
        return len(self.request_order)

    @property
    def versions(self) -> list[str]:
        return [m.version for m in self.request_order]

    async def apply_request(self, request: MigrationRequest) -> MigrationRequest:
        """Run every ``migrate_request`` in ascending version order.

        Raises:
            RequestMigrationError: On the first failing transform; later
                transforms are not invoked.
        """
        logger.debug(
            "Request migrations to apply: %s",
            self.versions,
            extra={"phase": "request", "client_version": request.client_version},
        )
        current = request
        for migration in self.request_order:
            logger.debug(
                "Applying request migration: %s",
                migration.version,
                extra={"phase": "request", "migration_version": migration.version},
            )
            try:
                result = await call_transform(migration.migrate_request, current)
            except Exception as exc:
                raise RequestMigrationError(
                    f"Request migration {migration.version} failed: {exc}",
                    version=migration.version,
                ) from exc
            if not isinstance(result, MigrationRequest):
                raise RequestMigrationError(
                    f"Request migration {migration.version} returned "
                    f"{type(result).__name__}, expected MigrationRequest",
                    version=migration.version,
                )
            current = result
        return current

    async def apply_response(self, request: MigrationRequest, body: Any) -> Any:
        """Run every ``migrate_response`` in descending version order.

        Raises:
            ResponseMigrationError: On the first failing transform.
        """
        logger.debug(
            "Response migrations to apply: %s",
            [m.version for m in self.response_order],
            extra={"phase": "response", "client_version": request.client_version},
        )
        current = body
        for migration in self.response_order:
            logger.debug(
                "Applying response migration: %s",
                migration.version,
                extra={"phase": "response", "migration_version": migration.version},
            )
            try:
                current = await call_transform(migration.migrate_response, request, current)
            except Exception as exc:
                raise ResponseMigrationError(
                    f"Response migration {migration.version} failed: {exc}",
                    version=migration.version,
                ) from exc
        return current

    async def migrate_response_body(self, request: MigrationRequest, raw: Union[bytes, str]) -> bytes:
        """Decode, migrate and re-encode a serialized JSON body."""
        body = decode_json(raw)
        migrated = await self.apply_response(request, body)
        try:
            return encode_json(migrated)
        except (TypeError, ValueError) as exc:
            raise ResponseMigrationError(f"Migrated response body is not serializable: {exc}") from exc
