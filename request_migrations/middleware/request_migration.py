"""Request migration middleware for Starlette / FastAPI.

For every HTTP request the middleware selects the migrations newer than the
client's declared version (``x-api-version`` by default), upgrades the
request before the downstream app sees it, and downgrades the JSON response
on its way out through a per-request ``ResponseInterceptor``.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple, Union
from urllib.parse import parse_qsl, urlencode

from request_migrations.core.config import Settings, get_settings
from request_migrations.core.errors import RequestMigrationError
from request_migrations.core.versioning.loader import load_migrations
from request_migrations.core.versioning.migration import MigrationRequest, MigrationSource
from request_migrations.core.versioning.pipeline import MigrationPipeline, encode_json
from request_migrations.core.versioning.registry import MigrationRegistry
from request_migrations.core.versioning.selector import MigrationSelector, MissingVersionPolicy
from request_migrations.core.versioning.version import VersionComparator, resolve_comparator
from request_migrations.middleware.interceptor import (
    RawHeaders,
    ResponseInterceptor,
    get_header,
    is_json_content_type,
    send_error_response,
    with_content_length,
)

logger = logging.getLogger(__name__)

Receive = Callable[[], Awaitable[Dict[str, Any]]]


def build_registry(
    migrations: Optional[Iterable[MigrationSource]] = None,
    migrations_dir: Optional[str] = None,
) -> MigrationRegistry:
    """Build the registry from explicit migrations plus a migrations directory."""
    sources: List[MigrationSource] = list(migrations or [])
    if migrations_dir:
        sources.extend(load_migrations(migrations_dir))
    return MigrationRegistry(sources)


def _resolve_comparator(
    comparator: Union[VersionComparator, str, None],
    settings: Settings,
) -> VersionComparator:
    if comparator is None:
        return resolve_comparator(settings.MIGRATIONS_COMPARATOR)
    if isinstance(comparator, str):
        return resolve_comparator(comparator)
    return comparator


async def read_body(receive: Receive) -> bytes:
    """Drain the request body from ``receive``."""
    chunks: List[bytes] = []
    while True:
        message = await receive()
        if message["type"] == "http.disconnect":
            break
        chunks.append(message.get("body", b""))
        if not message.get("more_body", False):
            break
    return b"".join(chunks)


def _header_pairs(raw_headers: Iterable[Tuple[bytes, bytes]]) -> List[Tuple[str, str]]:
    return [(k.decode("latin-1").lower(), v.decode("latin-1")) for k, v in raw_headers]


def _encode_headers(pairs: Iterable[Tuple[str, Any]]) -> RawHeaders:
    return [(k.lower().encode("latin-1"), str(v).encode("latin-1")) for k, v in pairs]


def merge_pairs(
    pairs: Iterable[Tuple[str, str]],
    original: Dict[str, Any],
    updated: Dict[str, Any],
) -> List[Tuple[str, Any]]:
    """Apply a migration's dict edits to a multi-valued pair list.

    Keys the migration left alone keep every original value in place; a
    changed key collapses to its new value at its first position; removed
    keys are dropped and new keys are appended.
    """
    result: List[Tuple[str, Any]] = []
    rewritten = set()
    for key, value in pairs:
        if key not in updated:
            continue
        if key in original and updated[key] == original[key]:
            result.append((key, value))
        elif key not in rewritten:
            rewritten.add(key)
            result.append((key, updated[key]))
    result.extend((key, value) for key, value in updated.items() if key not in original)
    return result


class RequestMigrationMiddleware:
    """ASGI middleware applying versioned request/response migrations."""

    def __init__(
        self,
        app: Any,
        migrations: Optional[Iterable[MigrationSource]] = None,
        *,
        registry: Optional[MigrationRegistry] = None,
        migrations_dir: Optional[str] = None,
        version_header: Optional[str] = None,
        comparator: Union[VersionComparator, str, None] = None,
        missing_version_policy: Union[MissingVersionPolicy, str, None] = None,
        settings: Optional[Settings] = None,
    ):
        self.app = app
        settings = settings or get_settings()
        self.version_header = (version_header or settings.MIGRATIONS_VERSION_HEADER).strip().lower()
        self.comparator = _resolve_comparator(comparator, settings)
        if registry is None:
            registry = build_registry(migrations, migrations_dir or settings.MIGRATIONS_DIR)
        self.registry = registry
        self.selector = MigrationSelector(
            registry,
            comparator=self.comparator,
            missing_version_policy=missing_version_policy or settings.MIGRATIONS_MISSING_VERSION_POLICY,
        )
        self._header_key = self.version_header.encode("latin-1")

    async def __call__(self, scope: dict, receive: Any, send: Any) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        raw_headers = list(scope.get("headers", []))
        client_version = (get_header(raw_headers, self._header_key) or "").strip()
        method = scope["method"].upper()
        path = scope["path"]

        state = dict(scope.get("state") or {})
        state["api_version"] = client_version
        state["applied_migrations"] = []

        try:
            selection = self.selector.select(method, path, client_version)
        except RequestMigrationError as exc:
            await self._reject(send, exc, client_version, method, path)
            return
        if not selection:
            await self.app({**scope, "state": state}, receive, send)
            return

        pipeline = MigrationPipeline(selection.migrations, self.comparator)
        raw_body = await read_body(receive)
        header_pairs = _header_pairs(raw_headers)
        query_pairs = parse_qsl(scope.get("query_string", b"").decode("latin-1"), keep_blank_values=True)
        request = self._build_request(scope, header_pairs, query_pairs, client_version, selection.path_params, raw_body)
        original_headers = dict(request.headers)
        original_query = dict(request.query_params)

        try:
            request = await pipeline.apply_request(request)
            body = self._encode_request_body(request)
        except RequestMigrationError as exc:
            await self._reject(send, exc, client_version, method, path)
            return

        if request.headers != original_headers:
            headers = _encode_headers(merge_pairs(header_pairs, original_headers, request.headers))
        else:
            headers = raw_headers
        headers = [(k, v) for k, v in headers if k.lower() != b"transfer-encoding"]
        headers = with_content_length(headers, len(body))

        query_string = scope.get("query_string", b"")
        if request.query_params != original_query:
            query_string = urlencode(merge_pairs(query_pairs, original_query, request.query_params)).encode("latin-1")

        state["applied_migrations"] = pipeline.versions
        migrated_scope = {**scope, "headers": headers, "query_string": query_string, "state": state}

        body_sent = False

        async def replay_receive() -> Dict[str, Any]:
            nonlocal body_sent
            if not body_sent:
                body_sent = True
                return {"type": "http.request", "body": body, "more_body": False}
            return await receive()

        interceptor = ResponseInterceptor(send, pipeline, request)
        await self.app(migrated_scope, replay_receive, interceptor)
        await interceptor.flush()

    async def _reject(
        self,
        send: Any,
        exc: RequestMigrationError,
        client_version: str,
        method: str,
        path: str,
    ) -> None:
        logger.error(
            "Error during request migration: %s",
            exc.detail,
            exc_info=True,
            extra={
                "phase": "request",
                "migration_version": exc.version,
                "client_version": client_version,
                "request_method": method,
                "request_path": path,
                "error_code": exc.code.value,
            },
        )
        await send_error_response(send, exc)

    def _build_request(
        self,
        scope: dict,
        header_pairs: List[Tuple[str, str]],
        query_pairs: List[Tuple[str, str]],
        client_version: str,
        path_params: Dict[str, Any],
        raw_body: bytes,
    ) -> MigrationRequest:
        headers = dict(header_pairs)
        body: Any = raw_body
        if raw_body and is_json_content_type(headers.get("content-type")):
            try:
                body = json.loads(raw_body)
            except ValueError:
                logger.debug("Request body is not valid JSON, passing raw bytes to migrations")
        return MigrationRequest(
            method=scope["method"].upper(),
            path=scope["path"],
            headers=headers,
            query_params=dict(query_pairs),
            path_params=dict(path_params),
            body=body,
            client_version=client_version,
        )

    @staticmethod
    def _encode_request_body(request: MigrationRequest) -> bytes:
        body = request.body
        if body is None:
            return b""
        if isinstance(body, (bytes, bytearray)):
            return bytes(body)
        if isinstance(body, str):
            return body.encode("utf-8")
        try:
            encoded = encode_json(body)
        except (TypeError, ValueError) as exc:
            raise RequestMigrationError(f"Migrated request body is not serializable: {exc}") from exc
        if not is_json_content_type(request.headers.get("content-type")):
            request.headers["content-type"] = "application/json"
        return encoded


def install_request_migrations(
    app: Any,
    migrations: Optional[Iterable[MigrationSource]] = None,
    *,
    migrations_dir: Optional[str] = None,
    version_header: Optional[str] = None,
    comparator: Union[VersionComparator, str, None] = None,
    missing_version_policy: Union[MissingVersionPolicy, str, None] = None,
    settings: Optional[Settings] = None,
) -> MigrationRegistry:
    """Load migrations eagerly and register the middleware on ``app``.

    Loading happens here rather than when the app builds its middleware
    stack, so a malformed migration set fails before the app serves anything.

    Raises:
        MigrationLoadError: If any migration is malformed.
    """
    settings = settings or get_settings()
    registry = build_registry(migrations, migrations_dir or settings.MIGRATIONS_DIR)
    policy = MissingVersionPolicy(missing_version_policy or settings.MIGRATIONS_MISSING_VERSION_POLICY)
    app.add_middleware(
        RequestMigrationMiddleware,
        registry=registry,
        version_header=version_header,
        comparator=_resolve_comparator(comparator, settings),
        missing_version_policy=policy,
        settings=settings,
    )
    logger.info("Request migrations installed: %d migration(s)", len(registry))
    return registry
