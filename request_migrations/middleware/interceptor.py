"""ASGI send wrapper that migrates JSON response bodies before delivery."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple

from request_migrations.core.errors import MigrationError
from request_migrations.core.versioning.migration import MigrationRequest
from request_migrations.core.versioning.pipeline import MigrationPipeline, encode_json

logger = logging.getLogger(__name__)

Message = Dict[str, Any]
Send = Callable[[Message], Awaitable[None]]
RawHeaders = List[Tuple[bytes, bytes]]


def get_header(headers: Iterable[Tuple[bytes, bytes]], name: bytes) -> Optional[str]:
    for key, value in headers:
        if key.lower() == name:
            return value.decode("latin-1")
    return None


def is_json_content_type(content_type: Optional[str]) -> bool:
    """True for ``application/json`` and ``+json`` media types."""
    if not content_type:
        return False
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


def with_content_length(headers: Iterable[Tuple[bytes, bytes]], length: int) -> RawHeaders:
    result = [(k, v) for k, v in headers if k.lower() != b"content-length"]
    result.append((b"content-length", str(length).encode("latin-1")))
    return result


async def send_error_response(send: Send, error: MigrationError) -> None:
    """Send the fixed 500 body for ``error``."""
    body = encode_json(error.to_body())
    await send({
        "type": "http.response.start",
        "status": 500,
        "headers": [
            (b"content-type", b"application/json"),
            (b"content-length", str(len(body)).encode("latin-1")),
        ],
    })
    await send({
        "type": "http.response.body",
        "body": body,
        "more_body": False,
    })


class ResponseInterceptor:
    """Per-request replacement for the downstream app's ``send``.

    ``http.response.start`` is held back until the content type is known.
    Non-JSON and content-encoded responses are forwarded untouched; JSON
    bodies are buffered, migrated and delivered as one message with a
    corrected content-length.
    The real start and final body are sent exactly once.
    """

    def __init__(self, send: Send, pipeline: MigrationPipeline, request: MigrationRequest):
        self._send = send
        self.pipeline = pipeline
        self.request = request
        self._start: Optional[Message] = None
        self._chunks: List[bytes] = []
        self._passthrough = False
        self._completed = False

    async def __call__(self, message: Message) -> None:
        message_type = message["type"]

        if message_type == "http.response.start":
            if self._start is not None:
                raise RuntimeError("Response already started")
            self._start = message
            headers = message.get("headers", [])
            content_type = get_header(headers, b"content-type")
            # Compressed bodies are opaque to migrations
            encoding = (get_header(headers, b"content-encoding") or "identity").strip().lower()
            self._passthrough = (
                not self.pipeline
                or not is_json_content_type(content_type)
                or encoding != "identity"
            )
            if self._passthrough:
                await self._send(message)
            return

        if message_type != "http.response.body" or self._passthrough or self._start is None:
            if message_type == "http.response.body" and not message.get("more_body", False):
                self._completed = True
            await self._send(message)
            return

        if self._completed:
            raise RuntimeError("Response already completed")
        self._chunks.append(message.get("body", b""))
        if not message.get("more_body", False):
            await self._finalize()

    async def flush(self) -> None:
        """Complete a buffered JSON response whose final chunk never arrived."""
        if self._start is not None and not self._passthrough and not self._completed:
            await self._finalize()

    async def _finalize(self) -> None:
        self._completed = True
        raw = b"".join(self._chunks)
        self._chunks = []
        if not raw:
            # HEAD and bodiless responses carry nothing to migrate
            await self._send(self._start or {})
            await self._send({"type": "http.response.body", "body": b"", "more_body": False})
            return
        try:
            body = await self.pipeline.migrate_response_body(self.request, raw)
        except MigrationError as exc:
            logger.error(
                "Error during response migration: %s",
                exc.detail,
                exc_info=True,
                extra={
                    "phase": "response",
                    "migration_version": exc.version,
                    "client_version": self.request.client_version,
                    "request_method": self.request.method,
                    "request_path": self.request.path,
                    "error_code": exc.code.value,
                },
            )
            await send_error_response(self._send, exc)
            return

        start = dict(self._start or {})
        start["headers"] = with_content_length(start.get("headers", []), len(body))
        await self._send(start)
        await self._send({"type": "http.response.body", "body": body, "more_body": False})
