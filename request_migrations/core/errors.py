"""Shared error codes and exceptions for request migrations.

Runtime failures are converted to a fixed-shape ``{"error": message}`` body;
the message is always one of ``ERROR_MESSAGES`` and never the exception text.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional


class ErrorCode(str, Enum):
    MIGRATION_LOAD_FAILED = "MIGRATION_LOAD_FAILED"
    REQUEST_MIGRATION_FAILED = "REQUEST_MIGRATION_FAILED"
    RESPONSE_BODY_INVALID = "RESPONSE_BODY_INVALID"  # handler sent malformed JSON
    RESPONSE_MIGRATION_FAILED = "RESPONSE_MIGRATION_FAILED"


ERROR_MESSAGES: Dict[ErrorCode, str] = {
    ErrorCode.MIGRATION_LOAD_FAILED: "Internal Server Error: Failed to load migrations",
    ErrorCode.REQUEST_MIGRATION_FAILED: "Internal Server Error: Failed to apply migrations",
    ErrorCode.RESPONSE_BODY_INVALID: "Internal Server Error: Invalid response body",
    ErrorCode.RESPONSE_MIGRATION_FAILED: "Internal Server Error",
}


class MigrationError(Exception):
    """Base class for request migration failures."""

    code: ErrorCode = ErrorCode.RESPONSE_MIGRATION_FAILED

    def __init__(self, detail: str, version: Optional[str] = None):
        super().__init__(detail)
        self.detail = detail
        self.version = version

    @property
    def client_message(self) -> str:
        return ERROR_MESSAGES[self.code]

    def to_body(self) -> Dict[str, str]:
        return {"error": self.client_message}


class MigrationLoadError(MigrationError):
    """A migration could not be loaded, compiled or validated."""

    code = ErrorCode.MIGRATION_LOAD_FAILED


class RequestMigrationError(MigrationError):
    """A ``migrate_request`` transform failed."""

    code = ErrorCode.REQUEST_MIGRATION_FAILED


class ResponseBodyError(MigrationError):
    """The handler's JSON body could not be deserialized."""

    code = ErrorCode.RESPONSE_BODY_INVALID


class ResponseMigrationError(MigrationError):
    """A ``migrate_response`` transform failed."""

    code = ErrorCode.RESPONSE_MIGRATION_FAILED


__all__ = [
    "ERROR_MESSAGES",
    "ErrorCode",
    "MigrationError",
    "MigrationLoadError",
    "RequestMigrationError",
    "ResponseBodyError",
    "ResponseMigrationError",
]
