"""Migration descriptors.

A migration models one historical API change for a route: a request
transform that moves an old-shaped request forward to the latest shape, and a
response transform that moves the latest-shaped body back.
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Type, Union

RequestTransform = Callable[["MigrationRequest"], Union["MigrationRequest", Awaitable["MigrationRequest"]]]
ResponseTransform = Callable[["MigrationRequest", Any], Any]


@dataclass
class MigrationRequest:
    """Mutable per-request context handed to request transforms.

    ``body`` holds parsed JSON when the request was sent as JSON and the raw
    bytes otherwise. Header names are lower-cased. A repeated header or
    query key shows its last value here; keys a migration leaves unchanged
    reach the app with all their original values.
    """
    method: str
    path: str
    headers: Dict[str, str] = field(default_factory=dict)
    query_params: Dict[str, str] = field(default_factory=dict)
    path_params: Dict[str, Any] = field(default_factory=dict)
    body: Any = None
    client_version: str = ""


@dataclass(frozen=True)
class Migration:
    """Static definition of one migration."""
    route: str
    verbs: str
    version: str
    migrate_request: RequestTransform
    migrate_response: ResponseTransform
    description: str = ""

    @classmethod
    def from_handler(cls, handler: "MigrationHandler") -> "Migration":
        """Build a descriptor from a handler object's attributes and methods."""
        return cls(
            route=getattr(handler, "route", None),
            verbs=getattr(handler, "verbs", None),
            version=getattr(handler, "version", None),
            description=getattr(handler, "description", "") or "",
            migrate_request=getattr(handler, "migrate_request", None),
            migrate_response=getattr(handler, "migrate_response", None),
        )


class MigrationHandler(ABC):
    """Class-based migration.

    Subclasses set ``route``, ``verbs``, ``version`` and ``description`` and
    implement both transforms, either as plain or ``async`` methods.
    """

    route: str
    verbs: str
    version: str
    description: str = ""

    @abstractmethod
    def migrate_request(self, request: MigrationRequest) -> Any:
        """Bring an old-shaped request up to the next shape."""

    @abstractmethod
    def migrate_response(self, request: MigrationRequest, body: Any) -> Any:
        """Bring a response body back to the previous shape."""

    def as_migration(self) -> Migration:
        return Migration.from_handler(self)


MigrationSource = Union[Migration, MigrationHandler, Type[MigrationHandler]]


def to_migration(source: Any) -> Migration:
    """Normalize a descriptor, handler instance or handler class."""
    if isinstance(source, Migration):
        return source
    if inspect.isclass(source) and issubclass(source, MigrationHandler):
        source = source()
    if isinstance(source, MigrationHandler):
        return source.as_migration()
    raise TypeError(
        f"Expected Migration or MigrationHandler, got {type(source).__name__}"
    )


async def call_transform(fn: Callable[..., Any], *args: Any) -> Any:
    """Call a transform and await its result when it is awaitable."""
    result = fn(*args)
    if inspect.isawaitable(result):
        result = await result
    return result
