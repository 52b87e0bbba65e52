import os
from pathlib import Path

import pytest


# List of environment variables that may be modified by tests
_ENV_VARS_TO_ISOLATE = [
    "MIGRATIONS_VERSION_HEADER",
    "MIGRATIONS_DIR",
    "MIGRATIONS_COMPARATOR",
    "MIGRATIONS_MISSING_VERSION_POLICY",
    "LOG_LEVEL",
    "LOG_JSON",
]

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def env_isolation():
    """Isolate environment variables between tests."""
    backup = {k: os.environ.get(k) for k in _ENV_VARS_TO_ISOLATE}
    for k in _ENV_VARS_TO_ISOLATE:
        os.environ.pop(k, None)
    try:
        yield
    finally:
        for k, v in backup.items():
            if v is None:
                os.environ.pop(k, None)
            else:
                os.environ[k] = v


@pytest.fixture(autouse=True)
def settings_isolation():
    """Drop cached settings so each test sees its own environment."""
    from request_migrations.core.config import reset_settings

    reset_settings()
    try:
        yield
    finally:
        reset_settings()


@pytest.fixture
def migrations_dir() -> Path:
    return FIXTURES_DIR / "migrations"


@pytest.fixture
def bad_migrations_dir() -> Path:
    return FIXTURES_DIR / "bad_migrations"


@pytest.fixture
def invalid_migrations_dir() -> Path:
    return FIXTURES_DIR / "invalid_migrations"


class CallRecorder:
    """Records transform invocations as (phase, version) pairs."""

    def __init__(self):
        self.calls = []

    def record(self, phase: str, version: str) -> None:
        self.calls.append((phase, version))

    def versions(self, phase: str) -> list:
        return [version for p, version in self.calls if p == phase]

    def count(self, phase: str, version: str) -> int:
        return self.calls.count((phase, version))


@pytest.fixture
def recorder() -> CallRecorder:
    return CallRecorder()
