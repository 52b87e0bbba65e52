from request_migrations.middleware.interceptor import ResponseInterceptor
from request_migrations.middleware.request_migration import (
    RequestMigrationMiddleware,
    install_request_migrations,
)

__all__ = [
    "RequestMigrationMiddleware",
    "ResponseInterceptor",
    "install_request_migrations",
]
