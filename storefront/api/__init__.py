"""
HTTP API — ops exposed through ``storefront.wire`` on FastAPI.

    from storefront.api import create_app

    app = create_app(Settings(database_url="sqlite+aiosqlite:///shop.db"))
"""

from storefront.api._app import create_app, http_status, main, routes
from storefront.api._container import Services, build_services, inject_services
from storefront.api._handlers import storefront_ops

__all__ = (
    "create_app",
    "http_status",
    "main",
    "routes",
    "Services",
    "build_services",
    "inject_services",
    "storefront_ops",
)
