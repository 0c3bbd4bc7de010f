"""
API router.

Aggregates every resource router under the application's API prefix.
"""
from importlib import import_module
from typing import List

from fastapi import APIRouter

from messmate.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(
    responses={
        400: {"description": "Bad Request"},
        401: {"description": "Unauthorized"},
        403: {"description": "Forbidden"},
        404: {"description": "Not Found"},
        500: {"description": "Internal Server Error"},
    }
)

ROUTE_MODULES: List[str] = [
    "auth",
    "users",
    "wallet",
    "menu",
    "bookings",
    "meals",
    "attendance",
    "inventory",
    "payments",
    "feedback",
    "notifications",
    "analytics",
    "reports",
]


def import_module_router(module_name: str) -> None:
    """Import ``messmate.api.routes.<module_name>`` and include its router."""
    module = import_module(f"messmate.api.routes.{module_name}")
    router.include_router(module.router)
    logger.debug(f"Included {module_name} router")


for _name in ROUTE_MODULES:
    import_module_router(_name)
