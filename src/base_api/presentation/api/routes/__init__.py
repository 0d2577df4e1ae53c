"""
API routes.
"""

from base_api.presentation.api.routes.diagnostics import metrics_router
from base_api.presentation.api.routes.diagnostics import router as diagnostics_router
from base_api.presentation.api.routes.swagger import build_swagger_router

__all__ = [
    "build_swagger_router",
    "diagnostics_router",
    "metrics_router",
]
