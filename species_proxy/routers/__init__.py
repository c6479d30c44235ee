"""
FastAPI routers.

- classify: classification pipeline and per-classifier proxy
- health: service info and health checks
"""

from species_proxy.routers.classify import router as classify_router
from species_proxy.routers.health import router as health_router


__all__ = [
    'classify_router',
    'health_router',
]
