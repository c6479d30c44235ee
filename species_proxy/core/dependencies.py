"""
FastAPI dependency injection for shared resources.

Uses FastAPI's Depends() pattern for proper lifecycle management.
The HTTP connection pool is created once and reused across requests; the
classification service is built per request so no request-scoped state is
ever shared.
"""

import logging
from typing import Annotated

import httpx
from fastapi import Depends

from species_proxy.config.settings import Settings, get_settings
from species_proxy.services.classification import ClassificationService


logger = logging.getLogger(__name__)


# =============================================================================
# Type Aliases for Dependency Injection
# =============================================================================
SettingsDep = Annotated[Settings, Depends(get_settings)]


# =============================================================================
# Application State (managed by lifespan context)
# =============================================================================
class AppState:
    """
    Application state container for shared resources.

    Resources are initialized lazily and closed in lifespan.
    """

    def __init__(self):
        self._http_client: httpx.AsyncClient | None = None


# Global app state - closed in lifespan
app_state = AppState()


# =============================================================================
# HTTP Client Factory
# =============================================================================
class HttpClientFactory:
    """Factory for the shared outbound HTTP client (lazy initialization)."""

    @staticmethod
    def get_client() -> httpx.AsyncClient:
        """Get the shared async HTTP client."""
        if app_state._http_client is None:
            logger.info('Initializing shared HTTP client...')
            app_state._http_client = httpx.AsyncClient(
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
            )
            logger.info('Shared HTTP client ready')
        return app_state._http_client

    @staticmethod
    async def close():
        """Close the shared HTTP client."""
        if app_state._http_client is not None:
            await app_state._http_client.aclose()
            app_state._http_client = None
            logger.info('Shared HTTP client closed')


# =============================================================================
# FastAPI Dependencies (use with Depends())
# =============================================================================
def get_http_client() -> httpx.AsyncClient:
    """Dependency for the shared HTTP client."""
    return HttpClientFactory.get_client()


def get_classification_service(
    settings: SettingsDep,
    http: Annotated[httpx.AsyncClient, Depends(get_http_client)],
) -> ClassificationService:
    """Dependency building a fresh ClassificationService for each request."""
    return ClassificationService.from_settings(settings, http)


# Type alias for cleaner endpoint signatures
ClassificationServiceDep = Annotated[ClassificationService, Depends(get_classification_service)]
