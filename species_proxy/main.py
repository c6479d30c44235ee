"""
Species Classification Proxy FastAPI Service

Fronts several image classifiers behind one url-encoded interface:
- /classify/{classifier}: generic, nia (regional observations) or plantnet
- Suggestions are filtered, ranked, matched against the species warehouse
  and optionally annotated by Record Cleaner

Run: uvicorn species_proxy.main:app --host 0.0.0.0 --port 8000
"""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import ORJSONResponse

from species_proxy.config import get_settings
from species_proxy.core.dependencies import HttpClientFactory
from species_proxy.routers import classify_router, health_router


settings = get_settings()

logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)


# =============================================================================
# Lifespan Manager
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifecycle manager.

    Startup:
    - Log the enabled classifiers and enrichment options
    - Shared HTTP client auto-created on first use

    Shutdown:
    - Close the shared HTTP client gracefully
    """
    logger.info('=== Species Classification Proxy ===')
    logger.info(f'Classifiers: {settings.classifiers}')
    logger.info(f'Default classifier: {settings.default_classifier or settings.classifiers[0]}')
    logger.info(
        f'Threshold: {settings.classify.threshold}, max suggestions: {settings.classify.suggestions}'
    )
    logger.info(f"Record Cleaner: {'ENABLED' if settings.cleaner.enable else 'DISABLED'}")
    logger.info('=== SERVICE READY ===')

    yield

    logger.info('=== SHUTDOWN: Cleaning Up ===')
    try:
        await HttpClientFactory.close()
    except Exception as e:
        logger.warning(f'Error closing HTTP client: {e}')
    logger.info('=== SHUTDOWN COMPLETE ===')


# =============================================================================
# FastAPI Application
# =============================================================================
app = FastAPI(
    title=settings.api_title,
    description=settings.api_description,
    version=settings.api_version,
    lifespan=lifespan,
    default_response_class=ORJSONResponse,
)


# =============================================================================
# Performance Monitoring Middleware
# =============================================================================
@app.middleware('http')
async def performance_middleware(request: Request, call_next):
    """
    Reject oversized bodies and log slow requests.
    """
    start_time = time.time()

    if request.method == 'POST':
        content_length = request.headers.get('content-length')
        if content_length and content_length.isdigit() and int(content_length) > settings.max_body_size_bytes:
            logger.warning(
                f'Request rejected: body of {int(content_length) / 1024 / 1024:.2f}MB exceeds '
                f'{settings.max_body_size_mb}MB limit'
            )
            return ORJSONResponse(
                status_code=413,
                content={'detail': f'Body too large. Maximum size: {settings.max_body_size_mb}MB'},
            )

    response = await call_next(request)

    duration_ms = (time.time() - start_time) * 1000
    response.headers['X-Process-Time'] = f'{duration_ms:.2f}ms'

    if duration_ms > settings.slow_request_threshold_ms:
        logger.warning(
            f'Slow request: {request.method} {request.url.path} - '
            f'{duration_ms:.2f}ms (threshold: {settings.slow_request_threshold_ms}ms)'
        )

    return response


# =============================================================================
# Routers
# =============================================================================
app.include_router(health_router)
app.include_router(classify_router)
