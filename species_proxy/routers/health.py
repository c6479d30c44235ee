"""
Health and Monitoring Router

Provides service info and health checks.
"""

import logging
import os

import psutil
from fastapi import APIRouter

from species_proxy.adapters import build_adapters
from species_proxy.config import get_settings
from species_proxy.schemas.common import HealthResponse, ServiceInfoResponse


logger = logging.getLogger(__name__)

router = APIRouter(
    tags=['Health & Monitoring'],
)


@router.get('/', response_model=ServiceInfoResponse)
def root():
    """
    Service information endpoint.

    Returns enabled classifiers, their upstream services and the default route.
    """
    settings = get_settings()
    adapters = build_adapters(settings)

    return {
        'service': settings.api_title,
        'status': 'running',
        'version': settings.api_version,
        'default_classifier': settings.default_classifier or settings.classifiers[0],
        'strict_routing': settings.strict_routing,
        'classifiers': [
            {
                'name': name,
                'label': adapter.label,
                'endpoint': f'/classify/{name}',
                'upstream': adapter.config.base_url,
            }
            for name, adapter in adapters.items()
        ],
        'record_cleaner_enabled': settings.cleaner.enable,
    }


@router.get('/health', response_model=HealthResponse)
def health():
    """
    Health check with process metrics.

    Returns:
    - Service status
    - Enabled classifiers
    - Memory and CPU usage
    """
    settings = get_settings()

    process = psutil.Process(os.getpid())
    memory_info = process.memory_info()

    return {
        'status': 'healthy',
        'classifiers': list(settings.classifiers),
        'performance': {
            'memory_mb': round(memory_info.rss / 1024 / 1024, 2),
            'cpu_percent': process.cpu_percent(),
            'max_body_size_mb': settings.max_body_size_mb,
            'slow_request_threshold_ms': settings.slow_request_threshold_ms,
        },
    }
