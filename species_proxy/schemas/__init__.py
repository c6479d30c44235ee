"""
Pydantic schemas and request models.

Consolidated models used across all API endpoints for consistent typing.
"""

from species_proxy.schemas.classification import ClassificationResult, Suggestion, TaxonRecord
from species_proxy.schemas.common import (
    ClassifierInfo,
    HealthResponse,
    PerformanceMetrics,
    ServiceInfoResponse,
)
from species_proxy.schemas.request import CONTROL_FIELDS, ClassificationRequest


__all__ = [
    'CONTROL_FIELDS',
    'ClassificationRequest',
    'ClassificationResult',
    'ClassifierInfo',
    'HealthResponse',
    'PerformanceMetrics',
    'ServiceInfoResponse',
    'Suggestion',
    'TaxonRecord',
]
