"""
Common Pydantic models for service info and health endpoints.
"""

from pydantic import BaseModel, Field


class ClassifierInfo(BaseModel):
    """Information about a single classifier route."""

    name: str
    label: str
    endpoint: str
    upstream: str


class ServiceInfoResponse(BaseModel):
    """Root endpoint response with service information."""

    service: str = Field(default='Species Classification Proxy')
    status: str = Field(default='running')
    version: str
    default_classifier: str
    strict_routing: bool
    classifiers: list[ClassifierInfo]
    record_cleaner_enabled: bool


class PerformanceMetrics(BaseModel):
    """Process metrics for health check."""

    memory_mb: float
    cpu_percent: float
    max_body_size_mb: int
    slow_request_threshold_ms: int


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(default='healthy', description='Service health status')
    classifiers: list[str] = Field(..., description='Enabled classifiers')
    performance: PerformanceMetrics = Field(..., description='Performance metrics')
