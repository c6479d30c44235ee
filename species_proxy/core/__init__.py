"""
Core module with shared dependencies and exception handling.

Exceptions are re-exported here. FastAPI dependencies live in
species_proxy.core.dependencies, which imports the service layer and is
therefore not loaded with the package.
"""

from species_proxy.core.exceptions import (
    ClassifierNotFoundError,
    InvalidInputError,
    ProxyError,
    RecordCleanerAuthError,
    RecordCleanerError,
    RecordCleanerMalformedResponseError,
    RecordCleanerVerifyError,
    TaxonomyLookupError,
    UnsupportedMediaTypeError,
    UpstreamUnavailableError,
)


__all__ = [
    'ClassifierNotFoundError',
    'InvalidInputError',
    'ProxyError',
    'RecordCleanerAuthError',
    'RecordCleanerError',
    'RecordCleanerMalformedResponseError',
    'RecordCleanerVerifyError',
    'TaxonomyLookupError',
    'UnsupportedMediaTypeError',
    'UpstreamUnavailableError',
]
