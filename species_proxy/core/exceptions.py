"""
Custom exceptions for the species classification proxy.

Fatal errors (InvalidInputError, UnsupportedMediaTypeError,
UpstreamUnavailableError, ClassifierNotFoundError) are turned into HTTP
responses by the classification router. The taxonomy and Record Cleaner errors
are caught inside their enrichment stage and never reach the caller.
"""


class ProxyError(Exception):
    """Base exception for classification proxy errors."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class InvalidInputError(ProxyError):
    """Raised when the inbound request is missing or has malformed fields."""

    status_code = 400


class UnsupportedMediaTypeError(ProxyError):
    """Raised when an image is neither PNG nor JPEG."""

    status_code = 415

    def __init__(self, locator: str, content_type: str | None):
        self.locator = locator
        self.content_type = content_type
        message = f"Unhandled content type: {content_type} for image '{locator}'"
        super().__init__(message)


class ClassifierNotFoundError(ProxyError):
    """Raised when strict routing is on and the classifier is unknown."""

    status_code = 404

    def __init__(self, name: str, available: list):
        self.name = name
        self.available = available
        message = f"Classifier '{name}' not found. Available: {available}"
        super().__init__(message)


class UpstreamUnavailableError(ProxyError):
    """Raised when the classifier backend cannot be reached or answers badly."""

    status_code = 502

    def __init__(self, service: str, url: str, reason: str):
        self.service = service
        self.url = url
        self.reason = reason
        message = f'Failed to call {service} at {url}: {reason}'
        super().__init__(message)


class TaxonomyLookupError(ProxyError):
    """Raised when the warehouse taxa search fails."""

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        message = f"Taxa search failed for '{name}': {reason}"
        super().__init__(message)


class RecordCleanerError(ProxyError):
    """Base exception for Record Cleaner failures."""


class RecordCleanerAuthError(RecordCleanerError):
    """Raised when a Record Cleaner token cannot be obtained."""


class RecordCleanerVerifyError(RecordCleanerError):
    """Raised when the verify call fails in transport."""


class RecordCleanerMalformedResponseError(RecordCleanerError):
    """Raised when the verify response has no records, usually invalid input."""
