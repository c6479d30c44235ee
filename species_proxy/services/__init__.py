"""
Service layer containing business logic.

Separates business logic from API routes for cleaner architecture.
"""

from species_proxy.services.classification import ClassificationService
from species_proxy.services.image import ImageResolver
from species_proxy.services.pipeline import SuggestionPipeline
from species_proxy.services.record_cleaner import RecordVerifier
from species_proxy.services.routing import ClassifierRouter
from species_proxy.services.taxonomy import TaxonomyEnricher


__all__ = [
    'ClassificationService',
    'ClassifierRouter',
    'ImageResolver',
    'RecordVerifier',
    'SuggestionPipeline',
    'TaxonomyEnricher',
]
