"""
Suggestion pipeline.

Stages run in a fixed order over the canonical suggestion list:
1. Threshold filter (probability >= threshold)
2. Stable descending sort by probability
3. Taxonomy enrichment and group filter (only with a taxon list id)
4. Truncation to the maximum number of suggestions
5. Record Cleaner annotation (only when enabled)
"""

import logging

from species_proxy.config import ClassifyConfig
from species_proxy.schemas.classification import ClassificationResult, Suggestion
from species_proxy.schemas.request import ClassificationRequest
from species_proxy.services.record_cleaner import RecordVerifier
from species_proxy.services.taxonomy import TaxonomyEnricher


logger = logging.getLogger(__name__)


def filter_by_probability(suggestions: list[Suggestion], threshold: float) -> list[Suggestion]:
    """Remove suggestions falling below the probability threshold."""
    return [suggestion for suggestion in suggestions if suggestion.probability >= threshold]


def sort_by_probability(suggestions: list[Suggestion]) -> list[Suggestion]:
    """Sort by descending probability, keeping input order for ties."""
    return sorted(suggestions, key=lambda suggestion: suggestion.probability, reverse=True)


def truncate(suggestions: list[Suggestion], limit: int) -> list[Suggestion]:
    """Keep at most `limit` suggestions."""
    return suggestions[:limit]


class SuggestionPipeline:
    """
    Filters, ranks and enriches adapter output.

    Holds configuration and collaborators only; per-request values come from
    the ClassificationRequest passed to run().
    """

    def __init__(
        self,
        classify: ClassifyConfig,
        enricher: TaxonomyEnricher,
        verifier: RecordVerifier | None = None,
    ):
        self.classify = classify
        self.enricher = enricher
        self.verifier = verifier

    async def run(
        self, result: ClassificationResult, request: ClassificationRequest
    ) -> ClassificationResult:
        """
        Apply all stages to a classification result.

        Args:
            result: Output of an adapter's parse_response
            request: The parsed inbound request

        Returns:
            Result with the processed suggestion list
        """
        suggestions = filter_by_probability(result.suggestions, self.classify.threshold)
        suggestions = sort_by_probability(suggestions)
        logger.debug(
            f'{len(suggestions)}/{len(result.suggestions)} suggestions at or above '
            f'{self.classify.threshold}'
        )

        if request.taxon_list_id is not None:
            suggestions = await self.enricher.enrich(
                suggestions,
                request.taxon_list_id,
                request.taxon_group_ids,
                limit=self.classify.suggestions,
            )

        suggestions = truncate(suggestions, self.classify.suggestions)

        if self.verifier is not None:
            suggestions = await self.verifier.annotate(suggestions, request)

        return result.with_suggestions(suggestions)
