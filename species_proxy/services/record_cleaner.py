"""
Record Cleaner verification stage.

Annotates each suggestion with a record_cleaner value:
- the per-record result from Record Cleaner on success
- 'omit' if the request had no spatial reference or date
- 'error' if authentication or the verify call failed
- 'invalid' if Record Cleaner replied without records

Failures are logged and never abort the request.
"""

import logging
from typing import Any

from species_proxy.clients.record_cleaner import RecordCleanerClient
from species_proxy.core.exceptions import (
    RecordCleanerAuthError,
    RecordCleanerMalformedResponseError,
    RecordCleanerVerifyError,
)
from species_proxy.schemas.classification import Suggestion
from species_proxy.schemas.request import ClassificationRequest


logger = logging.getLogger(__name__)

OMIT = 'omit'
ERROR = 'error'
INVALID = 'invalid'


def build_records(suggestions: list[Suggestion], request: ClassificationRequest) -> list[dict]:
    """
    Build verify records for suggestions with a resolved taxon.

    Ids are 1-based positions in the suggestion list, so suggestions without
    a taxon leave gaps.
    """
    return [
        {
            'id': position,
            'name': suggestion.taxon,
            'date': request.observation_date,
            'sref': request.observation_sref,
        }
        for position, suggestion in enumerate(suggestions, start=1)
        if suggestion.taxon
    ]


def _results_by_id(response: dict[str, Any]) -> dict[int, Any]:
    results = {}
    for record in response.get('records') or []:
        if not isinstance(record, dict) or 'id' not in record:
            continue
        try:
            results[int(record['id'])] = record.get('result')
        except (TypeError, ValueError):
            logger.warning(f'Ignoring Record Cleaner record with id {record["id"]!r}')
    return results


def _annotate(suggestion: Suggestion, value: Any) -> Suggestion:
    annotated = suggestion.model_copy()
    annotated.record_cleaner = value
    return annotated


class RecordVerifier:
    """Runs the authenticate / verify / annotate sequence."""

    def __init__(self, client: RecordCleanerClient):
        self.client = client

    async def _outcome(
        self, suggestions: list[Suggestion], request: ClassificationRequest
    ) -> str | dict[str, Any]:
        outcome = None
        token = None
        try:
            token = await self.client.authenticate()
        except RecordCleanerAuthError as e:
            logger.error(e.message)
            outcome = ERROR

        # Missing observation details win over an authentication failure.
        if not request.can_verify:
            return OMIT
        if outcome is not None:
            return outcome

        try:
            return await self.client.verify(
                token, request.org_group_rules, build_records(suggestions, request)
            )
        except RecordCleanerMalformedResponseError as e:
            logger.error(e.message)
            return INVALID
        except RecordCleanerVerifyError as e:
            logger.error(e.message)
            return ERROR

    async def annotate(
        self, suggestions: list[Suggestion], request: ClassificationRequest
    ) -> list[Suggestion]:
        """
        Attach Record Cleaner opinions to suggestions.

        Args:
            suggestions: Final, truncated suggestions
            request: Request carrying sref, date and rules list

        Returns:
            Annotated copies of the suggestions, in the same order
        """
        if not suggestions:
            return suggestions

        outcome = await self._outcome(suggestions, request)

        if isinstance(outcome, str):
            return [_annotate(suggestion, outcome) for suggestion in suggestions]

        results = _results_by_id(outcome)
        annotated = []
        for position, suggestion in enumerate(suggestions, start=1):
            if position in results:
                suggestion = _annotate(suggestion, results[position])
            annotated.append(suggestion)
        return annotated
