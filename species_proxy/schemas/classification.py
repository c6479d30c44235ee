"""
Classification-related Pydantic models.

Canonical suggestion format shared by every classifier adapter. Only fields
that have been explicitly set are serialized, so a suggestion that failed its
taxonomy lookup goes out with nothing but the classifier-reported fields.
"""

from typing import Any

from pydantic import BaseModel, Field


class TaxonRecord(BaseModel):
    """First (authoritative) row of a warehouse taxa search."""

    preferred_taxon: str
    preferred_taxa_taxon_list_id: Any = None
    taxon_group_id: Any = None
    default_common_name: str | None = None
    external_key: str | None = None
    organism_key: str | None = None
    identification_difficulty: Any = None

    class Config:
        extra = 'ignore'


class Suggestion(BaseModel):
    """
    One candidate identification.

    Created by an adapter with just probability and taxon. Taxonomy
    enrichment rebuilds it with warehouse data and the Record Cleaner stage
    sets record_cleaner to the per-record result or one of the markers
    'omit', 'error' or 'invalid'.
    """

    probability: float = Field(..., description='Probability as reported by the classifier')
    taxon: str | None = Field(None, description='Scientific name (preferred name once enriched)')
    classifier_taxon: str | None = Field(None, description='Name reported by the classifier')
    taxa_taxon_list_id: Any = None
    taxon_group_id: Any = None
    default_common_name: str | None = None
    external_key: str | None = None
    organism_key: str | None = None
    identification_difficulty: Any = None
    record_cleaner: Any = None

    @classmethod
    def from_taxon_record(cls, probability: float, classifier_taxon: str, record: TaxonRecord):
        """Build an enriched suggestion from a warehouse match."""
        return cls(
            probability=probability,
            classifier_taxon=classifier_taxon,
            taxon=record.preferred_taxon,
            taxa_taxon_list_id=record.preferred_taxa_taxon_list_id,
            taxon_group_id=record.taxon_group_id,
            default_common_name=record.default_common_name,
            external_key=record.external_key,
            organism_key=record.organism_key,
            identification_difficulty=record.identification_difficulty,
        )


class ClassificationResult(BaseModel):
    """
    Unified classification response.

    Built by an adapter from the upstream payload, then passed through the
    suggestion pipeline which replaces `suggestions`.
    """

    classifier_id: str = Field(..., description='ID of the classifier in the warehouse term list')
    classifier_version: str | None = Field(None, description='Version reported by the classifier')
    suggestions: list[Suggestion] = Field(default_factory=list)
    params: dict[str, Any] | None = Field(None, description='Echo of the request params')
    raw: Any = Field(None, description='Unmodified upstream payload, when requested')

    def with_suggestions(self, suggestions: list[Suggestion]) -> 'ClassificationResult':
        """Return a copy holding a new suggestion list."""
        return self.model_copy(update={'suggestions': suggestions})

    def to_response(self) -> dict[str, Any]:
        """Serialize for the caller, leaving out anything never set."""
        return self.model_dump(exclude_unset=True)
