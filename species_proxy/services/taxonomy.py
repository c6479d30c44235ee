"""
Taxonomy enrichment service.

Looks up classifier names in the warehouse and swaps them for the preferred
name plus taxon metadata. Lookup failures never abort the pipeline: the
suggestion is kept with only its classifier-reported fields, which is
informative about possible mismatches in taxon names.
"""

import logging

from pydantic import ValidationError

from species_proxy.clients.warehouse import WarehouseClient
from species_proxy.core.exceptions import TaxonomyLookupError
from species_proxy.schemas.classification import Suggestion, TaxonRecord


logger = logging.getLogger(__name__)


def in_groups(record: TaxonRecord, taxon_group_ids: frozenset[int]) -> bool:
    """
    Check a match against the taxon group allow-list.

    An empty allow-list, or a record without group data, always passes.
    """
    if not taxon_group_ids or record.taxon_group_id is None:
        return True
    try:
        return int(record.taxon_group_id) in taxon_group_ids
    except (TypeError, ValueError):
        return False


class TaxonomyEnricher:
    """Attaches warehouse taxon data to suggestions."""

    def __init__(self, warehouse: WarehouseClient):
        self.warehouse = warehouse

    async def lookup(
        self, scientific_name: str, taxon_list_id: int, read_auth: dict[str, str] | None = None
    ) -> TaxonRecord | None:
        """
        Find the warehouse taxon for a name.

        Results come back in priority order, so the first is taken as the
        match.

        Args:
            scientific_name: Name reported by the classifier
            taxon_list_id: Taxon list to search
            read_auth: Read authorisation, fetched if not given

        Returns:
            TaxonRecord, or None for no match or any lookup failure
        """
        try:
            if read_auth is None:
                read_auth = await self.warehouse.get_read_auth()
            taxa = await self.warehouse.taxa_search(scientific_name, taxon_list_id, read_auth)
        except TaxonomyLookupError as e:
            logger.warning(e.message)
            return None

        if not taxa:
            logger.info(f"No warehouse match for '{scientific_name}' in list {taxon_list_id}")
            return None

        try:
            return TaxonRecord.model_validate(taxa[0])
        except ValidationError as e:
            logger.warning(f"Unusable warehouse row for '{scientific_name}': {e}")
            return None

    async def enrich(
        self,
        suggestions: list[Suggestion],
        taxon_list_id: int,
        taxon_group_ids: frozenset[int],
        limit: int,
    ) -> list[Suggestion]:
        """
        Enrich suggestions in order, filtering by taxon group.

        Lookups stop once `limit` suggestions have been kept.

        Args:
            suggestions: Filtered, sorted suggestions
            taxon_list_id: Taxon list to search
            taxon_group_ids: Allowed taxon groups (empty for all)
            limit: Maximum number of suggestions wanted

        Returns:
            Enriched suggestions, never longer than the input
        """
        read_auth = None
        try:
            read_auth = await self.warehouse.get_read_auth()
        except TaxonomyLookupError as e:
            logger.warning(f'Taxonomy enrichment unavailable: {e.message}')

        enriched = []
        for suggestion in suggestions:
            if len(enriched) >= limit:
                break

            record = None
            if read_auth is not None:
                record = await self.lookup(suggestion.taxon, taxon_list_id, read_auth)

            if record is None:
                enriched.append(
                    Suggestion(probability=suggestion.probability, classifier_taxon=suggestion.taxon)
                )
                continue

            if not in_groups(record, taxon_group_ids):
                logger.info(
                    f"Dropping '{record.preferred_taxon}': group {record.taxon_group_id} "
                    f'not in {sorted(taxon_group_ids)}'
                )
                continue

            enriched.append(
                Suggestion.from_taxon_record(suggestion.probability, suggestion.taxon, record)
            )

        return enriched
