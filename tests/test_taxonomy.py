"""
Unit tests for the warehouse client and taxonomy enrichment
"""

import hashlib

import httpx
import pytest

from conftest import NONCE_URL, TAXA_SEARCH_URL
from species_proxy.clients.warehouse import WarehouseClient
from species_proxy.core.exceptions import TaxonomyLookupError
from species_proxy.schemas.classification import Suggestion, TaxonRecord
from species_proxy.services.taxonomy import TaxonomyEnricher, in_groups


FELIS = {
    'taxon': 'Felis silvestris catus',
    'preferred_taxon': 'Felis catus',
    'preferred_taxa_taxon_list_id': '101',
    'taxon_group_id': '7',
    'default_common_name': 'Cat',
    'external_key': 'NHMSYS0000080173',
    'organism_key': 'NBNORG0000001',
    'identification_difficulty': None,
}

CANIS = {
    'preferred_taxon': 'Canis lupus',
    'preferred_taxa_taxon_list_id': '102',
    'taxon_group_id': '5',
    'default_common_name': 'Wolf',
    'external_key': 'NHMSYS0000080174',
    'organism_key': 'NBNORG0000002',
    'identification_difficulty': 2,
}


def taxa_search_handler(taxa_by_name):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=taxa_by_name.get(request.url.params['searchQuery'], []))

    return handler


@pytest.fixture
def warehouse(http_client, settings):
    return WarehouseClient(http_client, settings.warehouse)


@pytest.fixture
def enricher(warehouse):
    return TaxonomyEnricher(warehouse)


class TestWarehouseClient:
    """Test cases for WarehouseClient"""

    @pytest.mark.asyncio
    async def test_read_auth(self, warehouse, backend):
        backend.add('POST', NONCE_URL, text='nonce123')

        read_auth = await warehouse.get_read_auth()

        assert read_auth == {
            'nonce': 'nonce123',
            'auth_token': hashlib.sha1(b'nonce123:secret').hexdigest(),
        }
        assert backend.requests[0].content == b'website_id=1'

    @pytest.mark.asyncio
    async def test_read_auth_failure(self, warehouse, backend):
        backend.add('POST', NONCE_URL, status_code=500)

        with pytest.raises(TaxonomyLookupError):
            await warehouse.get_read_auth()

    @pytest.mark.asyncio
    async def test_taxa_search(self, warehouse, backend):
        backend.add('GET', TAXA_SEARCH_URL, json=[FELIS])

        taxa = await warehouse.taxa_search('Felis catus', 3, {'nonce': 'n', 'auth_token': 't'})

        assert taxa == [FELIS]
        params = backend.requests[0].url.params
        assert params['searchQuery'] == 'Felis catus'
        assert params['taxon_list_id'] == '3'
        assert params['language'] == 'lat'
        assert params['nonce'] == 'n'
        assert params['auth_token'] == 't'

    @pytest.mark.asyncio
    async def test_taxa_search_unexpected_reply(self, warehouse, backend):
        backend.add('GET', TAXA_SEARCH_URL, json={'error': 'unauthorised'})

        with pytest.raises(TaxonomyLookupError):
            await warehouse.taxa_search('Felis catus', 3, {})


class TestInGroups:
    """Test cases for in_groups"""

    def test_empty_allow_list_passes(self):
        assert in_groups(TaxonRecord(**FELIS), frozenset())

    def test_membership(self):
        assert in_groups(TaxonRecord(**FELIS), frozenset({7, 9}))
        assert not in_groups(TaxonRecord(**FELIS), frozenset({5}))

    def test_record_without_group_passes(self):
        assert in_groups(TaxonRecord(preferred_taxon='Felis catus'), frozenset({5}))


class TestTaxonomyEnricher:
    """Test cases for TaxonomyEnricher"""

    @pytest.fixture(autouse=True)
    def read_nonce(self, backend):
        backend.add('POST', NONCE_URL, text='nonce123')

    @pytest.mark.asyncio
    async def test_lookup_takes_first_row(self, enricher, backend):
        backend.add('GET', TAXA_SEARCH_URL, json=[FELIS, CANIS])

        record = await enricher.lookup('Felis catus', 3)

        assert record.preferred_taxon == 'Felis catus'
        assert record.taxon_group_id == '7'

    @pytest.mark.asyncio
    async def test_lookup_no_match(self, enricher, backend):
        backend.add('GET', TAXA_SEARCH_URL, json=[])
        assert await enricher.lookup('Unknownia', 3) is None

    @pytest.mark.asyncio
    async def test_lookup_failure_is_no_match(self, enricher, backend):
        backend.add('GET', TAXA_SEARCH_URL, status_code=503)
        assert await enricher.lookup('Felis catus', 3) is None

    @pytest.mark.asyncio
    async def test_enrich_match(self, enricher, backend):
        backend.add('GET', TAXA_SEARCH_URL, handler=taxa_search_handler({'Felis silvestris catus': [FELIS]}))

        enriched = await enricher.enrich(
            [Suggestion(probability=0.9, taxon='Felis silvestris catus')], 3, frozenset(), limit=1
        )

        assert enriched[0].model_dump(exclude_unset=True) == {
            'probability': 0.9,
            'taxon': 'Felis catus',
            'classifier_taxon': 'Felis silvestris catus',
            'taxa_taxon_list_id': '101',
            'taxon_group_id': '7',
            'default_common_name': 'Cat',
            'external_key': 'NHMSYS0000080173',
            'organism_key': 'NBNORG0000001',
            'identification_difficulty': None,
        }

    @pytest.mark.asyncio
    async def test_enrich_no_match_keeps_classifier_fields(self, enricher, backend):
        backend.add('GET', TAXA_SEARCH_URL, json=[])

        enriched = await enricher.enrich(
            [Suggestion(probability=0.8, taxon='Unknownia')], 3, frozenset(), limit=1
        )

        assert [s.model_dump(exclude_unset=True) for s in enriched] == [
            {'probability': 0.8, 'classifier_taxon': 'Unknownia'}
        ]

    @pytest.mark.asyncio
    async def test_enrich_group_filter_moves_to_next_ranked(self, enricher, backend):
        backend.add(
            'GET',
            TAXA_SEARCH_URL,
            handler=taxa_search_handler({'Felis catus': [FELIS], 'Canis lupus': [CANIS]}),
        )
        suggestions = [
            Suggestion(probability=0.9, taxon='Felis catus'),
            Suggestion(probability=0.8, taxon='Canis lupus'),
        ]

        enriched = await enricher.enrich(suggestions, 3, frozenset({5}), limit=1)

        assert [(s.taxon, s.probability) for s in enriched] == [('Canis lupus', 0.8)]

    @pytest.mark.asyncio
    async def test_enrich_stops_at_limit(self, enricher, backend):
        backend.add('GET', TAXA_SEARCH_URL, json=[CANIS])
        suggestions = [
            Suggestion(probability=0.9, taxon='Canis lupus'),
            Suggestion(probability=0.8, taxon='Canis lupus lupus'),
            Suggestion(probability=0.7, taxon='Canis familiaris'),
        ]

        enriched = await enricher.enrich(suggestions, 3, frozenset(), limit=2)

        assert len(enriched) == 2
        assert len(backend.calls('GET', TAXA_SEARCH_URL)) == 2
        assert len(backend.calls('POST', NONCE_URL)) == 1

    @pytest.mark.asyncio
    async def test_enrich_without_read_auth_keeps_all_unmatched(self, enricher, backend):
        backend.add('POST', NONCE_URL, status_code=500)
        suggestions = [Suggestion(probability=0.9, taxon='Felis catus')]

        enriched = await enricher.enrich(suggestions, 3, frozenset({5}), limit=1)

        assert [s.model_dump(exclude_unset=True) for s in enriched] == [
            {'probability': 0.9, 'classifier_taxon': 'Felis catus'}
        ]
        assert backend.calls('GET', TAXA_SEARCH_URL) == []
