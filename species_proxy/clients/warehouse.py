"""
Species warehouse client.

Reads the warehouse data services:
- security/get_read_nonce: nonce used to build read authorisation
- data/taxa_search: species search within a taxon list
"""

import hashlib
import logging
from typing import Any

import httpx

from species_proxy.config import WarehouseConfig
from species_proxy.core.exceptions import TaxonomyLookupError


logger = logging.getLogger(__name__)


class WarehouseClient:
    """Thin async client for the warehouse data services."""

    def __init__(self, http: httpx.AsyncClient, config: WarehouseConfig, timeout: float = 10.0):
        self.http = http
        self.config = config
        self.timeout = timeout

    def _url(self, service: str) -> str:
        return f"{self.config.base_url.rstrip('/')}/index.php/services/{service}"

    async def get_read_auth(self) -> dict[str, str]:
        """
        Obtain read authorisation for data service requests.

        The warehouse issues a nonce for the website; the auth token is the
        SHA1 of "{nonce}:{website password}".

        Returns:
            Dict with nonce and auth_token

        Raises:
            TaxonomyLookupError: If no nonce can be obtained
        """
        url = self._url('security/get_read_nonce')
        try:
            response = await self.http.post(
                url, data={'website_id': str(self.config.website_id)}, timeout=self.timeout
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise TaxonomyLookupError('read auth', f'nonce request failed: {e}') from e

        nonce = response.text.strip()
        if not nonce:
            raise TaxonomyLookupError('read auth', 'empty nonce')

        auth_token = hashlib.sha1(f'{nonce}:{self.config.password}'.encode()).hexdigest()
        return {'nonce': nonce, 'auth_token': auth_token}

    async def taxa_search(
        self, search_query: str, taxon_list_id: int, read_auth: dict[str, str]
    ) -> list[dict[str, Any]]:
        """
        Search a taxon list by Latin name.

        Args:
            search_query: Scientific name to search for
            taxon_list_id: Taxon list to search
            read_auth: Output of get_read_auth

        Returns:
            Matching taxa in warehouse priority order

        Raises:
            TaxonomyLookupError: On transport failure or an unexpected reply
        """
        params = {
            'searchQuery': search_query,
            'taxon_list_id': taxon_list_id,
            'language': 'lat',
            **read_auth,
        }
        try:
            response = await self.http.get(
                self._url('data/taxa_search'), params=params, timeout=self.timeout
            )
            response.raise_for_status()
            taxa = response.json()
        except httpx.HTTPError as e:
            raise TaxonomyLookupError(search_query, str(e) or type(e).__name__) from e
        except ValueError as e:
            raise TaxonomyLookupError(search_query, 'response is not JSON') from e

        if not isinstance(taxa, list):
            raise TaxonomyLookupError(search_query, f'unexpected response: {str(taxa)[:200]}')
        return taxa
