"""
Record Cleaner client.

Record Cleaner gives a verification opinion on a taxon/place/date
combination. Access is by an OAuth2 password grant at {url}/token followed by
a bearer-authenticated POST of the records to {url}/verify.
"""

import logging
from typing import Any

import httpx

from species_proxy.clients.oauth import fetch_password_grant_token
from species_proxy.config import RecordCleanerConfig
from species_proxy.core.exceptions import (
    RecordCleanerAuthError,
    RecordCleanerMalformedResponseError,
    RecordCleanerVerifyError,
    UpstreamUnavailableError,
)


logger = logging.getLogger(__name__)


class RecordCleanerClient:
    """Async client for the Record Cleaner service."""

    def __init__(self, http: httpx.AsyncClient, config: RecordCleanerConfig, timeout: float = 10.0):
        self.http = http
        self.config = config
        self.timeout = timeout

    @property
    def base_url(self) -> str:
        return self.config.url.rstrip('/')

    async def authenticate(self) -> str:
        """
        Obtain an access token.

        Raises:
            RecordCleanerAuthError: If the token request fails or is refused
        """
        try:
            return await fetch_password_grant_token(
                self.http,
                f'{self.base_url}/token',
                self.config.username,
                self.config.password,
                timeout=self.timeout,
                service='Record Cleaner',
            )
        except UpstreamUnavailableError as e:
            raise RecordCleanerAuthError(e.message) from e

    async def verify(
        self, token: str, org_group_rules_list: Any, records: list[dict[str, Any]]
    ) -> dict[str, Any]:
        """
        Submit records for verification.

        Args:
            token: Access token from authenticate()
            org_group_rules_list: Rules to verify against
            records: Records of the form {id, name, date, sref}

        Returns:
            Decoded response containing a `records` list

        Raises:
            RecordCleanerVerifyError: On transport failure or a non-JSON reply
            RecordCleanerMalformedResponseError: If the reply has no records,
                which is how the service reports invalid input
        """
        url = f'{self.base_url}/verify'
        body = {'org_group_rules_list': org_group_rules_list, 'records': records}

        try:
            response = await self.http.post(
                url,
                json=body,
                headers={'Authorization': f'Bearer {token}'},
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            raise RecordCleanerVerifyError(
                f'Record Cleaner verification failed: {e!r}'
            ) from e

        try:
            result = response.json()
        except ValueError as e:
            raise RecordCleanerVerifyError(
                f'Record Cleaner verification failed: HTTP {response.status_code}, body is not JSON'
            ) from e

        if not isinstance(result, dict) or 'records' not in result:
            raise RecordCleanerMalformedResponseError(
                f'Record Cleaner rejected the records: {str(result)[:200]}'
            )
        return result
