"""
Outbound transport for classifier calls.

Executes an UpstreamCallSpec with the shared httpx client. There is no
retry: any transport failure, error status or non-JSON body becomes an
UpstreamUnavailableError that is returned to the caller.
"""

import logging
import time
from typing import Any
from urllib.parse import urlencode

import httpx

from species_proxy.adapters.base import UpstreamCallSpec
from species_proxy.core.exceptions import UpstreamUnavailableError


logger = logging.getLogger(__name__)


class UpstreamTransport:
    """Sends adapter-built requests and decodes the JSON reply."""

    def __init__(self, http: httpx.AsyncClient, timeout: float = 30.0):
        self.http = http
        self.timeout = timeout

    @staticmethod
    def _request_kwargs(call: UpstreamCallSpec) -> dict[str, Any]:
        headers = [(name, value) for name, values in call.headers.items() for value in values]
        kwargs: dict[str, Any] = {'params': call.query}

        if call.multipart is not None:
            files = []
            data: dict[str, list] = {}
            for part in call.multipart:
                if part.filename is None:
                    data.setdefault(part.name, []).append(part.content)
                else:
                    files.append((part.name, (part.filename, part.content, part.content_type)))
            kwargs['files'] = files
            kwargs['data'] = data
        elif call.form is not None:
            headers.append(('Content-Type', 'application/x-www-form-urlencoded'))
            kwargs['content'] = urlencode(call.form)

        kwargs['headers'] = headers
        return kwargs

    async def send(self, call: UpstreamCallSpec, service: str = 'classifier') -> Any:
        """
        Execute the call and return the decoded JSON body.

        Args:
            call: Request built by an adapter
            service: Backend name for logs and errors

        Returns:
            Decoded JSON payload

        Raises:
            UpstreamUnavailableError: On transport failure, HTTP error status or invalid JSON
        """
        start = time.time()
        try:
            response = await self.http.request(
                call.method, call.uri, timeout=self.timeout, **self._request_kwargs(call)
            )
        except httpx.TimeoutException as e:
            raise UpstreamUnavailableError(service, call.uri, f'timed out: {e}') from e
        except httpx.HTTPError as e:
            raise UpstreamUnavailableError(service, call.uri, str(e) or type(e).__name__) from e

        duration_ms = (time.time() - start) * 1000
        logger.info(f'{service} answered HTTP {response.status_code} in {duration_ms:.0f}ms')

        if response.status_code >= 400:
            raise UpstreamUnavailableError(
                service, call.uri, f'HTTP {response.status_code}: {response.text[:200]}'
            )

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamUnavailableError(service, call.uri, 'response is not JSON') from e
