"""
Regional observation classifier adapter (Nature Identification API).

The full service path is {base}/{version}/{service}/{token}, where the token
selects results tuned to a region. Images are posted as multipart parts
named `image`. Authentication is HTTP Basic by default, or an OAuth2
password grant when auth_mode is 'oauth2'.

Expected response:
    {"generated_by": {"tag": "v2.1"},
     "predictions": [{"taxa": {"items": [{"scientific_name": "...", "probability": 0.9}]}}]}
"""

import base64
import logging
from typing import Any

import httpx

from species_proxy.adapters.base import (
    UpstreamCallSpec,
    UpstreamTarget,
    build_multipart_call,
    build_result,
    forwardable_headers,
    join_url,
)
from species_proxy.clients.oauth import fetch_password_grant_token
from species_proxy.config import RegionalClassifierConfig
from species_proxy.core.exceptions import UpstreamUnavailableError
from species_proxy.schemas.classification import ClassificationResult, Suggestion
from species_proxy.schemas.request import ClassificationRequest


logger = logging.getLogger(__name__)


class RegionalObservationClassifier:
    """Adapter for the regional observation classifier."""

    name = 'nia'
    label = 'Nature Identification API'

    def __init__(self, config: RegionalClassifierConfig, timeout: float = 30.0):
        self.config = config
        self.timeout = timeout

    @property
    def service_url(self) -> str:
        return join_url(
            self.config.base_url, self.config.version, self.config.service, self.config.token
        )

    async def _authorization(self, http: httpx.AsyncClient) -> str:
        if self.config.auth_mode == 'oauth2':
            token_url = self.config.token_url or join_url(self.config.base_url, 'token')
            token = await fetch_password_grant_token(
                http,
                token_url,
                self.config.username,
                self.config.password,
                timeout=self.timeout,
                service=self.label,
            )
            return f'Bearer {token}'

        credentials = f'{self.config.username}:{self.config.password}'.encode()
        return 'Basic ' + base64.b64encode(credentials).decode('ascii')

    async def prepare_request(
        self,
        headers: dict[str, list[str]],
        query: list[tuple[str, str]],
        http: httpx.AsyncClient,
    ) -> UpstreamTarget:
        headers = forwardable_headers(headers)
        headers['Authorization'] = [await self._authorization(http)]
        return UpstreamTarget(uri=self.service_url, headers=headers, query=list(query))

    async def build_upstream_call(
        self,
        request: ClassificationRequest,
        target: UpstreamTarget,
        resolver,
    ) -> UpstreamCallSpec:
        return await build_multipart_call(request, target, resolver, image_part_name='image')

    def parse_response(self, payload: Any, request: ClassificationRequest) -> ClassificationResult:
        try:
            predictions = payload.get('predictions') or []
            items = predictions[0]['taxa']['items'] if predictions else []
            suggestions = [
                Suggestion(probability=item['probability'], taxon=item['scientific_name'])
                for item in items
            ]
            version = (payload.get('generated_by') or {}).get('tag')
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise UpstreamUnavailableError(
                self.label, self.service_url, f'malformed response: {e!r}'
            ) from e

        return build_result(
            self.config.classifier_id, version, suggestions, payload, request, self.config.raw
        )
