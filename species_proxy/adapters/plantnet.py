"""
Plant identification adapter (Pl@ntNet).

The full service path is {base}/{version}/{service}/{project}, e.g.
https://my-api.plantnet.org/v2/identify/all, with the API key in the query
string. Images are posted as multipart parts named `images`; organs and
other options can be supplied through params.form and params.query.

Expected response:
    {"version": "2023-07-24 (7.0)",
     "results": [{"score": 0.9, "species": {"scientificNameWithoutAuthor": "..."}}]}
"""

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
from species_proxy.config import PlantClassifierConfig
from species_proxy.core.exceptions import UpstreamUnavailableError
from species_proxy.schemas.classification import ClassificationResult, Suggestion
from species_proxy.schemas.request import ClassificationRequest


logger = logging.getLogger(__name__)


class PlantIdentifier:
    """Adapter for the plant identification service."""

    name = 'plantnet'
    label = 'PlantNet API'

    def __init__(self, config: PlantClassifierConfig, timeout: float = 30.0):
        self.config = config
        self.timeout = timeout

    @property
    def service_url(self) -> str:
        return join_url(
            self.config.base_url, self.config.version, self.config.service, self.config.project
        )

    async def prepare_request(
        self,
        headers: dict[str, list[str]],
        query: list[tuple[str, str]],
        http: httpx.AsyncClient,
    ) -> UpstreamTarget:
        query = [(name, value) for name, value in query if name != 'api-key']
        query.append(('api-key', self.config.api_key))
        return UpstreamTarget(
            uri=self.service_url, headers=forwardable_headers(headers), query=query
        )

    async def build_upstream_call(
        self,
        request: ClassificationRequest,
        target: UpstreamTarget,
        resolver,
    ) -> UpstreamCallSpec:
        return await build_multipart_call(request, target, resolver, image_part_name='images')

    def parse_response(self, payload: Any, request: ClassificationRequest) -> ClassificationResult:
        try:
            suggestions = [
                Suggestion(
                    probability=result['score'],
                    taxon=result['species']['scientificNameWithoutAuthor'],
                )
                for result in payload.get('results') or []
            ]
            version = payload.get('version')
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise UpstreamUnavailableError(
                self.label, self.service_url, f'malformed response: {e!r}'
            ) from e

        return build_result(
            self.config.classifier_id, version, suggestions, payload, request, self.config.raw
        )
