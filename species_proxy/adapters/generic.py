"""
Generic classifier adapter.

Posts a url-encoded form holding the local paths of the resolved images to a
classifier that shares the interim image folder. When credentials are
configured a bearer token is first obtained from the classifier's own /token
endpoint.

Expected response:
    {"version": "1.0", "predictions": [{"probability": 0.9, "taxon": {"name": "Felis catus"}}]}
"""

import logging
from typing import Any

import httpx

from species_proxy.adapters.base import (
    UpstreamCallSpec,
    UpstreamTarget,
    build_result,
    expand_fields,
    forwardable_headers,
    join_url,
)
from species_proxy.clients.oauth import fetch_password_grant_token
from species_proxy.config import GenericClassifierConfig
from species_proxy.core.exceptions import UpstreamUnavailableError
from species_proxy.schemas.classification import ClassificationResult, Suggestion
from species_proxy.schemas.request import ClassificationRequest


logger = logging.getLogger(__name__)


class GenericClassifier:
    """Adapter for the generic url-encoded classifier."""

    name = 'generic'
    label = 'Generic classifier'

    def __init__(self, config: GenericClassifierConfig, timeout: float = 30.0):
        self.config = config
        self.timeout = timeout

    async def prepare_request(
        self,
        headers: dict[str, list[str]],
        query: list[tuple[str, str]],
        http: httpx.AsyncClient,
    ) -> UpstreamTarget:
        headers = forwardable_headers(headers)

        if self.config.username:
            token = await fetch_password_grant_token(
                http,
                join_url(self.config.base_url, 'token'),
                self.config.username,
                self.config.password,
                timeout=self.timeout,
                service=self.label,
            )
            headers['Authorization'] = [f'Bearer {token}']

        return UpstreamTarget(
            uri=join_url(self.config.base_url, self.config.path),
            headers=headers,
            query=list(query),
        )

    async def build_upstream_call(
        self,
        request: ClassificationRequest,
        target: UpstreamTarget,
        resolver,
    ) -> UpstreamCallSpec:
        paths = await resolver.resolve_all(request.image_locators)

        form = [('image[]', str(path)) for path in paths]
        form += expand_fields(request.forward_fields)
        form += expand_fields(request.form_params)

        return UpstreamCallSpec(
            method='POST',
            uri=target.uri,
            headers=target.headers,
            query=target.query + expand_fields(request.query_params),
            form=form,
        )

    def parse_response(self, payload: Any, request: ClassificationRequest) -> ClassificationResult:
        try:
            suggestions = [
                Suggestion(probability=prediction['probability'], taxon=prediction['taxon']['name'])
                for prediction in payload.get('predictions') or []
            ]
            version = payload.get('version')
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise UpstreamUnavailableError(
                self.label, self.config.base_url, f'malformed response: {e!r}'
            ) from e

        return build_result(
            self.config.classifier_id, version, suggestions, payload, request, self.config.raw
        )
