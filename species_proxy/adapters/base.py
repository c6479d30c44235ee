"""
Classifier adapter contract.

Every classifier backend is reached through an object implementing
ClassifierAdapter:

- prepare_request: work out the upstream URI, query and headers (including auth)
- build_upstream_call: shape the body the backend expects
- parse_response: map the backend's JSON to the canonical ClassificationResult

Adapters hold configuration only. Everything request-specific arrives as
arguments, so one adapter instance can serve concurrent requests.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

import httpx

from species_proxy.schemas.classification import ClassificationResult, Suggestion
from species_proxy.schemas.request import ClassificationRequest
from species_proxy.utils.flags import format_query_value, resolve_flag


if TYPE_CHECKING:
    from species_proxy.services.image import ImageResolver


# Inbound headers that must not reach a classifier. Content headers are
# recalculated for the outbound body and the caller's origin breaks some
# backends that do not support CORS.
DROPPED_HEADERS = frozenset({
    'host',
    'content-type',
    'content-length',
    'origin',
    'authorization',
    'cookie',
    'connection',
    'keep-alive',
    'transfer-encoding',
    'upgrade',
    'accept-encoding',
})


@dataclass
class MultipartPart:
    """One part of a multipart/form-data body."""

    name: str
    content: bytes | str
    filename: str | None = None
    content_type: str | None = None


@dataclass
class UpstreamTarget:
    """Where and how to call the backend, as computed by prepare_request."""

    uri: str
    headers: dict[str, list[str]] = field(default_factory=dict)
    query: list[tuple[str, str]] = field(default_factory=list)


@dataclass
class UpstreamCallSpec:
    """A complete outbound request, consumed by UpstreamTransport."""

    method: str
    uri: str
    headers: dict[str, list[str]] = field(default_factory=dict)
    query: list[tuple[str, str]] = field(default_factory=list)
    form: list[tuple[str, str]] | None = None
    multipart: list[MultipartPart] | None = None


class ClassifierAdapter(Protocol):
    """Per-backend request/response transformation."""

    name: str
    label: str

    async def prepare_request(
        self,
        headers: dict[str, list[str]],
        query: list[tuple[str, str]],
        http: httpx.AsyncClient,
    ) -> UpstreamTarget: ...

    async def build_upstream_call(
        self,
        request: ClassificationRequest,
        target: UpstreamTarget,
        resolver: 'ImageResolver',
    ) -> UpstreamCallSpec: ...

    def parse_response(
        self, payload: Any, request: ClassificationRequest
    ) -> ClassificationResult: ...


# =============================================================================
# Shared helpers
# =============================================================================
def join_url(base: str, *segments: str) -> str:
    """Join a base url and path segments, trimming stray slashes and spaces."""
    parts = [base.strip().rstrip('/')]
    parts.extend(segment.strip(' /') for segment in segments if segment and segment.strip(' /'))
    return '/'.join(parts)


def forwardable_headers(headers: dict[str, list[str]]) -> dict[str, list[str]]:
    """Copy inbound headers, leaving out those recalculated or unsafe to forward."""
    return {
        name: list(values)
        for name, values in headers.items()
        if name.lower() not in DROPPED_HEADERS
    }


def expand_fields(fields: dict[str, Any]) -> list[tuple[str, str]]:
    """
    Flatten a field mapping into name/value pairs.

    List values expand into repeated same-named entries and booleans become
    'true'/'false'.
    """
    pairs = []
    for name, value in fields.items():
        if isinstance(value, (list, tuple)):
            pairs.extend((name, format_query_value(item)) for item in value)
        else:
            pairs.append((name, format_query_value(value)))
    return pairs


async def build_multipart_call(
    request: ClassificationRequest,
    target: UpstreamTarget,
    resolver: 'ImageResolver',
    image_part_name: str,
) -> UpstreamCallSpec:
    """
    Build a multipart POST with one part per image.

    Forwarded body fields and params.form become extra parts, with arrays
    expanded into repeated same-named parts. params.query is appended to the query string.
    """
    paths = await resolver.resolve_all(request.image_locators)

    parts = []
    for path in paths:
        content, media_type = resolver.read(path)
        parts.append(
            MultipartPart(
                name=image_part_name,
                content=content,
                filename=path.name,
                content_type=media_type,
            )
        )
    for name, value in expand_fields(request.forward_fields) + expand_fields(request.form_params):
        parts.append(MultipartPart(name=name, content=value))

    return UpstreamCallSpec(
        method='POST',
        uri=target.uri,
        headers=target.headers,
        query=target.query + expand_fields(request.query_params),
        multipart=parts,
    )


def build_result(
    classifier_id: str,
    classifier_version: Any,
    suggestions: list[Suggestion],
    payload: Any,
    request: ClassificationRequest,
    raw_default: bool,
) -> ClassificationResult:
    """
    Assemble the canonical result, echoing params and attaching the raw
    payload when the request (or failing that, the configuration) asks for it.
    """
    values = {
        'classifier_id': classifier_id,
        'classifier_version': None if classifier_version is None else str(classifier_version),
        'suggestions': suggestions,
    }
    if request.extra_params is not None:
        values['params'] = request.extra_params
    if resolve_flag(request.raw_passthrough, raw_default):
        values['raw'] = payload
    return ClassificationResult(**values)
