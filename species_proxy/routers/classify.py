"""
Classification Router

Accepts url-encoded classification requests from the data-entry forms:
- /classify and /classify/{classifier}: full pipeline (filter, sort,
  taxonomy enrichment, truncation, Record Cleaner)
- /proxy/{classifier}: classifier response in canonical form, no pipeline
"""

import logging

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import ORJSONResponse

from species_proxy.core.dependencies import ClassificationServiceDep
from species_proxy.core.exceptions import ProxyError
from species_proxy.schemas.classification import ClassificationResult


logger = logging.getLogger(__name__)

router = APIRouter(
    tags=['Classification'],
)

# Query parameters consumed by the proxy itself
PROXY_QUERY_PARAMS = frozenset({'classifier'})


def _inbound_headers(request: Request) -> dict[str, list[str]]:
    return {name: request.headers.getlist(name) for name in request.headers.keys()}


def _inbound_query(request: Request) -> list[tuple[str, str]]:
    return [
        (name, value)
        for name, value in request.query_params.multi_items()
        if name not in PROXY_QUERY_PARAMS
    ]


async def _run(
    request: Request,
    service: ClassificationServiceDep,
    classifier: str | None,
    pipeline: bool = True,
) -> ORJSONResponse:
    body = await request.body()
    headers = _inbound_headers(request)
    query = _inbound_query(request)

    try:
        if pipeline:
            result = await service.classify(classifier, body, headers, query)
        else:
            result, _ = await service.call_classifier(classifier, body, headers, query)

    except ProxyError as e:
        if e.status_code >= 500:
            logger.error(f'Classification failed: {e.message}')
        else:
            logger.warning(f'Client error: {e.message}')
        raise HTTPException(status_code=e.status_code, detail=e.message) from e

    except Exception as e:
        logger.exception(f'Unexpected classification error: {e}')
        raise HTTPException(status_code=500, detail=f'Classification failed: {e!s}') from e

    return ORJSONResponse(content=result.to_response())


@router.post('/classify', response_model=ClassificationResult)
async def classify_default(
    request: Request,
    service: ClassificationServiceDep,
    classifier: str | None = Query(None, description='Classifier to use (default if omitted)'),
):
    """
    Classify an image with the default (or explicitly named) classifier.

    The body is application/x-www-form-urlencoded with:
    - image: image location(s), URL or interim file name (required)
    - list: taxon list ID for warehouse lookups
    - groups: taxon group IDs to constrain suggestions to
    - org_group_rules_list, sref, date: Record Cleaner inputs (JSON / JSON / string)
    - raw: include the classifier's unmodified response
    - params: JSON object with `form` and `query` sub-objects for the classifier

    Returns:
        ClassificationResult with filtered, ranked and enriched suggestions
    """
    return await _run(request, service, classifier)


@router.post('/classify/{classifier}', response_model=ClassificationResult)
async def classify_with(classifier: str, request: Request, service: ClassificationServiceDep):
    """
    Classify an image with the classifier named in the path (e.g. /classify/plantnet).

    Unknown names use the default classifier unless strict routing is enabled.
    """
    return await _run(request, service, classifier)


@router.post('/proxy/{classifier}', response_model=ClassificationResult)
async def proxy(classifier: str, request: Request, service: ClassificationServiceDep):
    """
    Call one classifier and return its suggestions in canonical form.

    No threshold, ranking or enrichment is applied.
    """
    return await _run(request, service, classifier, pipeline=False)
