"""
Classification service.

Orchestrates one inbound call end to end:
router -> body parse -> adapter hooks -> transport -> suggestion pipeline.

Every call builds its own ClassificationRequest; the service and its
collaborators hold only configuration and the shared HTTP client.
"""

import logging

import httpx

from species_proxy.adapters import ClassifierAdapter, build_adapters
from species_proxy.clients.record_cleaner import RecordCleanerClient
from species_proxy.clients.upstream import UpstreamTransport
from species_proxy.clients.warehouse import WarehouseClient
from species_proxy.config import Settings
from species_proxy.schemas.classification import ClassificationResult
from species_proxy.schemas.request import ClassificationRequest
from species_proxy.services.image import ImageResolver
from species_proxy.services.pipeline import SuggestionPipeline
from species_proxy.services.record_cleaner import RecordVerifier
from species_proxy.services.request_parser import parse_classification_request, parse_form_body
from species_proxy.services.routing import ClassifierRouter
from species_proxy.services.taxonomy import TaxonomyEnricher


logger = logging.getLogger(__name__)


class ClassificationService:
    """Front door for classification requests."""

    def __init__(
        self,
        adapters: dict[str, ClassifierAdapter],
        router: ClassifierRouter,
        resolver: ImageResolver,
        transport: UpstreamTransport,
        pipeline: SuggestionPipeline,
        http: httpx.AsyncClient,
    ):
        self.adapters = adapters
        self.router = router
        self.resolver = resolver
        self.transport = transport
        self.pipeline = pipeline
        self.http = http

    @classmethod
    def from_settings(cls, settings: Settings, http: httpx.AsyncClient) -> 'ClassificationService':
        """Wire up the service and its collaborators from settings."""
        adapters = build_adapters(settings)

        verifier = None
        if settings.cleaner.enable:
            verifier = RecordVerifier(
                RecordCleanerClient(http, settings.cleaner, timeout=settings.cleaner_timeout)
            )

        enricher = TaxonomyEnricher(
            WarehouseClient(http, settings.warehouse, timeout=settings.taxonomy_timeout)
        )

        return cls(
            adapters=adapters,
            router=ClassifierRouter(
                list(adapters), default=settings.default_classifier, strict=settings.strict_routing
            ),
            resolver=ImageResolver(
                http,
                settings.interim_image_folder,
                head_timeout=settings.image_head_timeout,
                download_timeout=settings.image_download_timeout,
            ),
            transport=UpstreamTransport(http, timeout=settings.upstream_timeout),
            pipeline=SuggestionPipeline(settings.classify, enricher, verifier),
            http=http,
        )

    async def call_classifier(
        self,
        classifier: str | None,
        body: bytes | str,
        headers: dict[str, list[str]] | None = None,
        query: list[tuple[str, str]] | None = None,
    ) -> tuple[ClassificationResult, ClassificationRequest]:
        """
        Run the adapter hooks and the upstream call, without the pipeline.

        Args:
            classifier: Path segment or parameter naming the classifier
            body: Url-encoded inbound body
            headers: Inbound headers
            query: Inbound query parameters

        Returns:
            Tuple of (adapter result, parsed request)
        """
        adapter = self.adapters[self.router.select(classifier)]

        # Parse before anything leaves the proxy so bad input fails fast.
        request = parse_classification_request(parse_form_body(body))

        target = await adapter.prepare_request(headers or {}, query or [], self.http)
        # Downloaded images stay on disk until the upstream call has ended.
        try:
            call = await adapter.build_upstream_call(request, target, self.resolver)

            logger.info(
                f'Calling {adapter.label} with {len(request.image_locators)} image(s) at {call.uri}'
            )
            payload = await self.transport.send(call, service=adapter.label)
        finally:
            self.resolver.discard_downloads()

        result = adapter.parse_response(payload, request)
        logger.info(f'{adapter.label} returned {len(result.suggestions)} suggestion(s)')
        return result, request

    async def classify(
        self,
        classifier: str | None,
        body: bytes | str,
        headers: dict[str, list[str]] | None = None,
        query: list[tuple[str, str]] | None = None,
    ) -> ClassificationResult:
        """Classify and run the suggestion pipeline."""
        result, request = await self.call_classifier(classifier, body, headers, query)
        return await self.pipeline.run(result, request)
