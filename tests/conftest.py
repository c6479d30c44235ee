"""
Shared fixtures for the species classification proxy tests.

Outbound HTTP is served by FakeBackend through httpx.MockTransport, so every
warehouse, Record Cleaner, image host and classifier call stays in process.
"""

import httpx
import pytest

from species_proxy.config import (
    ClassifyConfig,
    GenericClassifierConfig,
    PlantClassifierConfig,
    RecordCleanerConfig,
    RegionalClassifierConfig,
    Settings,
    WarehouseConfig,
)
from species_proxy.schemas.request import ClassificationRequest


PNG_BYTES = b'\x89PNG\r\n\x1a\n' + b'\x00' * 24
JPEG_BYTES = b'\xff\xd8\xff\xe0' + b'\x00' * 24

GENERIC_URL = 'http://generic.test/classify'
NIA_URL = 'http://nia.test/v2/observation/identify/token/region'
PLANTNET_URL = 'http://plantnet.test/v2/identify/all'
NONCE_URL = 'http://warehouse.test/index.php/services/security/get_read_nonce'
TAXA_SEARCH_URL = 'http://warehouse.test/index.php/services/data/taxa_search'
CLEANER_TOKEN_URL = 'http://cleaner.test/token'
CLEANER_VERIFY_URL = 'http://cleaner.test/verify'


class FakeBackend:
    """Answers outbound requests by method and url (query string ignored) and records them."""

    def __init__(self):
        self.routes = {}
        self.requests = []

    def add(self, method, url, handler=None, status_code=200, **response_kwargs):
        """
        Register a route.

        Either a handler taking the httpx.Request, or the arguments of a
        fresh httpx.Response built for every call.
        """
        if handler is None:
            def handler(request):
                return httpx.Response(status_code, **response_kwargs)
        self.routes[(method, url)] = handler

    def calls(self, method, url):
        return [
            request
            for request in self.requests
            if request.method == method and str(request.url).split('?')[0] == url
        ]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, str(request.url).split('?')[0]))
        if handler is None:
            return httpx.Response(404, json={'detail': f'No route for {request.method} {request.url}'})
        return handler(request)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def http_client(backend):
    return httpx.AsyncClient(transport=httpx.MockTransport(backend))


@pytest.fixture
def interim_folder(tmp_path):
    folder = tmp_path / 'interim'
    folder.mkdir()
    return folder


@pytest.fixture
def make_settings(interim_folder):
    """Factory for Settings pointing every service at the fake backend."""

    def _make(**overrides):
        values = {
            'classifiers': ['generic', 'nia', 'plantnet'],
            'classify': ClassifyConfig(threshold=0.5, suggestions=1),
            'cleaner': RecordCleanerConfig(),
            'warehouse': WarehouseConfig(
                base_url='http://warehouse.test/', website_id=1, password='secret'
            ),
            'generic': GenericClassifierConfig(
                base_url='http://generic.test', classifier_id='generic-1'
            ),
            'nia': RegionalClassifierConfig(
                base_url='http://nia.test',
                token='region',
                username='user',
                password='pass',
                classifier_id='nia-1',
            ),
            'plantnet': PlantClassifierConfig(
                base_url='http://plantnet.test', api_key='key', classifier_id='plantnet-1'
            ),
            'interim_image_folder': str(interim_folder),
        }
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def settings(make_settings):
    return make_settings()


@pytest.fixture
def make_request():
    """Factory for ClassificationRequest with a single local image by default."""

    def _make(**overrides):
        values = {'image_locators': ('cat.jpg',)}
        values.update(overrides)
        return ClassificationRequest(**values)

    return _make
