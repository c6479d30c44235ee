"""
Classifier adapters.

Each adapter transforms requests and responses for one backend:
- generic: url-encoded classifier with bearer token auth
- nia: regional observation classifier (multipart, Basic or OAuth2 auth)
- plantnet: plant identification service (multipart, API key)
"""

from species_proxy.adapters.base import (
    ClassifierAdapter,
    MultipartPart,
    UpstreamCallSpec,
    UpstreamTarget,
)
from species_proxy.adapters.generic import GenericClassifier
from species_proxy.adapters.nia import RegionalObservationClassifier
from species_proxy.adapters.plantnet import PlantIdentifier
from species_proxy.config import Settings


ADAPTER_TYPES = {
    GenericClassifier.name: GenericClassifier,
    RegionalObservationClassifier.name: RegionalObservationClassifier,
    PlantIdentifier.name: PlantIdentifier,
}


def build_adapters(settings: Settings) -> dict[str, ClassifierAdapter]:
    """
    Instantiate the enabled adapters in configured order.

    Args:
        settings: Application settings

    Returns:
        Ordered mapping of adapter name to adapter

    Raises:
        ValueError: If an enabled classifier has no adapter
    """
    adapters = {}
    for name in settings.classifiers:
        adapter_type = ADAPTER_TYPES.get(name)
        if adapter_type is None:
            raise ValueError(f"No adapter for classifier '{name}'. Known: {list(ADAPTER_TYPES)}")
        adapters[name] = adapter_type(getattr(settings, name), timeout=settings.upstream_timeout)
    return adapters


__all__ = [
    'ADAPTER_TYPES',
    'ClassifierAdapter',
    'GenericClassifier',
    'MultipartPart',
    'PlantIdentifier',
    'RegionalObservationClassifier',
    'UpstreamCallSpec',
    'UpstreamTarget',
    'build_adapters',
]
