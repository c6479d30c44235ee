"""
Per-request values extracted from the inbound body.

A ClassificationRequest is built once per inbound call and handed down the
adapter and pipeline call chain, so nothing request-specific is ever stored
on a shared object.
"""

from dataclasses import dataclass, field
from typing import Any


# Fields consumed by the proxy and never forwarded to a classifier.
CONTROL_FIELDS = ('list', 'groups', 'org_group_rules_list', 'sref', 'date', 'raw', 'params')


@dataclass(frozen=True)
class ClassificationRequest:
    """Parsed inbound classification request."""

    image_locators: tuple[str, ...]
    taxon_list_id: int | None = None
    taxon_group_ids: frozenset[int] = frozenset()
    org_group_rules: Any = field(default_factory=list)
    observation_sref: Any = None
    observation_date: str | None = None
    raw_passthrough: bool | None = None
    extra_params: dict[str, Any] | None = None
    forward_fields: dict[str, Any] = field(default_factory=dict)

    @property
    def form_params(self) -> dict[str, Any]:
        """Extra upstream form fields from params.form."""
        return (self.extra_params or {}).get('form') or {}

    @property
    def query_params(self) -> dict[str, Any]:
        """Extra upstream query parameters from params.query."""
        return (self.extra_params or {}).get('query') or {}

    @property
    def can_verify(self) -> bool:
        """Record Cleaner needs both a spatial reference and a date."""
        return self.observation_sref is not None and self.observation_date is not None
