"""
Classifier selection.

Maps the trailing path segment of the inbound URI (e.g. /nia, /plantnet) or
an explicit classifier parameter to an adapter name. Unknown or empty names
fall back to the default classifier unless strict routing is enabled.
"""

import logging

from species_proxy.core.exceptions import ClassifierNotFoundError


logger = logging.getLogger(__name__)


class ClassifierRouter:
    """Selects an adapter name for a request."""

    def __init__(self, names: list[str], default: str | None = None, strict: bool = False):
        if not names:
            raise ValueError('At least one classifier must be enabled')
        if default is not None and default not in names:
            raise ValueError(f"Default classifier '{default}' is not enabled: {names}")
        self.names = list(names)
        self.default = default or self.names[0]
        self.strict = strict

    def select(self, path_or_param: str | None) -> str:
        """
        Resolve a path segment or parameter to an adapter name.

        Args:
            path_or_param: e.g. '/nia', 'plantnet', '' or None

        Returns:
            Adapter name

        Raises:
            ClassifierNotFoundError: For unknown names when strict routing is on
        """
        segment = (path_or_param or '').strip().strip('/').rsplit('/', 1)[-1].lower()

        if segment in self.names:
            return segment

        if segment and self.strict:
            raise ClassifierNotFoundError(segment, self.names)

        if segment:
            logger.info(f"Unknown classifier '{segment}', using default '{self.default}'")
        return self.default
