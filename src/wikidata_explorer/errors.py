"""Error taxonomy shared by the external service clients."""

from __future__ import annotations


class ExplorerError(Exception):
    """Base class for failures talking to external services."""


class ServiceUnavailable(ExplorerError):
    """Transport or network failure on an external call."""


class MalformedResponse(ExplorerError):
    """A structured response did not match the expected shape."""


class PerItemEnrichmentFailure(ExplorerError):
    """Non-fatal failure enriching a single entity (e.g. its image lookup)."""

    def __init__(self, entity_id: str, reason: str) -> None:
        super().__init__(f"{entity_id}: {reason}")
        self.entity_id = entity_id
        self.reason = reason
