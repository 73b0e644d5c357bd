"""Client for Wikidata entity search and image lookups."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any
from urllib.parse import quote

import requests

from wikidata_explorer.config import Settings, get_settings
from wikidata_explorer.errors import PerItemEnrichmentFailure, ServiceUnavailable
from wikidata_explorer.models import WIKIDATA_ITEM_TYPE, Entity, ImageLookup

logger = logging.getLogger(__name__)

WIKIDATA_API_URL = "https://www.wikidata.org/w/api.php"
COMMONS_FILE_PATH_URL = "https://commons.wikimedia.org/wiki/Special:FilePath/"
IMAGE_PROPERTY_ID = "P18"
SEARCH_LIMIT = 15


def commons_image_url(filename: str, width: int = 400) -> str:
    """Turn a Commons filename into a fixed-width media URL."""

    return f"{COMMONS_FILE_PATH_URL}{quote(filename)}?width={width}"


def _display_value(hit: dict[str, Any], field: str) -> str:
    display = hit.get("display")
    if isinstance(display, dict):
        block = display.get(field)
        if isinstance(block, dict) and isinstance(block.get("value"), str):
            return block["value"]
    value = hit.get(field)
    return value if isinstance(value, str) else ""


def entity_from_hit(hit: dict[str, Any], image_url: str | None = None) -> Entity:
    """Normalize one ``wbsearchentities`` hit into an :class:`Entity`."""

    entity_id = str(hit["id"])
    return Entity(
        id=entity_id,
        label=_display_value(hit, "label") or entity_id,
        description=_display_value(hit, "description"),
        type=WIKIDATA_ITEM_TYPE,
        image_url=image_url,
        relevance=1.0,
    )


class WikidataClient:
    """Thin wrapper around the Wikidata action API."""

    def __init__(
        self,
        base_url: str = WIKIDATA_API_URL,
        *,
        language: str = "en",
        limit: int = SEARCH_LIMIT,
        image_width: int = 400,
        max_workers: int = 8,
        timeout_seconds: float = 30.0,
        user_agent: str | None = None,
        session: requests.Session | None = None,
    ) -> None:
        if limit <= 0:
            raise ValueError("limit must be greater than 0")
        self._base_url = base_url
        self._language = language
        self._limit = limit
        self._image_width = image_width
        self._max_workers = max(1, max_workers)
        self._timeout_seconds = timeout_seconds
        self._user_agent = user_agent
        self._session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> WikidataClient:
        """Build a client from environment-backed project settings."""

        resolved_settings = settings or get_settings()
        return cls(
            base_url=resolved_settings.WIKIDATA_API_URL,
            language=resolved_settings.WIKIDATA_LANGUAGE,
            limit=resolved_settings.SEARCH_LIMIT,
            image_width=resolved_settings.IMAGE_WIDTH,
            max_workers=resolved_settings.IMAGE_LOOKUP_WORKERS,
            timeout_seconds=resolved_settings.HTTP_TIMEOUT_SECONDS,
            user_agent=resolved_settings.USER_AGENT,
        )

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def _headers(self) -> dict[str, str]:
        return {"User-Agent": self._user_agent} if self._user_agent else {}

    def _get(self, params: dict[str, Any]) -> dict[str, Any]:
        response = self._session.get(
            self._base_url,
            headers=self._headers,
            params=params,
            timeout=self._timeout_seconds,
        )
        response.raise_for_status()

        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError("Wikidata response payload was not a JSON object")
        return payload

    def search_hits(self, query: str) -> list[dict[str, Any]]:
        """Run ``wbsearchentities`` and return the raw hits in upstream order."""

        params = {
            "action": "wbsearchentities",
            "search": query,
            "language": self._language,
            "format": "json",
            "limit": self._limit,
        }
        try:
            payload = self._get(params)
        except (requests.RequestException, ValueError) as exc:
            raise ServiceUnavailable(f"Wikidata search failed: {exc}") from exc

        hits = payload.get("search", [])
        if not isinstance(hits, list):
            raise ServiceUnavailable("Wikidata response['search'] must be a list")
        return [hit for hit in hits if isinstance(hit, dict) and "id" in hit][: self._limit]

    def fetch_image_url(self, entity_id: str) -> str | None:
        """Return the entity's image URL, or ``None`` when it has no image."""

        params = {
            "action": "wbgetclaims",
            "entity": entity_id,
            "property": IMAGE_PROPERTY_ID,
            "format": "json",
        }
        try:
            payload = self._get(params)
        except (requests.RequestException, ValueError) as exc:
            raise PerItemEnrichmentFailure(entity_id, str(exc)) from exc

        claims = payload.get("claims")
        if not isinstance(claims, dict):
            return None
        statements = claims.get(IMAGE_PROPERTY_ID)
        if not isinstance(statements, list) or not statements:
            return None
        try:
            filename = statements[0]["mainsnak"]["datavalue"]["value"]
        except (KeyError, TypeError):
            return None
        if not isinstance(filename, str) or not filename:
            return None
        return commons_image_url(filename, width=self._image_width)

    def resolve_image(self, entity_id: str) -> ImageLookup:
        """Look up one image; failures are recorded on the result, never raised."""

        try:
            return ImageLookup(entity_id=entity_id, image_url=self.fetch_image_url(entity_id))
        except PerItemEnrichmentFailure as exc:
            logger.debug("Image lookup failed for %s: %s", entity_id, exc.reason)
            return ImageLookup(entity_id=entity_id, failure=exc.reason)

    def resolve_images(self, entity_ids: list[str]) -> list[ImageLookup]:
        """Resolve images for all ids concurrently, preserving input order."""

        if not entity_ids:
            return []
        workers = min(self._max_workers, len(entity_ids))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(self.resolve_image, entity_ids))

    def search(self, query: str) -> list[Entity]:
        """Search entities and enrich each hit with its image URL."""

        if not query.strip():
            raise ValueError("query must be a non-empty string")

        hits = self.search_hits(query.strip())
        lookups = self.resolve_images([str(hit["id"]) for hit in hits])
        return [
            entity_from_hit(hit, image_url=lookup.image_url)
            for hit, lookup in zip(hits, lookups, strict=True)
        ]
