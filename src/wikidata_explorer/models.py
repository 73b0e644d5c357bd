"""Data model shared by the clients, the controller, and the views."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

WIKIDATA_ITEM_TYPE = "Wikidata Item"


class EntityProperty(BaseModel):
    model_config = ConfigDict(frozen=True)

    prop: str
    value: str


class Entity(BaseModel):
    """A normalized knowledge-base record surfaced to the UI."""

    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    description: str = ""
    type: str = WIKIDATA_ITEM_TYPE
    image_url: str | None = None
    relevance: float | None = None
    properties: tuple[EntityProperty, ...] = ()


class SemanticCluster(BaseModel):
    name: str
    entities: list[str]
    description: str


class VectorAnalysis(BaseModel):
    """AI-proposed summary and grouping of one search result set."""

    model_config = ConfigDict(populate_by_name=True)

    summary: str
    semantic_clusters: list[SemanticCluster] = Field(alias="semanticClusters")
    sparql_suggestion: str | None = Field(default=None, alias="sparqlSuggestion")


class ComparisonResult(BaseModel):
    """Semantic-bridge commentary for a (selected, comparison) pair."""

    model_config = ConfigDict(populate_by_name=True)

    common_ground: str = Field(alias="commonGround")
    divergence: str
    semantic_distance: str = Field(alias="semanticDistance")
    influence: str


class WebSource(BaseModel):
    uri: str
    title: str = ""


class GroundingChunk(BaseModel):
    """A citation returned alongside AI-generated text."""

    web: WebSource | None = None


class EntityInsight(BaseModel):
    text: str
    grounding: list[GroundingChunk] = Field(default_factory=list)


@dataclass(frozen=True)
class ImageLookup:
    """Outcome of one per-entity image lookup.

    Either an image was found, or the entity simply has none; ``failure``
    records why when the lookup itself went wrong.
    """

    entity_id: str
    image_url: str | None = None
    failure: str | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None
