"""Application state controller orchestrating search, insight, and comparison."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Protocol

from wikidata_explorer.errors import ExplorerError
from wikidata_explorer.models import ComparisonResult, Entity, EntityInsight, VectorAnalysis

logger = logging.getLogger(__name__)

SEARCH_ERROR_MESSAGE = "Search service unavailable. Please check your connectivity."
ANALYSIS_ERROR_MESSAGE = "Semantic analysis unavailable for these results."
INSIGHT_FALLBACK_TEXT = "Contextual reasoning failed."
MAX_RESULTS = 15


class EntityRepository(Protocol):
    def search(self, query: str) -> list[Entity]:
        ...


class InsightService(Protocol):
    def analyze_corpus(self, query: str, entities: list[Entity]) -> VectorAnalysis:
        ...

    def get_insight(self, entity: Entity) -> EntityInsight:
        ...

    def compare_entities(self, entity_a: Entity, entity_b: Entity) -> ComparisonResult:
        ...


@dataclass(frozen=True)
class ExplorerState:
    """Snapshot of everything the views render."""

    query: str = ""
    loading: bool = False
    entities: tuple[Entity, ...] = ()
    selected_entity: Entity | None = None
    comparison_entity: Entity | None = None
    insight: EntityInsight | None = None
    comparison_result: ComparisonResult | None = None
    analysis: VectorAnalysis | None = None
    error: str | None = None

    @property
    def selected_id(self) -> str | None:
        return self.selected_entity.id if self.selected_entity is not None else None

    @property
    def comparison_id(self) -> str | None:
        return self.comparison_entity.id if self.comparison_entity is not None else None


class ExplorerController:
    """Owns the explorer state and applies user-driven transitions.

    Each concern (search, insight, comparison) carries a generation counter.
    A coroutine only writes its result back if its generation is still the
    latest one, so a slow response from a superseded request is dropped.
    """

    def __init__(
        self,
        repository: EntityRepository,
        insight_service: InsightService,
        *,
        max_results: int = MAX_RESULTS,
    ) -> None:
        self._repository = repository
        self._insight_service = insight_service
        self._max_results = max_results
        self._state = ExplorerState()
        self._search_generation = 0
        self._insight_generation = 0
        self._comparison_generation = 0

    @property
    def state(self) -> ExplorerState:
        return self._state

    def _update(self, **changes: object) -> None:
        self._state = replace(self._state, **changes)

    def clear_error(self) -> None:
        self._update(error=None)

    async def submit_search(self, query: str) -> None:
        trimmed = query.strip()
        if not trimmed:
            return

        self._search_generation += 1
        self._insight_generation += 1
        self._comparison_generation += 1
        generation = self._search_generation
        self._state = ExplorerState(query=query, loading=True)

        try:
            try:
                found = await asyncio.to_thread(self._repository.search, trimmed)
            except ExplorerError as exc:
                logger.warning("Search for %r failed: %s", trimmed, exc)
                if generation == self._search_generation:
                    self._update(error=SEARCH_ERROR_MESSAGE)
                return

            if generation != self._search_generation:
                return
            entities = tuple(found[: self._max_results])
            self._update(entities=entities)
            if not entities:
                return

            try:
                analysis = await asyncio.to_thread(
                    self._insight_service.analyze_corpus, trimmed, list(entities)
                )
            except ExplorerError as exc:
                logger.warning("Corpus analysis for %r failed: %s", trimmed, exc)
                if generation == self._search_generation:
                    self._update(error=ANALYSIS_ERROR_MESSAGE)
                return

            if generation == self._search_generation:
                self._update(analysis=analysis)
        finally:
            if generation == self._search_generation:
                self._update(loading=False)

    async def select_entity(self, entity: Entity) -> None:
        self._insight_generation += 1
        generation = self._insight_generation
        self._update(selected_entity=entity, insight=None, comparison_result=None)

        jobs = [self._load_insight(entity, generation)]
        comparison_entity = self._state.comparison_entity
        if comparison_entity is not None:
            jobs.append(self._load_comparison(entity, comparison_entity))
        else:
            self._comparison_generation += 1
        await asyncio.gather(*jobs)

    async def toggle_comparison(self, entity: Entity) -> None:
        if self._state.comparison_id == entity.id:
            self._comparison_generation += 1
            self._update(comparison_entity=None, comparison_result=None)
            return

        self._update(comparison_entity=entity, comparison_result=None)
        selected = self._state.selected_entity
        if selected is None:
            self._comparison_generation += 1
            return
        await self._load_comparison(selected, entity)

    async def _load_insight(self, entity: Entity, generation: int) -> None:
        try:
            insight = await asyncio.to_thread(self._insight_service.get_insight, entity)
        except ExplorerError as exc:
            logger.warning("Insight for %s failed: %s", entity.id, exc)
            insight = EntityInsight(text=INSIGHT_FALLBACK_TEXT, grounding=[])

        if generation == self._insight_generation:
            self._update(insight=insight)

    async def _load_comparison(self, selected: Entity, other: Entity) -> None:
        self._comparison_generation += 1
        generation = self._comparison_generation
        try:
            result = await asyncio.to_thread(
                self._insight_service.compare_entities, selected, other
            )
        except ExplorerError as exc:
            logger.error("Comparison failed for %s vs %s: %s", selected.id, other.id, exc)
            return

        if generation == self._comparison_generation:
            self._update(comparison_result=result)
