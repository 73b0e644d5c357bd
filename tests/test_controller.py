from __future__ import annotations

import asyncio
import threading

from wikidata_explorer.errors import MalformedResponse, ServiceUnavailable
from wikidata_explorer.models import (
    ComparisonResult,
    Entity,
    EntityInsight,
    SemanticCluster,
    VectorAnalysis,
)
from wikidata_explorer.state.controller import (
    ANALYSIS_ERROR_MESSAGE,
    INSIGHT_FALLBACK_TEXT,
    SEARCH_ERROR_MESSAGE,
    ExplorerController,
    ExplorerState,
)


def _entity(entity_id: str, image_url: str | None = None) -> Entity:
    return Entity(
        id=entity_id,
        label=f"Label {entity_id}",
        description=f"Desc {entity_id}",
        image_url=image_url,
        relevance=1.0,
    )


class FakeRepository:
    def __init__(self, entities: list[Entity] | None = None, error: Exception | None = None):
        self._entities = entities or []
        self._error = error
        self.queries: list[str] = []

    def search(self, query: str) -> list[Entity]:
        self.queries.append(query)
        if self._error is not None:
            raise self._error
        return list(self._entities)


class FakeInsightService:
    def __init__(
        self,
        *,
        analysis_error: Exception | None = None,
        insight_error: Exception | None = None,
        compare_error: Exception | None = None,
    ) -> None:
        self._analysis_error = analysis_error
        self._insight_error = insight_error
        self._compare_error = compare_error
        self.analysis_calls: list[tuple[str, list[Entity]]] = []
        self.insight_calls: list[str] = []
        self.compare_calls: list[tuple[str, str]] = []

    def analyze_corpus(self, query: str, entities: list[Entity]) -> VectorAnalysis:
        self.analysis_calls.append((query, entities))
        if self._analysis_error is not None:
            raise self._analysis_error
        return VectorAnalysis(
            summary=f"Analysis of {query}",
            semantic_clusters=[
                SemanticCluster(
                    name="All",
                    entities=[entity.label for entity in entities],
                    description="Every result",
                )
            ],
        )

    def get_insight(self, entity: Entity) -> EntityInsight:
        self.insight_calls.append(entity.id)
        if self._insight_error is not None:
            raise self._insight_error
        return EntityInsight(text=f"Insight on {entity.label}", grounding=[])

    def compare_entities(self, entity_a: Entity, entity_b: Entity) -> ComparisonResult:
        self.compare_calls.append((entity_a.id, entity_b.id))
        if self._compare_error is not None:
            raise self._compare_error
        return ComparisonResult(
            common_ground=f"{entity_a.id} & {entity_b.id}",
            divergence="d",
            semantic_distance="near",
            influence="i",
        )


def test_black_hole_search_populates_entities_and_runs_analysis() -> None:
    found = [_entity("Q1", "u1"), _entity("Q2", "u2"), _entity("Q3", "u3")]
    repository = FakeRepository(found)
    insight = FakeInsightService()
    controller = ExplorerController(repository, insight)

    asyncio.run(controller.submit_search("black hole"))

    state = controller.state
    assert len(state.entities) == 3
    assert state.error is None
    assert state.loading is False
    assert state.analysis is not None
    assert insight.analysis_calls == [("black hole", found)]


def test_search_caps_result_count() -> None:
    found = [_entity(f"Q{index}") for index in range(40)]
    controller = ExplorerController(FakeRepository(found), FakeInsightService())

    asyncio.run(controller.submit_search("many"))

    assert len(controller.state.entities) <= 15
    assert controller.state.loading is False


def test_blank_query_is_a_no_op() -> None:
    repository = FakeRepository([_entity("Q1")])
    controller = ExplorerController(repository, FakeInsightService())
    before = controller.state

    asyncio.run(controller.submit_search("   \t"))

    assert controller.state is before
    assert repository.queries == []


def test_search_failure_sets_error_and_leaves_entities_empty() -> None:
    repository = FakeRepository(error=ServiceUnavailable("offline"))
    insight = FakeInsightService()
    controller = ExplorerController(repository, insight)

    asyncio.run(controller.submit_search("black hole"))

    state = controller.state
    assert state.entities == ()
    assert state.error == SEARCH_ERROR_MESSAGE
    assert state.loading is False
    assert insight.analysis_calls == []


def test_empty_result_skips_analysis() -> None:
    insight = FakeInsightService()
    controller = ExplorerController(FakeRepository([]), insight)

    asyncio.run(controller.submit_search("nothing"))

    assert controller.state.entities == ()
    assert controller.state.error is None
    assert insight.analysis_calls == []


def test_analysis_failure_keeps_entities() -> None:
    insight = FakeInsightService(analysis_error=MalformedResponse("bad shape"))
    controller = ExplorerController(FakeRepository([_entity("Q1")]), insight)

    asyncio.run(controller.submit_search("q"))

    state = controller.state
    assert [entity.id for entity in state.entities] == ["Q1"]
    assert state.analysis is None
    assert state.error == ANALYSIS_ERROR_MESSAGE
    assert state.loading is False


def test_new_search_clears_selection_and_comparison() -> None:
    entities = [_entity("Q1"), _entity("Q2")]
    controller = ExplorerController(FakeRepository(entities), FakeInsightService())

    async def scenario() -> None:
        await controller.submit_search("first")
        await controller.select_entity(entities[0])
        await controller.toggle_comparison(entities[1])
        await controller.submit_search("second")

    asyncio.run(scenario())

    state = controller.state
    assert state.query == "second"
    assert state.selected_entity is None
    assert state.comparison_entity is None
    assert state.insight is None
    assert state.comparison_result is None


def test_insight_failure_yields_fallback_message() -> None:
    insight = FakeInsightService(insight_error=ServiceUnavailable("down"))
    controller = ExplorerController(FakeRepository(), insight)

    asyncio.run(controller.select_entity(_entity("Q1")))

    state = controller.state
    assert state.selected_entity is not None
    assert state.insight is not None
    assert state.insight.text == INSIGHT_FALLBACK_TEXT
    assert len(state.insight.grounding) == 0
    assert state.error is None


def test_stale_insight_does_not_overwrite_newer_selection() -> None:
    release_first = threading.Event()

    class SlowFirstInsight(FakeInsightService):
        def get_insight(self, entity: Entity) -> EntityInsight:
            self.insight_calls.append(entity.id)
            if entity.id == "A":
                release_first.wait(timeout=5)
                return EntityInsight(text="stale")
            release_first.set()
            return EntityInsight(text="fresh")

    insight = SlowFirstInsight()
    controller = ExplorerController(FakeRepository(), insight)
    entity_a, entity_b = _entity("A"), _entity("B")

    async def scenario() -> None:
        await asyncio.gather(
            controller.select_entity(entity_a),
            controller.select_entity(entity_b),
        )

    asyncio.run(scenario())

    state = controller.state
    assert state.selected_entity == entity_b
    assert state.insight is not None
    assert state.insight.text == "fresh"
    assert insight.insight_calls.count("B") == 1


def test_toggle_comparison_twice_restores_previous_values() -> None:
    insight = FakeInsightService()
    controller = ExplorerController(FakeRepository(), insight)
    entity_a, entity_b = _entity("A"), _entity("B")

    async def scenario() -> tuple[ExplorerState, ExplorerState, ExplorerState]:
        await controller.select_entity(entity_a)
        before = controller.state
        await controller.toggle_comparison(entity_b)
        during = controller.state
        await controller.toggle_comparison(entity_b)
        return before, during, controller.state

    before, during, after = asyncio.run(scenario())

    assert during.comparison_entity == entity_b
    assert during.comparison_result is not None
    assert during.comparison_result.common_ground == "A & B"
    assert after.comparison_entity == before.comparison_entity
    assert after.comparison_result == before.comparison_result
    assert insight.compare_calls == [("A", "B")]


def test_toggle_comparison_without_selection_does_not_fetch() -> None:
    insight = FakeInsightService()
    controller = ExplorerController(FakeRepository(), insight)

    asyncio.run(controller.toggle_comparison(_entity("B")))

    assert controller.state.comparison_entity is not None
    assert controller.state.comparison_result is None
    assert insight.compare_calls == []


def test_comparison_failure_leaves_result_empty_without_error() -> None:
    insight = FakeInsightService(compare_error=ServiceUnavailable("down"))
    controller = ExplorerController(FakeRepository(), insight)

    async def scenario() -> None:
        await controller.select_entity(_entity("A"))
        await controller.toggle_comparison(_entity("B"))

    asyncio.run(scenario())

    state = controller.state
    assert state.comparison_entity is not None
    assert state.comparison_result is None
    assert state.error is None


def test_changing_selection_recomputes_comparison_for_new_pair() -> None:
    insight = FakeInsightService()
    controller = ExplorerController(FakeRepository(), insight)

    async def scenario() -> None:
        await controller.select_entity(_entity("A"))
        await controller.toggle_comparison(_entity("B"))
        await controller.select_entity(_entity("C"))

    asyncio.run(scenario())

    state = controller.state
    assert insight.compare_calls == [("A", "B"), ("C", "B")]
    assert state.comparison_result is not None
    assert state.comparison_result.common_ground == "C & B"


def test_stale_search_results_are_discarded() -> None:
    release_first = threading.Event()

    class SlowFirstRepository(FakeRepository):
        def search(self, query: str) -> list[Entity]:
            self.queries.append(query)
            if query == "old":
                release_first.wait(timeout=5)
                return [_entity("OLD")]
            release_first.set()
            return [_entity("NEW")]

    controller = ExplorerController(SlowFirstRepository(), FakeInsightService())

    async def scenario() -> None:
        await asyncio.gather(
            controller.submit_search("old"),
            controller.submit_search("new"),
        )

    asyncio.run(scenario())

    state = controller.state
    assert [entity.id for entity in state.entities] == ["NEW"]
    assert state.query == "new"
    assert state.loading is False


def test_clear_error_dismisses_banner() -> None:
    controller = ExplorerController(
        FakeRepository(error=ServiceUnavailable("offline")), FakeInsightService()
    )
    asyncio.run(controller.submit_search("q"))

    controller.clear_error()

    assert controller.state.error is None


def test_new_search_discards_in_flight_insight() -> None:
    search_started = threading.Event()

    class SlowInsight(FakeInsightService):
        def get_insight(self, entity: Entity) -> EntityInsight:
            self.insight_calls.append(entity.id)
            search_started.wait(timeout=5)
            return EntityInsight(text="stale")

    class SignallingRepository(FakeRepository):
        def search(self, query: str) -> list[Entity]:
            search_started.set()
            return super().search(query)

    controller = ExplorerController(SignallingRepository([_entity("N1")]), SlowInsight())

    async def scenario() -> None:
        await asyncio.gather(
            controller.select_entity(_entity("A")),
            controller.submit_search("new"),
        )

    asyncio.run(scenario())

    state = controller.state
    assert state.insight is None
    assert state.selected_entity is None
    assert [entity.id for entity in state.entities] == ["N1"]


def test_new_search_discards_in_flight_comparison() -> None:
    search_started = threading.Event()

    class SlowComparison(FakeInsightService):
        def compare_entities(self, entity_a: Entity, entity_b: Entity) -> ComparisonResult:
            self.compare_calls.append((entity_a.id, entity_b.id))
            search_started.wait(timeout=5)
            return ComparisonResult(
                common_ground="stale",
                divergence="d",
                semantic_distance="far",
                influence="i",
            )

    class SignallingRepository(FakeRepository):
        def search(self, query: str) -> list[Entity]:
            search_started.set()
            return super().search(query)

    insight = SlowComparison()
    controller = ExplorerController(SignallingRepository([_entity("N1")]), insight)

    async def scenario() -> None:
        await controller.select_entity(_entity("A"))
        await asyncio.gather(
            controller.toggle_comparison(_entity("B")),
            controller.submit_search("new"),
        )

    asyncio.run(scenario())

    state = controller.state
    assert insight.compare_calls == [("A", "B")]
    assert state.comparison_result is None
    assert state.comparison_entity is None
    assert state.selected_entity is None
