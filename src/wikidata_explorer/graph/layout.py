"""Force-directed layout for the entity graph.

The edge set is synthetic: every entity is linked to the next few entities
in result order. It is a visual stand-in for relatedness and carries no
knowledge-graph meaning.
"""

from __future__ import annotations

import random
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Protocol

import networkx as nx

from wikidata_explorer.models import Entity

Point = tuple[float, float]

NEIGHBOR_WINDOW = 3
ALPHA_MIN = 0.001
ALPHA_DECAY = 1 - ALPHA_MIN ** (1 / 300)
DRAG_ALPHA_TARGET = 0.3


def build_neighbor_edges(
    entity_ids: Sequence[str],
    window: int = NEIGHBOR_WINDOW,
) -> list[tuple[str, str]]:
    """Link each id to the next ``window`` ids in list order."""

    edges: list[tuple[str, str]] = []
    for index, source in enumerate(entity_ids):
        for target in entity_ids[index + 1 : index + 1 + window]:
            edges.append((source, target))
    return edges


def build_entity_graph(
    entities: Iterable[Entity],
    *,
    selected_id: str | None = None,
    comparison_ids: Iterable[str] = (),
) -> nx.Graph:
    """Build the node-link graph with each node's highlight role attached."""

    comparison = set(comparison_ids)
    entity_list = list(entities)
    graph = nx.Graph()
    for entity in entity_list:
        if entity.id == selected_id:
            role = "selected"
        elif entity.id in comparison:
            role = "comparison"
        else:
            role = "default"
        graph.add_node(entity.id, label=entity.label, role=role)

    for source, target in build_neighbor_edges([entity.id for entity in entity_list]):
        highlighted = selected_id in (source, target) or (
            source in comparison and target in comparison
        )
        graph.add_edge(source, target, highlighted=highlighted)
    return graph


class GraphLayout(Protocol):
    """One step of a layout algorithm over node positions."""

    def step(
        self,
        graph: nx.Graph,
        positions: Mapping[str, Point],
        pinned: Mapping[str, Point],
    ) -> dict[str, Point]:
        ...


class SpringLayout:
    """Fruchterman-Reingold spring layout, one networkx iteration per tick."""

    def __init__(self, *, k: float | None = None, seed: int = 42) -> None:
        self._k = k
        self._seed = seed

    def step(
        self,
        graph: nx.Graph,
        positions: Mapping[str, Point],
        pinned: Mapping[str, Point],
    ) -> dict[str, Point]:
        if graph.number_of_nodes() == 0:
            return {}

        start = {node: positions[node] for node in graph.nodes if node in positions}
        start.update({node: point for node, point in pinned.items() if node in graph})
        fixed = [node for node in pinned if node in graph] or None

        moved = nx.spring_layout(
            graph,
            k=self._k,
            pos=start or None,
            fixed=fixed,
            iterations=1,
            scale=None,
            seed=self._seed,
        )
        return {str(node): (float(point[0]), float(point[1])) for node, point in moved.items()}


class ForceSimulation:
    """Steps a layout with a cooling schedule and supports drag pinning."""

    def __init__(
        self,
        graph: nx.Graph,
        layout: GraphLayout | None = None,
        *,
        seed: int = 42,
        alpha_min: float = ALPHA_MIN,
        alpha_decay: float = ALPHA_DECAY,
    ) -> None:
        rng = random.Random(seed)
        self._graph = graph
        self._layout = layout or SpringLayout(seed=seed)
        self._positions: dict[str, Point] = {
            str(node): (rng.random(), rng.random()) for node in graph.nodes
        }
        self._pinned: dict[str, Point] = {}
        self._alpha = 1.0
        self._alpha_target = 0.0
        self._alpha_min = alpha_min
        self._alpha_decay = alpha_decay
        self._stopped = False

    @property
    def positions(self) -> dict[str, Point]:
        return dict(self._positions)

    @property
    def pinned(self) -> dict[str, Point]:
        return dict(self._pinned)

    @property
    def alpha(self) -> float:
        return self._alpha

    @property
    def stopped(self) -> bool:
        return self._stopped

    @property
    def running(self) -> bool:
        if self._stopped:
            return False
        return self._alpha >= self._alpha_min or self._alpha_target >= self._alpha_min

    def tick(self) -> dict[str, Point]:
        """Advance one step and return the new positions."""

        if not self.running:
            return self.positions

        self._alpha += (self._alpha_target - self._alpha) * self._alpha_decay
        proposed = self._layout.step(self._graph, self._positions, self._pinned)
        for node, (old_x, old_y) in self._positions.items():
            if node in self._pinned:
                self._positions[node] = self._pinned[node]
                continue
            new_x, new_y = proposed.get(node, (old_x, old_y))
            self._positions[node] = (
                old_x + (new_x - old_x) * self._alpha,
                old_y + (new_y - old_y) * self._alpha,
            )
        return self.positions

    def run(
        self,
        max_ticks: int = 300,
        on_tick: Callable[[dict[str, Point]], None] | None = None,
    ) -> dict[str, Point]:
        """Tick until the simulation cools down, stops, or ``max_ticks`` is hit."""

        for _ in range(max_ticks):
            if not self.running:
                break
            positions = self.tick()
            if on_tick is not None:
                on_tick(positions)
        return self.positions

    def drag_start(self, node_id: str) -> None:
        if node_id not in self._positions:
            raise KeyError(node_id)
        self._alpha_target = DRAG_ALPHA_TARGET
        self._pinned[node_id] = self._positions[node_id]

    def drag(self, node_id: str, x: float, y: float) -> None:
        if node_id not in self._positions:
            raise KeyError(node_id)
        self._pinned[node_id] = (x, y)
        self._positions[node_id] = (x, y)

    def drag_end(self, node_id: str) -> None:
        self._alpha_target = 0.0
        self._pinned.pop(node_id, None)

    def stop(self) -> None:
        self._stopped = True


def scale_positions(
    positions: Mapping[str, Point],
    *,
    width: int,
    height: int,
    margin: int,
) -> dict[str, Point]:
    """Map layout coordinates onto a ``width`` x ``height`` canvas."""

    if not positions:
        return {}

    xs = [point[0] for point in positions.values()]
    ys = [point[1] for point in positions.values()]
    min_x, max_x = min(xs), max(xs)
    min_y, max_y = min(ys), max(ys)

    span_x = max(max_x - min_x, 1e-9)
    span_y = max(max_y - min_y, 1e-9)
    usable_w = max(width - (2 * margin), 1)
    usable_h = max(height - (2 * margin), 1)

    scaled: dict[str, Point] = {}
    for node_id, (x_val, y_val) in positions.items():
        x = margin + ((x_val - min_x) / span_x) * usable_w
        y = margin + ((y_val - min_y) / span_y) * usable_h
        scaled[node_id] = (x, y)
    return scaled
